"""
ストラテジー参照 — ピッカー種別からカタログエントリを引く読み取り専用ヘルパー

ツールやドキュメント生成（CLI の show-picker 等）から使う。
レジストリ自身はこのモジュールに依存しない。
"""

from __future__ import annotations

from typing import Optional

from .catalog import PICKER_CONFIGS
from .types import PickerConfig

_CONFIGS_BY_TYPE: dict[str, PickerConfig] = {c.picker_type: c for c in PICKER_CONFIGS}


def get_strategy_mapping(picker_type: str) -> Optional[PickerConfig]:
    """ピッカー種別の設定（主・フォールバックストラテジー、検出、対応シナリオ、説明）を返す。

    Args:
        picker_type: ピッカー種別（例: "FLATPICKR"）

    Returns:
        PickerConfig。未登録の場合は None
    """
    return _CONFIGS_BY_TYPE.get(picker_type)


def supports_base_scenario(picker_type: str, base_scenario: str) -> bool:
    """ピッカー種別がベースシナリオ（DS1–DS6）に対応しているかを返す。"""
    config = _CONFIGS_BY_TYPE.get(picker_type)
    if config is None:
        return False
    return base_scenario in config.supported_base_scenarios


def list_picker_types() -> list[str]:
    """全ピッカー種別をカタログ順で返す。"""
    return [c.picker_type for c in PICKER_CONFIGS]
