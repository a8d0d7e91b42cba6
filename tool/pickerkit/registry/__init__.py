"""
ピッカーレジストリモジュール

日付ピッカーの検出（メインドキュメント・Shadow ルート・同一オリジン iframe）と、
ライブラリ別ストラテジーによる open / set_date / confirm / validate を提供する。

主要エクスポート:
  - PickerRegistry / picker_registry: 検出・操作の本体と既定インスタンス
  - PICKER_CONFIGS: 組み込みカタログ
  - get_searchable_roots: ルートスキャナ
  - get_strategy_mapping / supports_base_scenario: カタログ参照
"""

from .catalog import PICKER_CONFIGS
from .errors import PickerError, PickerInteractionError, UnknownPickerTypeError
from .mapping import get_strategy_mapping, list_picker_types, supports_base_scenario
from .registry import PickerRegistry, format_date, picker_registry
from .scope import get_searchable_roots, query_selector_all_in_root, query_selector_in_root
from .types import DetectionResult, PickerConfig, ValidationResult

__all__ = [
    "DetectionResult",
    "PICKER_CONFIGS",
    "PickerConfig",
    "PickerError",
    "PickerInteractionError",
    "PickerRegistry",
    "UnknownPickerTypeError",
    "ValidationResult",
    "format_date",
    "get_searchable_roots",
    "get_strategy_mapping",
    "list_picker_types",
    "picker_registry",
    "query_selector_all_in_root",
    "query_selector_in_root",
    "supports_base_scenario",
]
