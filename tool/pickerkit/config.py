"""
ハーネス設定 — 環境変数・CLI オプションからの設定読み込み

CLI オプション > 環境変数 > デフォルト値 の優先順位で適用される。

環境変数一覧:
  PICKERKIT_HEADED         : ブラウザ表示モード（true/false, デフォルト: false）
  PICKERKIT_LOG_LEVEL      : ログレベル（DEBUG/INFO/WARNING/ERROR, デフォルト: WARNING）
  PICKERKIT_SCENARIO_FILE  : 追加シナリオを定義した YAML ファイル（デフォルト: なし）
  PICKERKIT_BROWSER_CHANNEL: Chromium のチャンネル（chrome/msedge 等, デフォルト: なし）
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# 環境変数キー定数
# ---------------------------------------------------------------------------

_ENV_HEADED = "PICKERKIT_HEADED"
_ENV_LOG_LEVEL = "PICKERKIT_LOG_LEVEL"
_ENV_SCENARIO_FILE = "PICKERKIT_SCENARIO_FILE"
_ENV_BROWSER_CHANNEL = "PICKERKIT_BROWSER_CHANNEL"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


# ---------------------------------------------------------------------------
# 設定データクラス
# ---------------------------------------------------------------------------

@dataclass
class HarnessConfig:
    """ハーネスの実行時設定。

    Attributes:
        headed: ブラウザ表示モード（True=表示, False=ヘッドレス）
        log_level: ログレベル名
        scenario_file: 追加シナリオの YAML ファイル
        browser_channel: Chromium のチャンネル（None なら同梱の Chromium）
    """

    headed: bool = False
    log_level: str = "WARNING"
    scenario_file: Optional[Path] = None
    browser_channel: Optional[str] = None


# ---------------------------------------------------------------------------
# 環境変数からの読み込み
# ---------------------------------------------------------------------------

def _parse_bool(value: str) -> bool:
    """文字列を bool に変換する。

    Args:
        value: "true", "1", "yes" → True、それ以外 → False

    Returns:
        変換結果
    """
    return value.lower() in ("true", "1", "yes")


def load_config_from_env() -> HarnessConfig:
    """環境変数から HarnessConfig を生成する。

    設定されていない環境変数・不正な値はデフォルト値を使用する。

    Returns:
        環境変数から読み込んだ設定
    """
    config = HarnessConfig()

    if _ENV_HEADED in os.environ:
        config.headed = _parse_bool(os.environ[_ENV_HEADED])

    if _ENV_LOG_LEVEL in os.environ:
        val = os.environ[_ENV_LOG_LEVEL].upper()
        if val in _LOG_LEVELS:
            config.log_level = val
        else:
            logger.warning("%s の値が不正です: %s", _ENV_LOG_LEVEL, os.environ[_ENV_LOG_LEVEL])

    if os.environ.get(_ENV_SCENARIO_FILE):
        config.scenario_file = Path(os.environ[_ENV_SCENARIO_FILE])

    if os.environ.get(_ENV_BROWSER_CHANNEL):
        config.browser_channel = os.environ[_ENV_BROWSER_CHANNEL]

    logger.debug("設定を読み込みました: %s", config)
    return config


def apply_cli_overrides(
    config: HarnessConfig,
    *,
    headed: Optional[bool] = None,
    log_level: Optional[str] = None,
    scenario_file: Optional[Path] = None,
    browser_channel: Optional[str] = None,
) -> HarnessConfig:
    """CLI オプションを HarnessConfig に適用する。

    None 以外の値が指定されたオプションのみ上書きする。

    Args:
        config: ベースとなる設定（環境変数から読み込み済み）

    Returns:
        CLI オプションが適用された設定
    """
    if headed is not None:
        config.headed = headed

    if log_level is not None:
        val = log_level.upper()
        if val in _LOG_LEVELS:
            config.log_level = val
        else:
            logger.warning("--log-level の値が不正です: %s", log_level)

    if scenario_file is not None:
        config.scenario_file = scenario_file

    if browser_channel is not None:
        config.browser_channel = browser_channel

    return config
