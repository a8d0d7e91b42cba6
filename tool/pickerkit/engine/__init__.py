"""
シナリオ実行エンジンモジュール

シナリオ ID からベースシナリオとピッカー種別を引き、レジストリを介して
detect → open → setDate → confirm → validate のフローを実行する。

主要エクスポート:
  - run_picker_scenario: シナリオを1回実行して ExecutionResult を返す
  - validate_after_flow: フロー後検証
  - ScenarioCatalog / get_scenario / all_scenario_ids: シナリオレジストリ
  - get_default_dates_for_base_scenario / is_range_scenario: ベースシナリオの振る舞い
"""

from .behavior import get_base_scenario_kind, get_default_dates_for_base_scenario, is_range_scenario
from .executor import run_picker_scenario
from .scenarios import (
    ScenarioCatalog,
    ScenarioEntry,
    ScenarioFileError,
    ScenarioMetadata,
    all_scenario_ids,
    get_scenario,
    get_scenario_id_from_route,
    load_scenario_file,
)
from .types import DateRange, ExecutionResult, FailureReason, FlowValidation, RunOptions, StepLog
from .validation import validate_after_flow

__all__ = [
    "DateRange",
    "ExecutionResult",
    "FailureReason",
    "FlowValidation",
    "RunOptions",
    "ScenarioCatalog",
    "ScenarioEntry",
    "ScenarioFileError",
    "ScenarioMetadata",
    "StepLog",
    "all_scenario_ids",
    "get_base_scenario_kind",
    "get_default_dates_for_base_scenario",
    "get_scenario",
    "get_scenario_id_from_route",
    "is_range_scenario",
    "load_scenario_file",
    "run_picker_scenario",
    "validate_after_flow",
]
