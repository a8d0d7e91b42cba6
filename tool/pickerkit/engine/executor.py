"""
シナリオ実行エンジン — detect → open → setDate → confirm → validate を1回実行する

エンジン本体はピッカー非依存であり、日付と範囲/単一の区別はシナリオメタデータの
base_scenario だけで決まる。各ステップの失敗は分類済みの failure_reason として
ExecutionResult に記録され、例外として呼び出し元へ伝播することはない。

主な構成:
  - run_picker_scenario: シナリオを1回実行して ExecutionResult を返す
  - _FlowRecorder: ステップログの追記と on_step コールバックの呼び出し
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Optional

from ..registry.registry import PickerRegistry, picker_registry
from ..registry.types import DetectionResult
from .behavior import get_default_dates_for_base_scenario
from .scenarios import ScenarioCatalog
from .types import (
    DateRange,
    ExecutionResult,
    FailureReason,
    FlowValidation,
    RunOptions,
    StepLog,
    StepName,
    StepOutcome,
)
from .validation import validate_after_flow

logger = logging.getLogger(__name__)

_UNKNOWN_PICKER = "unknown"


class _FlowRecorder:
    """1回の実行分のステップログを保持する。"""

    def __init__(self, scenario_id: str, picker: str, options: RunOptions) -> None:
        self.scenario_id = scenario_id
        self.picker = picker
        self._on_step = options.on_step
        self.logs: list[StepLog] = []

    def push(self, step: StepName, outcome: StepOutcome, detail: Optional[str] = None) -> None:
        log = StepLog(
            scenario=self.scenario_id,
            picker=self.picker,
            strategy=step,
            outcome=outcome,
            detail=detail,
        )
        self.logs.append(log)
        if outcome == "success":
            logger.info("[%s] %s: %s 成功", self.scenario_id, self.picker, step)
        else:
            logger.warning(
                "[%s] %s: %s 失敗 (%s) %s",
                self.scenario_id, self.picker, step, outcome, detail or "",
            )
        if self._on_step is not None:
            try:
                self._on_step(log)
            except Exception:
                # コールバックの失敗で実行結果を失わない
                logger.exception("on_step コールバックでエラーが発生しました")


def run_picker_scenario(
    scenario_id: str,
    options: Optional[RunOptions] = None,
    *,
    registry: Optional[PickerRegistry] = None,
    scenarios: Optional[ScenarioCatalog] = None,
    today: Optional[dt.date] = None,
) -> ExecutionResult:
    """ピッカー固有シナリオのフローを1回実行する。

    Args:
        scenario_id: シナリオ ID（例: DS1-FLATPICKR）
        options: 実行オプション（スコープ・日付・on_step）
        registry: 使用するレジストリ。None の場合は既定のレジストリ
        scenarios: シナリオカタログ。None の場合は組み込みマトリクス
        today: 既定日付の基準日。None の場合はシステム日付

    Returns:
        実行結果。この関数は例外を送出しない
    """
    if options is None:
        options = RunOptions()
    if registry is None:
        registry = picker_registry
    if scenarios is None:
        scenarios = ScenarioCatalog.builtin()

    try:
        entry = scenarios.get(scenario_id)
    except Exception as exc:
        logger.exception("シナリオの取得に失敗しました: %s", scenario_id)
        return _fail_before_detect(scenario_id, _UNKNOWN_PICKER, "", str(exc), options)

    if entry is None:
        return _fail_before_detect(scenario_id, _UNKNOWN_PICKER, "", "Scenario not found", options)

    metadata = entry.metadata
    picker_type = metadata.picker_type if metadata is not None else None
    base_scenario = metadata.base_scenario if metadata is not None else ""
    if metadata is None or not picker_type:
        return _fail_before_detect(
            scenario_id, picker_type or scenario_id, base_scenario,
            "Not a picker-specific scenario", options,
        )

    try:
        dates = _resolve_dates(base_scenario, options, today)
    except Exception as exc:
        logger.exception("日付の解決に失敗しました: %s", scenario_id)
        return _fail_before_detect(scenario_id, picker_type, base_scenario, str(exc), options)

    logger.info(
        "シナリオを実行します: %s (picker=%s, base=%s, start=%s, end=%s)",
        scenario_id, picker_type, base_scenario, dates.start, dates.end,
    )
    recorder = _FlowRecorder(scenario_id, picker_type, options)
    return _run_flow(recorder, base_scenario, dates, options, registry)


# ---------------------------------------------------------------------------
# フロー本体
# ---------------------------------------------------------------------------

def _run_flow(
    recorder: _FlowRecorder,
    base_scenario: str,
    dates: DateRange,
    options: RunOptions,
    registry: PickerRegistry,
) -> ExecutionResult:
    picker_type = recorder.picker

    def result(
        success: bool,
        failure_reason: Optional[FailureReason] = None,
        detection: Optional[DetectionResult] = None,
        validation: Optional[FlowValidation] = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            scenario_id=recorder.scenario_id,
            picker_type=picker_type,
            base_scenario=base_scenario,
            success=success,
            failure_reason=failure_reason,
            logs=tuple(recorder.logs),
            detection=detection,
            validation=validation,
        )

    # ----- detect -----
    scope = options.scope if options.scope is not None else registry.default_scope
    try:
        detection = registry.detect(scope) if scope is not None else None
    except Exception as exc:
        recorder.push("detect", "detection_failed", str(exc))
        return result(False, "detection_failed")

    if detection is None:
        recorder.push("detect", "detection_failed", "No picker found in scope")
        return result(False, "detection_failed")
    if detection.picker_type != picker_type:
        recorder.push(
            "detect", "detection_failed",
            f"Expected {picker_type}, found {detection.picker_type}",
        )
        return result(False, "detection_failed", detection)
    recorder.push("detect", "success")

    # ----- open / setDate / confirm -----
    end_date = dates.end if dates.end != dates.start else None
    interactions = (
        ("open", lambda: registry.open(detection)),
        ("setDate", lambda: registry.set_date(detection, dates.start, end_date)),
        ("confirm", lambda: registry.confirm(detection)),
    )
    for step, action in interactions:
        try:
            action()
        except Exception as exc:
            recorder.push(step, "interaction_failed", str(exc))
            return result(False, "interaction_failed", detection)
        recorder.push(step, "success")

    # ----- validate -----
    try:
        picker_result = registry.validate(detection)
        if not picker_result.valid:
            recorder.push("validate", "validation_failed", picker_result.message)
            validation = FlowValidation(
                input_value_updated=False,
                model_updated=False,
                payload_correct=False,
                message=picker_result.message,
            )
            return result(False, "validation_failed", detection, validation)

        validation = validate_after_flow(
            detection, dates.start, dates.end, scope, registry=registry,
        )
        if not validation.ok:
            recorder.push(
                "validate", "validation_failed",
                validation.message or "Input/model/payload check failed",
            )
            return result(False, "validation_failed", detection, validation)
    except Exception as exc:
        recorder.push("validate", "silent_failure", str(exc))
        return result(False, "silent_failure", detection)

    recorder.push("validate", "success")
    return result(True, None, detection, validation)


# ---------------------------------------------------------------------------
# 内部ヘルパー
# ---------------------------------------------------------------------------

def _resolve_dates(base_scenario: str, options: RunOptions, today: Optional[dt.date]) -> DateRange:
    """明示的な日付を優先し、無ければベースシナリオの既定値を返す。

    start_date のみ指定された場合は単一日付として扱う。
    """
    if options.start_date is not None:
        end = options.end_date if options.end_date is not None else options.start_date
        return DateRange(start=options.start_date, end=end)
    defaults = get_default_dates_for_base_scenario(base_scenario, today)
    if options.end_date is not None:
        return DateRange(start=defaults.start, end=options.end_date)
    return defaults


def _fail_before_detect(
    scenario_id: str,
    picker: str,
    base_scenario: str,
    detail: str,
    options: RunOptions,
) -> ExecutionResult:
    """detect 前に失敗した場合の結果（detect ログ1件のみ）を返す。"""
    recorder = _FlowRecorder(scenario_id, picker, options)
    recorder.push("detect", "detection_failed", detail)
    return ExecutionResult(
        scenario_id=scenario_id,
        picker_type=picker,
        base_scenario=base_scenario,
        success=False,
        failure_reason="detection_failed",
        logs=tuple(recorder.logs),
    )
