"""
シナリオ実行エンジンテスト — run_picker_scenario のステップ記録と失敗分類

インメモリ DOM と組み込みレジストリで detect → open → setDate → confirm → validate を
実行し、失敗時に正しい failure_reason で打ち切られることを検証する。
"""

from __future__ import annotations

import datetime as dt
import logging

from hypothesis import given, settings
from hypothesis import strategies as st

from conftest import page_markups
from pickerkit.dom.html import HtmlDocument
from pickerkit.engine import (
    ExecutionResult,
    RunOptions,
    ScenarioCatalog,
    ScenarioEntry,
    ScenarioMetadata,
    StepLog,
    all_scenario_ids,
    run_picker_scenario,
)
from pickerkit.registry import PickerRegistry, picker_registry

TODAY = dt.date(2024, 3, 15)
ALL_STEPS = ["detect", "open", "setDate", "confirm", "validate"]


class _ExplodingValidateRegistry(PickerRegistry):
    def validate(self, context):
        raise RuntimeError("validate exploded")


class _ExplodingDetectRegistry(PickerRegistry):
    def detect(self, scope=None):
        raise RuntimeError("detect exploded")


def _expose_set_date(document: HtmlDocument, value_for=None) -> list[dt.date]:
    """#when に _flatpickr.setDate を公開し、呼び出された日付のリストを返す。"""
    el = document.query_selector("#when")
    calls: list[dt.date] = []

    def set_date(value: dt.date) -> None:
        calls.append(value)
        el.value = value_for(value) if value_for else value.isoformat()

    el.expose("_flatpickr.setDate", set_date)
    return calls


# ---------------------------------------------------------------------------
# 成功パス
# ---------------------------------------------------------------------------

class TestRunSuccess:
    """成功パスのテスト。"""

    def test_flatpickr_input_fallback(self, flatpickr_document, today):
        """API 未初期化の flatpickr でも入力欄への書き込みで成功すること。"""
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document), today=today,
        )
        assert result.success is True
        assert result.failure_reason is None
        assert result.picker_type == "FLATPICKR"
        assert result.base_scenario == "DS1"
        assert [log.strategy for log in result.logs] == ALL_STEPS
        assert all(log.outcome == "success" for log in result.logs)
        assert flatpickr_document.query_selector("#when").value == "2024-03-15"
        assert result.detection.confidence == 0.85
        assert result.validation.ok

    def test_api_receives_range(self, flatpickr_document, today):
        """範囲シナリオでも終了日用の入力欄が無ければ API には開始日のみ渡すこと。"""
        calls = _expose_set_date(flatpickr_document)
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document), today=today,
        )
        assert result.success
        assert calls == [dt.date(2024, 3, 9)]

    def test_month_year_defaults(self, flatpickr_document, today):
        """DS4 では今月の1日が開始日として API に渡されること。"""
        calls = _expose_set_date(flatpickr_document)
        result = run_picker_scenario(
            "DS4-FLATPICKR", RunOptions(scope=flatpickr_document), today=today,
        )
        assert result.success
        assert calls == [dt.date(2024, 3, 1)]

    def test_start_date_only_is_single_day(self, flatpickr_document, today):
        """start_date のみ指定すると単一日付として設定されること。"""
        calls = _expose_set_date(flatpickr_document)
        options = RunOptions(scope=flatpickr_document, start_date=dt.date(2024, 3, 20))
        result = run_picker_scenario("DS1-FLATPICKR", options, today=today)
        assert result.success
        assert calls == [dt.date(2024, 3, 20)]

    def test_end_date_only_keeps_default_start(self, flatpickr_document, today):
        """end_date のみ指定すると開始日は既定値になること。"""
        calls = _expose_set_date(flatpickr_document)
        options = RunOptions(scope=flatpickr_document, end_date=dt.date(2024, 3, 12))
        result = run_picker_scenario("DS1-FLATPICKR", options, today=today)
        assert result.success
        assert calls == [dt.date(2024, 3, 9)]

    def test_registry_default_scope(self, flatpickr_document, today):
        """scope 省略時はレジストリの default_scope を使うこと。"""
        registry = PickerRegistry(default_scope=flatpickr_document)
        result = run_picker_scenario("DS1-FLATPICKR", registry=registry, today=today)
        assert result.success

    def test_custom_catalog(self, flatpickr_document, today):
        """追加したシナリオもメタデータの base_scenario で実行されること。"""
        catalog = ScenarioCatalog.builtin().extended([
            ScenarioEntry(
                scenario_id="custom-flatpickr",
                display_name="Custom",
                metadata=ScenarioMetadata(base_scenario="DS5", picker_type="FLATPICKR"),
            )
        ])
        calls = _expose_set_date(flatpickr_document)
        result = run_picker_scenario(
            "custom-flatpickr", RunOptions(scope=flatpickr_document),
            scenarios=catalog, today=today,
        )
        assert result.success
        assert result.base_scenario == "DS5"
        assert calls == [dt.date(2023, 4, 1)]


# ---------------------------------------------------------------------------
# detect 前後の失敗
# ---------------------------------------------------------------------------

class TestRunDetectionFailures:
    """detection_failed の分類テスト。"""

    def test_unknown_scenario(self, flatpickr_document):
        """未知のシナリオ ID は detect ログ1件で失敗すること。"""
        result = run_picker_scenario("DS9-NOPE", RunOptions(scope=flatpickr_document))
        assert result.success is False
        assert result.failure_reason == "detection_failed"
        assert result.picker_type == "unknown"
        assert result.base_scenario == ""
        assert len(result.logs) == 1
        assert result.logs[0].strategy == "detect"
        assert result.logs[0].detail == "Scenario not found"

    def test_empty_catalog_is_not_replaced(self, flatpickr_document, today):
        """空のカタログを渡した場合は組み込みシナリオに置き換えないこと。"""
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document),
            scenarios=ScenarioCatalog(), today=today,
        )
        assert result.success is False
        assert result.failure_reason == "detection_failed"
        assert result.picker_type == "unknown"
        assert result.logs[0].detail == "Scenario not found"

    def test_non_picker_scenario(self, flatpickr_document):
        """ピッカー種別を持たないシナリオは実行されないこと。"""
        result = run_picker_scenario("presets", RunOptions(scope=flatpickr_document))
        assert result.failure_reason == "detection_failed"
        assert result.picker_type == "presets"
        assert result.logs[0].detail == "Not a picker-specific scenario"

    def test_no_picker_in_scope(self, make_document, today):
        """ピッカーが無ければ detect ログ1件で失敗すること。"""
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=make_document("<p>plain</p>")), today=today,
        )
        assert result.failure_reason == "detection_failed"
        assert len(result.logs) == 1
        assert result.logs[0].outcome == "detection_failed"
        assert result.logs[0].detail == "No picker found in scope"
        assert result.detection is None

    def test_no_scope_at_all(self, today):
        """scope も default_scope も無ければ detection_failed になること。"""
        result = run_picker_scenario("DS1-FLATPICKR", RunOptions(), today=today)
        assert result.failure_reason == "detection_failed"
        assert result.logs[0].detail == "No picker found in scope"

    def test_type_mismatch(self, flatpickr_document, today):
        """別種別のピッカーを検出した場合に期待値と実際の値を記録すること。"""
        result = run_picker_scenario(
            "DS1-PIKADAY", RunOptions(scope=flatpickr_document), today=today,
        )
        assert result.failure_reason == "detection_failed"
        assert len(result.logs) == 1
        assert result.logs[0].detail == "Expected PIKADAY, found FLATPICKR"
        assert result.detection.picker_type == "FLATPICKR"

    def test_detect_raises(self, flatpickr_document, today):
        """detect の例外は detection_failed に分類されること。"""
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document),
            registry=_ExplodingDetectRegistry(), today=today,
        )
        assert result.failure_reason == "detection_failed"
        assert result.logs[0].detail == "detect exploded"


# ---------------------------------------------------------------------------
# 操作・検証の失敗
# ---------------------------------------------------------------------------

class TestRunLaterFailures:
    """interaction_failed / validation_failed / silent_failure の分類テスト。"""

    def test_open_failure_stops_flow(self, make_document, today):
        """open に失敗したら以降のステップを実行しないこと。"""
        doc = make_document('<div id="ui-datepicker-div" class="ui-datepicker"></div>')
        result = run_picker_scenario("DS1-JQUERY_UI", RunOptions(scope=doc), today=today)
        assert result.failure_reason == "interaction_failed"
        assert [(log.strategy, log.outcome) for log in result.logs] == [
            ("detect", "success"),
            ("open", "interaction_failed"),
        ]
        assert "focus_input" in result.logs[-1].detail
        assert result.validation is None

    def test_picker_reports_invalid(self, flatpickr_document, today):
        """ピッカー自身の検証が無効なら validation_failed になること。"""
        el = flatpickr_document.query_selector("#when")
        el.expose("_flatpickr.setDate", lambda value: None)
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document), today=today,
        )
        assert result.failure_reason == "validation_failed"
        assert result.logs[-1].strategy == "validate"
        assert result.logs[-1].detail == "入力欄が空です"
        assert result.validation.input_value_updated is False
        assert result.validation.model_updated is False
        assert result.validation.payload_correct is False

    def test_payload_mismatch(self, flatpickr_document, today):
        """入力欄の日付が期待値と異なれば validation_failed になること。"""
        _expose_set_date(flatpickr_document, value_for=lambda value: "2023-01-01")
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document), today=today,
        )
        assert result.failure_reason == "validation_failed"
        assert result.logs[-1].detail == "Input/model/payload check failed"
        assert result.validation.input_value_updated is True
        assert result.validation.payload_correct is False

    def test_validate_raises(self, flatpickr_document, today):
        """validate の例外は silent_failure に分類されること。"""
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document),
            registry=_ExplodingValidateRegistry(), today=today,
        )
        assert result.failure_reason == "silent_failure"
        assert [log.strategy for log in result.logs] == ALL_STEPS
        assert result.logs[-1].outcome == "silent_failure"
        assert result.logs[-1].detail == "validate exploded"


# ---------------------------------------------------------------------------
# on_step コールバック
# ---------------------------------------------------------------------------

class TestOnStep:
    """on_step コールバックのテスト。"""

    def test_called_in_order(self, flatpickr_document, today):
        """ログ追加のたびに同じ StepLog で呼ばれること。"""
        seen: list[StepLog] = []
        options = RunOptions(scope=flatpickr_document, on_step=seen.append)
        result = run_picker_scenario("DS1-FLATPICKR", options, today=today)
        assert seen == list(result.logs)

    def test_called_for_early_failure(self, flatpickr_document):
        """detect 前の失敗でもコールバックが呼ばれること。"""
        seen: list[StepLog] = []
        run_picker_scenario("nope", RunOptions(scope=flatpickr_document, on_step=seen.append))
        assert [log.strategy for log in seen] == ["detect"]

    def test_callback_error_does_not_break_run(self, flatpickr_document, today, caplog):
        """コールバックの例外がログに記録され、実行は継続すること。"""

        def explode(log: StepLog) -> None:
            raise ValueError("callback failed")

        options = RunOptions(scope=flatpickr_document, on_step=explode)
        with caplog.at_level(logging.ERROR, logger="pickerkit.engine.executor"):
            result = run_picker_scenario("DS1-FLATPICKR", options, today=today)
        assert result.success
        assert len(result.logs) == 5
        assert "on_step コールバックでエラーが発生しました" in caplog.text


# ---------------------------------------------------------------------------
# 結果のシリアライズ
# ---------------------------------------------------------------------------

class TestResultToDict:
    """ExecutionResult.to_dict のテスト。"""

    def test_success_dict(self, flatpickr_document, today):
        """JSON 用の辞書にキャメルケースのキーで出力されること。"""
        result = run_picker_scenario(
            "DS1-FLATPICKR", RunOptions(scope=flatpickr_document), today=today,
        )
        data = result.to_dict()
        assert data["scenarioId"] == "DS1-FLATPICKR"
        assert data["success"] is True
        assert "failureReason" not in data
        assert data["detection"] == {"pickerType": "FLATPICKR", "confidence": 0.85}
        assert data["validation"]["payloadCorrect"] is True
        assert [log["strategy"] for log in data["logs"]] == ALL_STEPS

    def test_failure_dict(self, flatpickr_document):
        """失敗時は failureReason と detail を含むこと。"""
        data = run_picker_scenario("DS9-NOPE", RunOptions(scope=flatpickr_document)).to_dict()
        assert data["failureReason"] == "detection_failed"
        assert data["logs"][0]["detail"] == "Scenario not found"


# ---------------------------------------------------------------------------
# Property: 実行は例外を送出せず、失敗理由と最後のログが一致する
# ---------------------------------------------------------------------------

class TestRunContract:
    """任意のシナリオ ID と DOM に対する実行結果の契約テスト。"""

    @given(
        scenario_id=st.sampled_from(all_scenario_ids()) | st.text(max_size=12),
        markup=page_markups(),
    )
    @settings(max_examples=40, deadline=None)
    def test_result_contract(self, scenario_id, markup):
        """常に ExecutionResult を返し、失敗理由と最後のログの outcome が一致すること。"""
        doc = HtmlDocument.from_html(f"<html><body>{markup}</body></html>")
        result = run_picker_scenario(
            scenario_id, RunOptions(scope=doc), registry=picker_registry, today=TODAY,
        )
        assert isinstance(result, ExecutionResult)
        assert result.logs
        assert result.logs[0].strategy == "detect"
        if result.success:
            assert result.failure_reason is None
            assert all(log.outcome == "success" for log in result.logs)
        else:
            assert result.failure_reason is not None
            assert result.logs[-1].outcome == result.failure_reason
            assert all(log.outcome == "success" for log in result.logs[:-1])
