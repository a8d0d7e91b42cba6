"""
PickerRegistry テスト — 検出・open / set_date / confirm / validate の単体テスト

インメモリ DOM 上でストラテジーのディスパッチとフォールバック、
検出の信頼度・同点決着を検証する。
"""

from __future__ import annotations

import datetime as dt

import pytest
from hypothesis import given, settings

from conftest import (
    FLATPICKR_INPUT,
    MUI_POPPER_ONLY_ROOT,
    PIKADAY_PANEL,
    REACT_DAY_PICKER_INLINE,
    page_markups,
    shadow_wrap,
    srcdoc_iframe,
)
from pickerkit.dom.html import HtmlDocument
from pickerkit.registry import (
    PickerInteractionError,
    PickerRegistry,
    UnknownPickerTypeError,
    format_date,
    picker_registry,
)
from pickerkit.registry.types import (
    ApiOpen,
    ApiSetDate,
    ApiValueValidate,
    AriaSelectedValidate,
    BlurOrCloseConfirm,
    ClickTriggerOpen,
    DetectionHeuristics,
    DetectionResult,
    FallbackStrategies,
    InputHasValueValidate,
    InputValueSetDate,
    NoConfirm,
    PickerConfig,
    TypeThenSelectSetDate,
)


def _simple_config(picker_type: str, selector: str, **overrides) -> PickerConfig:
    fields = dict(
        picker_type=picker_type,
        detection=DetectionHeuristics(selectors=(selector,)),
        open_strategy=ClickTriggerOpen(),
        set_date_strategy=InputValueSetDate(),
        confirm_strategy=NoConfirm(),
        validate_strategy=InputHasValueValidate(),
        supported_base_scenarios=("DS1",),
    )
    fields.update(overrides)
    return PickerConfig(**fields)


# ---------------------------------------------------------------------------
# 日付整形
# ---------------------------------------------------------------------------

class TestFormatDate:
    """format_date のテスト。"""

    def test_default_format(self):
        """既定書式が yyyy-MM-dd であること。"""
        assert format_date(dt.date(2024, 3, 9)) == "2024-03-09"

    def test_us_format(self):
        """MM/dd/yyyy 書式で整形できること。"""
        assert format_date(dt.date(2024, 3, 9), "MM/dd/yyyy") == "03/09/2024"


# ---------------------------------------------------------------------------
# カタログ参照
# ---------------------------------------------------------------------------

class TestRegistryCatalogAccess:
    """カタログ参照 API のテスト。"""

    def test_names(self):
        """names が 21 種別をカタログ順で返すこと。"""
        assert picker_registry.names[0] == "FLATPICKR"
        assert len(picker_registry.names) == 21

    def test_has(self):
        """has が登録状況を返すこと。"""
        assert picker_registry.has("MUI") is True
        assert picker_registry.has("NOPE") is False

    def test_get_config_unknown(self):
        """未登録種別で UnknownPickerTypeError（KeyError 互換）を送出すること。"""
        with pytest.raises(KeyError) as exc_info:
            picker_registry.get_config("NOPE")
        assert isinstance(exc_info.value, UnknownPickerTypeError)
        assert "NOPE" in str(exc_info.value)
        assert "FLATPICKR" in str(exc_info.value)

    def test_duplicate_configs_rejected(self):
        """同じ種別を2つ登録すると ValueError を送出すること。"""
        config = _simple_config("FLATPICKR", ".a")
        with pytest.raises(ValueError):
            PickerRegistry((config, config))


# ---------------------------------------------------------------------------
# 検出
# ---------------------------------------------------------------------------

class TestDetect:
    """detect のテスト。"""

    def test_no_picker(self, make_document):
        """ピッカーが無ければ None を返すこと。"""
        assert picker_registry.detect(make_document("<p>hello</p>")) is None

    def test_flatpickr_input(self, flatpickr_document):
        """flatpickr-input を FLATPICKR として検出すること。"""
        detection = picker_registry.detect(flatpickr_document)
        assert detection.picker_type == "FLATPICKR"
        assert detection.confidence == pytest.approx(0.85)
        assert detection.root is flatpickr_document
        assert detection.trigger_element is flatpickr_document.query_selector("#when")

    def test_global_bonus(self, make_document):
        """window のグローバルが信頼度を 0.1 上げること。"""
        doc = make_document(FLATPICKR_INPUT, globals={"flatpickr": object()})
        assert picker_registry.detect(doc).confidence == pytest.approx(0.95)

    def test_data_attribute_present(self, make_document):
        """期待する data 属性があれば減点されないこと。"""
        doc = make_document('<input class="flatpickr-input" data-fp-type="range">')
        assert picker_registry.detect(doc).confidence == pytest.approx(0.9)

    def test_class_pattern_penalty(self, make_document):
        """採用要素がクラスパターンに一致しなければ 0.1 減点されること。"""
        doc = make_document('<div data-fp-type="range"></div>')
        detection = picker_registry.detect(doc)
        assert detection.picker_type == "FLATPICKR"
        assert detection.confidence == pytest.approx(0.8)

    def test_scope_none_uses_default_scope(self, flatpickr_document):
        """scope 省略時に default_scope を使うこと。"""
        registry = PickerRegistry(default_scope=flatpickr_document)
        assert registry.detect().picker_type == "FLATPICKR"

    def test_scope_none_without_default(self):
        """scope も default_scope も無ければ None を返すこと。"""
        assert PickerRegistry().detect() is None

    def test_detect_in_shadow_root(self, make_document):
        """3段の Shadow DOM 内のピッカーを検出すること。"""
        doc = make_document(shadow_wrap(FLATPICKR_INPUT, depth=3))
        detection = picker_registry.detect(doc)
        assert detection.picker_type == "FLATPICKR"
        assert detection.root.node_kind == "shadow-root"

    def test_detect_in_iframe(self, make_document):
        """同一オリジン iframe 内のピッカーを検出すること。"""
        doc = make_document(srcdoc_iframe(FLATPICKR_INPUT))
        detection = picker_registry.detect(doc)
        assert detection.picker_type == "FLATPICKR"
        assert detection.root is not doc
        assert detection.root.node_kind == "document"

    def test_higher_confidence_in_later_root_wins(self, make_document):
        """後のルートでも信頼度が高ければ採用されること。"""
        doc = make_document('<div data-fp-type="x"></div>' + shadow_wrap(FLATPICKR_INPUT))
        detection = picker_registry.detect(doc)
        assert detection.root.node_kind == "shadow-root"
        assert detection.confidence == pytest.approx(0.85)

    def test_tie_keeps_earlier_root(self, make_document):
        """同点ならルートの発見順で先のものを採用すること。"""
        doc = make_document(FLATPICKR_INPUT + shadow_wrap(FLATPICKR_INPUT))
        assert picker_registry.detect(doc).root is doc

    def test_tie_keeps_catalog_order(self, make_document):
        """同じルートで同点ならカタログ順で先のものを採用すること。"""
        doc = make_document('<div class="cal"></div>')
        first = _simple_config("PIKADAY", ".cal")
        second = _simple_config("KENDO", ".cal")
        assert PickerRegistry((first, second)).detect(doc).picker_type == "PIKADAY"
        assert PickerRegistry((second, first)).detect(doc).picker_type == "KENDO"

    def test_invalid_selector_skipped(self, make_document):
        """不正なセレクタは読み飛ばし、例外を送出しないこと。"""
        doc = make_document('<div class="cal"></div>')
        registry = PickerRegistry((
            _simple_config("PIKADAY", "[[["),
            _simple_config("KENDO", ".cal"),
        ))
        assert registry.detect(doc).picker_type == "KENDO"

    def test_element_scope(self, make_document):
        """要素をスコープにしても所有ドキュメント全体を検索すること。"""
        doc = make_document('<p id="p"></p>' + FLATPICKR_INPUT)
        assert picker_registry.detect(doc.query_selector("#p")).picker_type == "FLATPICKR"

    @settings(max_examples=40, deadline=None)
    @given(markup=page_markups())
    def test_detection_is_idempotent(self, markup):
        """変化の無い DOM への繰り返し検出が同じ結果（同じルート）を返すこと。"""
        doc = HtmlDocument.from_html(f"<html><body>{markup}</body></html>")
        first = picker_registry.detect(doc)
        second = picker_registry.detect(doc)
        assert first == second
        if first is not None:
            assert first.root is second.root
            assert 0.0 <= first.confidence <= 1.0


# ---------------------------------------------------------------------------
# open
# ---------------------------------------------------------------------------

class TestOpen:
    """open のテスト。"""

    def test_focus_input(self, flatpickr_document):
        """focus_input でトリガー要素にフォーカスすること。"""
        detection = picker_registry.detect(flatpickr_document)
        picker_registry.open(detection)
        assert flatpickr_document.active_element is flatpickr_document.query_selector("#when")

    def test_fallback_open(self, make_document):
        """主ストラテジーの対象が無ければフォールバックでクリックすること。"""
        doc = make_document(MUI_POPPER_ONLY_ROOT)
        clicks: list[str] = []
        doc.query_selector("#mui-root").add_event_listener("click", lambda e: clicks.append("root"))

        detection = picker_registry.detect(doc)
        assert detection.picker_type == "MUI"
        picker_registry.open(detection)
        assert clicks == ["root"]
        assert doc.active_element is None

    def test_already_inline(self, make_document):
        """already_inline は操作なしで成功すること。"""
        doc = make_document(REACT_DAY_PICKER_INLINE)
        detection = picker_registry.detect(doc)
        assert detection.picker_type == "REACT_DAY_PICKER"
        picker_registry.open(detection)

    def test_selector_strategy_does_not_use_detected_element(self, make_document):
        """セレクタを持つストラテジーは検出要素に頼らないこと。"""
        doc = make_document('<div id="ui-datepicker-div" class="ui-datepicker"></div>')
        detection = picker_registry.detect(doc)
        assert detection.picker_type == "JQUERY_UI"
        with pytest.raises(PickerInteractionError) as exc_info:
            picker_registry.open(detection)
        assert exc_info.value.step == "open"
        assert exc_info.value.attempted == ["focus_input"]

    def test_api_open(self, make_document):
        """api_open で trigger_selector の要素の API メソッドを呼び出すこと。"""
        doc = make_document('<div class="cal"></div><button id="opener">open</button>')
        calls: list[str] = []
        doc.query_selector("#opener").expose("picker.open", lambda: calls.append("open"))
        registry = PickerRegistry((
            _simple_config(
                "KENDO", ".cal",
                open_strategy=ApiOpen(api_method="picker.open", trigger_selector="#opener"),
            ),
        ))
        registry.open(registry.detect(doc))
        assert calls == ["open"]

    def test_api_open_without_method_falls_back(self, make_document):
        """API が公開されていなければフォールバックで開くこと。"""
        doc = make_document('<div class="cal"></div>')
        clicks: list[str] = []
        doc.query_selector(".cal").add_event_listener("click", lambda e: clicks.append("cal"))
        registry = PickerRegistry((
            _simple_config(
                "KENDO", ".cal",
                open_strategy=ApiOpen(api_method="picker.open"),
                fallback_strategies=FallbackStrategies(open=(ClickTriggerOpen(),)),
            ),
        ))
        registry.open(registry.detect(doc))
        assert clicks == ["cal"]

    def test_unknown_picker_type(self, flatpickr_document):
        """未登録種別のコンテキストで UnknownPickerTypeError を送出すること。"""
        context = DetectionResult(picker_type="NOPE", root=flatpickr_document)
        with pytest.raises(UnknownPickerTypeError):
            picker_registry.open(context)


# ---------------------------------------------------------------------------
# set_date
# ---------------------------------------------------------------------------

class TestSetDate:
    """set_date のテスト。"""

    def test_api_set_date(self, flatpickr_document):
        """API が公開されていれば開始日で呼び出し、終了日用の入力欄が無ければ終了日は渡さないこと。"""
        el = flatpickr_document.query_selector("#when")
        calls: list[dt.date] = []
        el.expose("_flatpickr.setDate", calls.append)

        detection = picker_registry.detect(flatpickr_document)
        picker_registry.set_date(detection, dt.date(2024, 3, 9), dt.date(2024, 3, 15))
        assert calls == [dt.date(2024, 3, 9)]
        assert el.value == ""

    def test_api_set_date_end_input(self, make_document):
        """end_input_selector の要素には終了日で API を呼び出すこと。"""
        doc = make_document('<input class="cal" id="from"><input id="to">')
        calls: list[tuple[str, dt.date]] = []
        for element_id in ("from", "to"):
            doc.query_selector(f"#{element_id}").expose(
                "picker.setDate", lambda d, element_id=element_id: calls.append((element_id, d)),
            )
        registry = PickerRegistry((
            _simple_config(
                "KENDO", ".cal",
                set_date_strategy=ApiSetDate(api_method="picker.setDate", end_input_selector="#to"),
            ),
        ))
        registry.set_date(registry.detect(doc), dt.date(2024, 3, 9), dt.date(2024, 3, 15))
        assert calls == [("from", dt.date(2024, 3, 9)), ("to", dt.date(2024, 3, 15))]

    def test_type_then_select(self, make_document):
        """入力欄に開始日を書き込み、開始日・終了日のセルをクリックすること。"""
        doc = make_document(
            '<input class="cal" id="typed">'
            '<div class="grid">'
            '<span class="day" data-date="2024-03-09">9</span>'
            '<span class="day" aria-label="Friday 2024-03-15">15</span>'
            '<span class="day" data-date="2024-03-20">20</span>'
            '</div>'
        )
        events: list[tuple[str, str]] = []
        typed = doc.query_selector("#typed")
        for event_type in ("input", "change"):
            typed.add_event_listener(event_type, lambda e: events.append((e.type, e.target.value)))
        clicked: list[str] = []
        for cell in doc.query_selector_all(".day"):
            cell.add_event_listener("click", lambda e: clicked.append(e.target.text_content))

        registry = PickerRegistry((
            _simple_config(
                "KENDO", ".cal",
                set_date_strategy=TypeThenSelectSetDate(input_selector="#typed", day_selector=".day"),
            ),
        ))
        registry.set_date(registry.detect(doc), dt.date(2024, 3, 9), dt.date(2024, 3, 15))
        assert typed.value == "2024-03-09"
        assert events == [("input", "2024-03-09"), ("change", "2024-03-09")]
        assert clicked == ["9", "15"]

    def test_type_then_select_without_input(self, make_document):
        """入力欄が無ければ PickerInteractionError を送出すること。"""
        doc = make_document('<div class="cal"></div>')
        registry = PickerRegistry((
            _simple_config(
                "KENDO", ".cal",
                set_date_strategy=TypeThenSelectSetDate(input_selector="#typed", day_selector=".day"),
            ),
        ))
        with pytest.raises(PickerInteractionError) as exc_info:
            registry.set_date(registry.detect(doc), dt.date(2024, 3, 9))
        assert exc_info.value.attempted == ["type_then_select"]

    def test_input_value_fallback(self, flatpickr_document):
        """API が無ければ入力欄に書き込み、input / change を発火すること。"""
        el = flatpickr_document.query_selector("#when")
        events: list[tuple[str, str]] = []
        for event_type in ("input", "change"):
            el.add_event_listener(event_type, lambda e: events.append((e.type, e.target.value)))

        detection = picker_registry.detect(flatpickr_document)
        picker_registry.set_date(detection, dt.date(2024, 3, 9), dt.date(2024, 3, 15))
        assert el.value == "2024-03-15"
        assert events == [
            ("input", "2024-03-09"),
            ("change", "2024-03-09"),
            ("input", "2024-03-15"),
            ("change", "2024-03-15"),
        ]

    def test_input_value_single_date(self, flatpickr_document):
        """終了日が無ければ開始日だけを書き込むこと。"""
        detection = picker_registry.detect(flatpickr_document)
        picker_registry.set_date(detection, dt.date(2024, 3, 9))
        assert flatpickr_document.query_selector("#when").value == "2024-03-09"

    def test_click_day_by_data_date_and_aria_label(self, make_document):
        """data-date と aria-label で日付セルを探してクリックすること。"""
        doc = make_document(PIKADAY_PANEL)
        clicked: list[str] = []
        for cell in doc.query_selector_all(".pika-day"):
            cell.add_event_listener("click", lambda e: clicked.append(e.target.text_content))

        detection = picker_registry.detect(doc)
        assert detection.picker_type == "PIKADAY"
        picker_registry.set_date(detection, dt.date(2024, 3, 9), dt.date(2024, 3, 15))
        assert clicked == ["9", "15"]

    def test_click_day_skips_disabled(self, make_document):
        """day_selector で除外されたセルはクリックしないこと。"""
        doc = make_document(PIKADAY_PANEL)
        detection = picker_registry.detect(doc)
        with pytest.raises(PickerInteractionError) as exc_info:
            picker_registry.set_date(detection, dt.date(2024, 3, 10))
        assert exc_info.value.step == "set_date"
        assert exc_info.value.attempted == ["click_day"]

    def test_click_day_end_is_best_effort(self, make_document):
        """終了日のセルが無くても開始日のクリックで成功すること。"""
        doc = make_document(PIKADAY_PANEL)
        detection = picker_registry.detect(doc)
        picker_registry.set_date(detection, dt.date(2024, 3, 9), dt.date(2024, 4, 1))


# ---------------------------------------------------------------------------
# confirm
# ---------------------------------------------------------------------------

class TestConfirm:
    """confirm のテスト。"""

    def test_press_enter_fallback(self, flatpickr_document):
        """確定ボタンが無ければアクティブ要素に Enter を送ること。"""
        el = flatpickr_document.query_selector("#when")
        keys: list[str] = []
        el.add_event_listener("keydown", lambda e: keys.append(e.detail.get("key")))

        detection = picker_registry.detect(flatpickr_document)
        picker_registry.open(detection)
        picker_registry.confirm(detection)
        assert keys == ["Enter"]

    def test_nothing_to_confirm(self, flatpickr_document):
        """ボタンもアクティブ要素も無ければ PickerInteractionError を送出すること。"""
        detection = picker_registry.detect(flatpickr_document)
        with pytest.raises(PickerInteractionError) as exc_info:
            picker_registry.confirm(detection)
        assert exc_info.value.attempted == ["click_done", "press_enter"]

    def test_click_apply_fallback_selector(self, make_document):
        """主セレクタが無ければ fallback_button_selector をクリックすること。"""
        doc = make_document('<div class="daterangepicker"></div><button class="applyBtn">Apply</button>')
        clicks: list[str] = []
        doc.query_selector(".applyBtn").add_event_listener("click", lambda e: clicks.append("apply"))
        detection = picker_registry.detect(doc)
        assert detection.picker_type == "DATERANGEPICKER"
        picker_registry.confirm(detection)
        assert clicks == ["apply"]

    def test_blur_or_close_clicks_closer(self, make_document):
        """selector の要素があればクリックして閉じること。"""
        doc = make_document('<input class="cal"><button id="close">x</button>')
        clicks: list[str] = []
        doc.query_selector("#close").add_event_listener("click", lambda e: clicks.append("close"))
        registry = PickerRegistry((
            _simple_config("KENDO", ".cal", confirm_strategy=BlurOrCloseConfirm(selector="#close")),
        ))
        registry.confirm(registry.detect(doc))
        assert clicks == ["close"]

    def test_blur_or_close_blurs_active(self, make_document):
        """閉じる要素が無ければアクティブ要素をブラーすること。"""
        doc = make_document('<input class="cal">')
        el = doc.query_selector(".cal")
        blurs: list[str] = []
        el.add_event_listener("blur", lambda e: blurs.append("blur"))
        registry = PickerRegistry((
            _simple_config("KENDO", ".cal", confirm_strategy=BlurOrCloseConfirm(selector="#close")),
        ))
        detection = registry.detect(doc)
        el.focus()
        registry.confirm(detection)
        assert blurs == ["blur"]
        assert doc.active_element is None

    def test_blur_or_close_nothing_active(self, make_document):
        """閉じる要素もアクティブ要素も無ければ PickerInteractionError を送出すること。"""
        doc = make_document('<input class="cal">')
        registry = PickerRegistry((
            _simple_config("KENDO", ".cal", confirm_strategy=BlurOrCloseConfirm()),
        ))
        with pytest.raises(PickerInteractionError) as exc_info:
            registry.confirm(registry.detect(doc))
        assert exc_info.value.step == "confirm"
        assert exc_info.value.attempted == ["blur_or_close"]

    def test_none_confirm(self, make_document):
        """none は常に成功すること。"""
        doc = make_document(PIKADAY_PANEL)
        picker_registry.confirm(picker_registry.detect(doc))


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------

class TestValidate:
    """validate のテスト。"""

    def test_input_empty(self, flatpickr_document):
        """入力欄が空なら無効と判定すること。"""
        result = picker_registry.validate(picker_registry.detect(flatpickr_document))
        assert result.valid is False
        assert result.message == "入力欄が空です"

    def test_input_has_value(self, flatpickr_document):
        """入力欄に値があれば有効と判定し、値を返すこと。"""
        flatpickr_document.query_selector("#when").value = " 2024-03-15 "
        result = picker_registry.validate(picker_registry.detect(flatpickr_document))
        assert result.valid is True
        assert result.value == "2024-03-15"

    def test_aria_selected(self, make_document):
        """選択済みセルがあれば有効と判定すること。"""
        doc = make_document(REACT_DAY_PICKER_INLINE)
        result = picker_registry.validate(picker_registry.detect(doc))
        assert result.valid is True
        assert result.value == "2024-03-02"

    def test_unknown_picker_type(self, flatpickr_document):
        """未登録種別は例外ではなく無効として返すこと。"""
        result = picker_registry.validate(DetectionResult(picker_type="NOPE", root=flatpickr_document))
        assert result.valid is False
        assert "NOPE" in result.message

    def test_validate_fallback(self, flatpickr_document):
        """主ストラテジーが無効ならフォールバックの結果を返すこと。"""
        config = _simple_config(
            "FLATPICKR", ".flatpickr-input",
            validate_strategy=AriaSelectedValidate(selected_day_selector=".selected"),
            fallback_strategies=FallbackStrategies(validate=(InputHasValueValidate(),)),
        )
        registry = PickerRegistry((config,))
        detection = registry.detect(flatpickr_document)

        invalid = registry.validate(detection)
        assert invalid.valid is False
        assert invalid.message == "選択済みの日付セルが見つかりません"

        flatpickr_document.query_selector("#when").value = "2024-03-15"
        assert registry.validate(detection).valid is True

    def test_api_value(self, make_document):
        """api_value はトリガー要素の value が空でなければ有効と判定すること。"""
        doc = make_document('<input class="cal" value=" 2024-03-09 ">')
        registry = PickerRegistry((
            _simple_config("KENDO", ".cal", validate_strategy=ApiValueValidate()),
        ))
        result = registry.validate(registry.detect(doc))
        assert result.valid is True
        assert result.value == "2024-03-09"

    def test_api_value_empty(self, make_document):
        """api_value はトリガー要素の value が空なら無効と判定すること。"""
        doc = make_document('<input class="cal">')
        registry = PickerRegistry((
            _simple_config("KENDO", ".cal", validate_strategy=ApiValueValidate()),
        ))
        result = registry.validate(registry.detect(doc))
        assert result.valid is False
        assert result.message == "value が空です"
