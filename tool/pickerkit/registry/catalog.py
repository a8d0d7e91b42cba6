"""
ピッカーカタログ — ライブラリごとの検出ヒューリスティクスと操作ストラテジー

1エントリ = 1ライブラリ。ピッカー固有の知識はすべてここにデータとして置き、
レジストリはこのデータだけを見て汎用的に振る舞う。

検出ルール（加算方式）:
  - selectors: 最初に一致した要素を採用し信頼度 0.9 から開始（一致なしなら非検出）
  - class_patterns: 採用要素が一致しなければ -0.1。selectors 未設定時は主検索（0.85）
  - data_attributes: 採用要素が持たなければ -0.05
  - global_check: ルートの window にシンボルがあれば +0.1（上限 1.0）

DOM 構造が環境によって変わるライブラリ（モバイル/デスクトップ、ポータル/インライン）
には fallback_strategies を設定する。
"""

from __future__ import annotations

import re

from .types import (
    AlreadyInlineOpen,
    ApiOpen,
    ApiSetDate,
    ApiValueValidate,
    AriaSelectedValidate,
    BaseScenarioId,
    BlurOrCloseConfirm,
    ClassHasSelectedValidate,
    ClickApplyConfirm,
    ClickDaySetDate,
    ClickDoneConfirm,
    ClickTriggerOpen,
    DetectionHeuristics,
    FallbackStrategies,
    FocusInputOpen,
    FocusThenClickOpen,
    InputHasValueValidate,
    InputValueSetDate,
    NoConfirm,
    PickerConfig,
    PressEnterConfirm,
)

ALL_BASE_SCENARIOS: tuple[BaseScenarioId, ...] = ("DS1", "DS2", "DS3", "DS4", "DS5", "DS6")
RANGE_BASE_SCENARIOS: tuple[BaseScenarioId, ...] = ("DS1", "DS2", "DS3", "DS6")


# ---------------------------------------------------------------------------
# バニラ JS / jQuery 系
# ---------------------------------------------------------------------------

_FLATPICKR = PickerConfig(
    picker_type="FLATPICKR",
    detection=DetectionHeuristics(
        selectors=(".flatpickr", "[data-fp-type]", ".flatpickr-input"),
        class_patterns=("flatpickr",),
        data_attributes=("fp-type", "data-fp-type"),
        global_check="flatpickr",
    ),
    open_strategy=FocusInputOpen(
        trigger_selector=".flatpickr-input, input.flatpickr",
        notes="カレンダーは .flatpickr-calendar としてインラインまたはポータルに描画される",
    ),
    set_date_strategy=ApiSetDate(
        api_method="_flatpickr.setDate",
        notes="インスタンスは入力要素の _flatpickr に保持される",
    ),
    confirm_strategy=ClickDoneConfirm(
        button_selector=".flatpickr-day.selected",
        notes="単一日付は日付クリックで閉じる。範囲は終了日のクリックで確定",
    ),
    validate_strategy=InputHasValueValidate(input_selector=".flatpickr-input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        open=(
            ClickTriggerOpen(trigger_selector=".flatpickr-calendar, .flatpickr"),
            ApiOpen(api_method="_flatpickr.open"),
        ),
        set_date=(
            InputValueSetDate(
                input_selector=".flatpickr-input",
                end_input_selector=".flatpickr-input",
                notes="インスタンス未初期化時は値を直接書き込み change を発火する",
            ),
        ),
        confirm=(PressEnterConfirm(),),
    ),
    documentation=(
        "Flatpickr: カレンダーはポータルまたはインラインに描画される。"
        "ウィジェットに埋め込まれた場合は Shadow DOM 内にあり得る。"
        "appendTo / static 指定で DOM 位置が変わるため、全ルートを検索すること。"
    ),
)

_PIKADAY = PickerConfig(
    picker_type="PIKADAY",
    detection=DetectionHeuristics(
        selectors=(".pika-single", ".pika-lendar", '[class*="pika"]'),
        class_patterns=("pika-single", "pika-lendar"),
        global_check="Pikaday",
    ),
    open_strategy=FocusThenClickOpen(
        trigger_selector="input[data-pikaday], .pika-single",
        notes="入力欄に紐づき、開くと .pika-single が表示される",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".pika-day:not(.is-disabled)",
        notes="範囲選択は組み込みではなく、2インスタンスで構成する",
    ),
    confirm_strategy=NoConfirm(notes="日付クリックで選択と同時に閉じる"),
    validate_strategy=ClassHasSelectedValidate(selected_day_selector=".is-selected .pika-day, .pika-day.is-selected"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation=(
        "Pikaday: 軽量。カレンダーは body 直下に追加されることが多い（ポータル相当）。"
        "ページが iframe 内にある場合は親ドキュメント側のルートも検索する。"
    ),
)

_AIR_DATEPICKER = PickerConfig(
    picker_type="AIR_DATEPICKER",
    detection=DetectionHeuristics(
        selectors=(".air-datepicker", ".air-datepicker-body", "[data-air-datepicker]"),
        class_patterns=("air-datepicker",),
        data_attributes=("air-datepicker",),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector=".air-datepicker-input, input[data-air-datepicker]",
        fallback_trigger_selector=".air-datepicker",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".air-datepicker-cell.-day-:not(.-other-month-)",
        notes="セルのクラス名はバージョンにより異なる（-day- が一般的）",
    ),
    confirm_strategy=ClickApplyConfirm(
        button_selector=".air-datepicker-button",
        notes="Apply ボタンは任意。無い場合は選択で確定する",
    ),
    validate_strategy=InputHasValueValidate(input_selector="input[data-air-datepicker]"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        confirm=(NoConfirm(notes="Apply ボタン無しの構成"),),
    ),
    documentation=(
        "Air Datepicker: インラインまたは container 指定。範囲・時刻に対応。"
        "container 要素と body のドロップダウンの両方を確認する。"
    ),
)

_JQUERY_UI = PickerConfig(
    picker_type="JQUERY_UI",
    detection=DetectionHeuristics(
        selectors=(".ui-datepicker", "#ui-datepicker-div", ".hasDatepicker"),
        class_patterns=("ui-datepicker", "hasDatepicker"),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector=".hasDatepicker",
        notes="入力欄に hasDatepicker クラスが付与される。カレンダーは body の #ui-datepicker-div",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".ui-datepicker-calendar td a",
        input_format="MM/dd/yyyy",
        notes="jQuery UI の既定書式。ロケールにより変わる",
    ),
    confirm_strategy=NoConfirm(notes="日付クリックで選択と同時に閉じる"),
    validate_strategy=InputHasValueValidate(input_selector=".hasDatepicker"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        set_date=(InputValueSetDate(input_selector=".hasDatepicker", input_format="MM/dd/yyyy"),),
    ),
    documentation=(
        "jQuery UI Datepicker: body に追加された div に描画される（ポータル）。"
        "アプリが Shadow DOM 内でもピッカーはメインドキュメントにあり得る。"
        "入力欄の .hasDatepicker は安定している。"
    ),
)

_BOOTSTRAP_UX = PickerConfig(
    picker_type="BOOTSTRAP_UX",
    detection=DetectionHeuristics(
        selectors=(".datepicker", ".bootstrap-datetimepicker-widget", ".datepicker-dropdown"),
        class_patterns=("datepicker", "bootstrap-datetimepicker"),
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector='.datepicker input, input[data-provide="datepicker"]',
        fallback_trigger_selector=".input-group-addon, .datepicker",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".datepicker-days tbody td.day:not(.old):not(.new)",
    ),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector='input[data-provide="datepicker"]'),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation=(
        "Bootstrap Datepicker (uxsolutions): ドロップダウンまたはインライン。"
        ".input-group と併用されることが多い。クラス名の候補が多いため、"
        'トリガーは data-provide="datepicker" を優先する。'
    ),
)

_DATERANGEPICKER = PickerConfig(
    picker_type="DATERANGEPICKER",
    detection=DetectionHeuristics(
        selectors=(".daterangepicker", ".drp-calendar", '[class*="daterangepicker"]'),
        class_patterns=("daterangepicker", "drp-calendar"),
        global_check="daterangepicker",
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector='input[name="daterangepicker"], .daterangepicker-input',
        notes="入力欄のクリック・フォーカスで開き、ドロップダウン（ポータル）として描画される",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".daterangepicker .calendar-table td.available",
        notes="範囲は開始日・終了日の順にクリックする",
    ),
    confirm_strategy=ClickApplyConfirm(
        button_selector=".daterangepicker .applyBtn",
        fallback_button_selector=".applyBtn",
    ),
    validate_strategy=InputHasValueValidate(input_selector='input[name="daterangepicker"]'),
    supported_base_scenarios=RANGE_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        set_date=(InputValueSetDate(input_selector='input[name="daterangepicker"]'),),
    ),
    documentation=(
        "DateRangePicker (Dan Grossman): 範囲選択専用。Apply ボタンで確定する。"
        "入力欄の外（ポータル）に描画されるため、body と全ルートで .daterangepicker を探す。"
    ),
)

_LITEPICKER = PickerConfig(
    picker_type="LITEPICKER",
    detection=DetectionHeuristics(
        selectors=(".litepicker", "[data-litepicker]", ".container__main"),
        class_patterns=("litepicker", "container__main"),
        data_attributes=("litepicker",),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector="input[data-litepicker], .litepicker-input",
        notes="container または body に描画される。モバイルでは異なる場合がある",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".day-item:not(.disabled)"),
    confirm_strategy=NoConfirm(notes="範囲は2回目のクリックで確定"),
    validate_strategy=InputHasValueValidate(input_selector="input[data-litepicker]"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation="Litepicker: 軽量な範囲ピッカー。インラインまたはドロップダウン。container と body を確認する。",
)


# ---------------------------------------------------------------------------
# React 系
# ---------------------------------------------------------------------------

_REACT_DATEPICKER = PickerConfig(
    picker_type="REACT_DATEPICKER",
    detection=DetectionHeuristics(
        selectors=(".react-datepicker", ".react-datepicker__month-container", '[class*="react-datepicker"]'),
        class_patterns=("react-datepicker",),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector=".react-datepicker__input-container input",
        notes="既定では React ポータル（document.body）に描画される",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".react-datepicker__day:not(.react-datepicker__day--outside-month)",
    ),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector=".react-datepicker__input-container input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation=(
        "React Datepicker: 既定で body にポータル描画。popperContainer 指定時は特定ノードに描画される。"
        "インラインの順序に依存せず、ドキュメントと全ラッパーで検出する。"
    ),
)

_MUI = PickerConfig(
    picker_type="MUI",
    detection=DetectionHeuristics(
        selectors=(
            ".MuiPickersPopper-root",
            ".MuiDialog-root",
            '[class*="MuiPickers"]',
            '[class*="MuiDatePicker"]',
        ),
        class_patterns=(re.compile("MuiPickers"), re.compile("MuiDatePicker")),
        aria_roles=("dialog", "listbox"),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector='input[aria-label*="date"], .MuiInputBase-input',
        notes="MUI X Date Pickers は Popper / モーダルを使う",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".MuiPickersDay-root:not(.Mui-disabled)"),
    confirm_strategy=ClickApplyConfirm(
        button_selector=".MuiButton-root",
        notes="デスクトップは OK ボタン。モバイルはレイアウトが異なる",
    ),
    validate_strategy=InputHasValueValidate(input_selector=".MuiInputBase-input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        open=(ClickTriggerOpen(trigger_selector=".MuiInputBase-root"),),
        confirm=(NoConfirm(notes="デスクトップ版は選択で確定する"),),
    ),
    documentation=(
        "MUI DatePicker: Popper（ポータル）に描画される。モバイルとデスクトップで"
        "コンポーネントが異なる。ARIA ロールとクラス名は安定している。"
    ),
)

_ANTD = PickerConfig(
    picker_type="ANTD",
    detection=DetectionHeuristics(
        selectors=(".ant-picker", ".ant-picker-dropdown", '[class*="ant-picker"]'),
        class_patterns=("ant-picker",),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector=".ant-picker-input input",
        fallback_trigger_selector=".ant-picker",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".ant-picker-cell-in-view:not(.ant-picker-cell-disabled)",
    ),
    confirm_strategy=NoConfirm(notes="単一日付はクリックで選択。範囲は開始・終了の順に選ぶ"),
    validate_strategy=InputHasValueValidate(input_selector=".ant-picker-input input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation=(
        "Ant Design DatePicker: ドロップダウンは React ポータル（getPopupContainer で変更可）。"
        "オーバーレイのクラスは .ant-picker-dropdown。ポータル先が Shadow 内なら Shadow DOM でも動作する。"
    ),
)

_REACT_DAY_PICKER = PickerConfig(
    picker_type="REACT_DAY_PICKER",
    detection=DetectionHeuristics(
        selectors=(".rdp", ".rdp-day", '[class*="rdp-"]'),
        class_patterns=("rdp", "DayPicker"),
    ),
    open_strategy=AlreadyInlineOpen(
        notes="多くはインライン。ポップオーバー内ならトグルするラッパー/ボタンがトリガー",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".rdp-day:not(.rdp-day_disabled)"),
    confirm_strategy=NoConfirm(),
    validate_strategy=AriaSelectedValidate(selected_day_selector=".rdp-day_selected, [aria-selected=\"true\"]"),
    supported_base_scenarios=RANGE_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        open=(ClickTriggerOpen(trigger_selector=".rdp, [data-rdp]"),),
    ),
    documentation=(
        "React Day Picker: 通常はインラインまたは独自ポップオーバー内。"
        "open API は無いため .rdp でカレンダーを検出する。v8 はクラス名が異なる（rdp-*）。"
    ),
)


# ---------------------------------------------------------------------------
# Angular / エンタープライズ UI 系
# ---------------------------------------------------------------------------

_ANGULAR_MATERIAL = PickerConfig(
    picker_type="ANGULAR_MATERIAL",
    detection=DetectionHeuristics(
        selectors=(".mat-datepicker-content", ".mat-calendar", '[class*="mat-datepicker"]'),
        class_patterns=("mat-datepicker", "mat-calendar"),
        aria_roles=("dialog",),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector="input[matDatepicker], .mat-datepicker-input",
        notes="CDK オーバーレイはオーバーレイコンテナ（多くは body）に追加される",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".mat-calendar-body-cell:not(.mat-calendar-body-disabled)",
    ),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector="input[matDatepicker], .mat-datepicker-input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        open=(ClickTriggerOpen(trigger_selector=".mat-datepicker-toggle button, .mat-datepicker-toggle"),),
    ),
    documentation=(
        "Angular Material Datepicker: CDK オーバーレイ（ポータル）を使う。"
        "オーバーレイコンテナはコンポーネントツリーの外にあり得るため、body と各オーバーレイホストで検出する。"
    ),
)

_PRIMENG = PickerConfig(
    picker_type="PRIMENG",
    detection=DetectionHeuristics(
        selectors=(".p-datepicker", '.p-inputtext[type="text"]', '[class*="p-datepicker"]'),
        class_patterns=("p-datepicker", "p-datepicker-calendar"),
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector=".p-datepicker-input, input.p-inputtext",
        fallback_trigger_selector=".p-datepicker-inline",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".p-datepicker-calendar td span:not(.p-disabled)"),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector=".p-datepicker-input, input.p-inputtext"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation="PrimeNG DatePicker: オーバーレイまたはインライン。パネルは .p-datepicker、トリガーは .p-datepicker-input。",
)

_KENDO = PickerConfig(
    picker_type="KENDO",
    detection=DetectionHeuristics(
        selectors=(".k-datepicker", ".k-calendar", '[class*="k-datepicker"]'),
        class_patterns=("k-datepicker", "k-calendar"),
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector=".k-datepicker .k-input",
        fallback_trigger_selector=".k-datepicker .k-dateinput",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".k-calendar-md .k-link:not(.k-state-disabled)"),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector=".k-datepicker .k-input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        open=(ClickTriggerOpen(trigger_selector=".k-datepicker .k-select, .k-datepicker button"),),
    ),
    documentation="Kendo UI Datepicker: ポップアップに描画される。クラス名にテーマ接頭辞（kendo- 等）が付く場合がある。",
)

_SYNCFUSION = PickerConfig(
    picker_type="SYNCFUSION",
    detection=DetectionHeuristics(
        selectors=(".e-datepicker", ".e-calendar", '[class*="e-datepicker"]'),
        class_patterns=("e-datepicker", "e-calendar"),
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector=".e-datepicker .e-input",
        fallback_trigger_selector=".e-date-wrapper",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".e-calendar .e-day:not(.e-disabled)"),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector=".e-datepicker .e-input, input.e-datepicker"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation="Syncfusion DatePicker: ポップアップカレンダー。コントロールの接頭辞は e-。オーバーレイコンテナに描画される場合がある。",
)

_DEVEXPRESS = PickerConfig(
    picker_type="DEVEXPRESS",
    detection=DetectionHeuristics(
        selectors=(".dx-datebox", ".dx-calendar", '[class*="dx-datebox"]'),
        class_patterns=("dx-datebox", "dx-calendar"),
    ),
    open_strategy=ClickTriggerOpen(trigger_selector=".dx-datebox .dx-texteditor-input"),
    set_date_strategy=ClickDaySetDate(
        day_selector=".dx-calendar .dx-calendar-cell:not(.dx-state-disabled)",
    ),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector=".dx-datebox .dx-texteditor-input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        open=(ClickTriggerOpen(trigger_selector=".dx-datebox .dx-dropdowneditor-button"),),
        confirm=(ClickApplyConfirm(button_selector=".dx-popup-done, .dx-button-default"),),
    ),
    documentation="DevExpress Date Editor: オーバーレイに描画される。クラス接頭辞は dx-。範囲や複数のモードに対応する。",
)

_CARBON = PickerConfig(
    picker_type="CARBON",
    detection=DetectionHeuristics(
        selectors=(".cds--date-picker", ".bx--date-picker", '[class*="date-picker__input"]'),
        class_patterns=("cds--date-picker", "bx--date-picker"),
    ),
    open_strategy=FocusInputOpen(
        trigger_selector=".cds--date-picker__input, .bx--date-picker__input",
        notes="内部で flatpickr を使い、カレンダーは .flatpickr-calendar に描画される",
    ),
    set_date_strategy=ClickDaySetDate(
        day_selector=".cds--date-picker__day, .bx--date-picker__day, .flatpickr-day",
        input_format="MM/dd/yyyy",
    ),
    confirm_strategy=NoConfirm(notes="日付クリックで確定。範囲は終了日のクリックで閉じる"),
    validate_strategy=InputHasValueValidate(input_selector=".cds--date-picker__input, .bx--date-picker__input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        set_date=(
            InputValueSetDate(
                input_selector=".cds--date-picker__input, .bx--date-picker__input",
                input_format="MM/dd/yyyy",
            ),
        ),
        confirm=(BlurOrCloseConfirm(),),
    ),
    documentation=(
        "Carbon Design DatePicker (IBM): flatpickr ベース。v10 は bx--、v11 以降は cds-- 接頭辞。"
        "範囲モードでは開始・終了の2入力欄を持つ。既定の書式は m/d/Y。"
    ),
)

_CLARITY = PickerConfig(
    picker_type="CLARITY",
    detection=DetectionHeuristics(
        selectors=(".clr-datepicker", ".datepicker", '[class*="clr-date"]'),
        class_patterns=("clr-date", "clr-datepicker"),
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector=".clr-input, input.clr-date-input",
        fallback_trigger_selector=".datepicker-trigger",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".day"),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector=".clr-input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation="Clarity Datepicker (VMware): インラインまたはポップオーバー。クラス接頭辞は clr-。",
)

_SEMANTIC_UI = PickerConfig(
    picker_type="SEMANTIC_UI",
    detection=DetectionHeuristics(
        selectors=(".ui.calendar", ".ui.calendar .table", '[class*="ui calendar"]'),
        class_patterns=("ui calendar", "ui-calendar"),
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector=".ui.calendar input",
        fallback_trigger_selector=".ui.calendar",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".ui.calendar .calendar td.link:not(.disabled)"),
    confirm_strategy=NoConfirm(),
    validate_strategy=InputHasValueValidate(input_selector=".ui.calendar input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    documentation="Semantic UI Calendar: 独自またはサードパーティのカレンダー。.ui.calendar とグリッド用の table を持つ。",
)


# ---------------------------------------------------------------------------
# モバイル系
# ---------------------------------------------------------------------------

_MOBISCROLL = PickerConfig(
    picker_type="MOBISCROLL",
    detection=DetectionHeuristics(
        selectors=(".mbsc-datepicker", "input.mbsc-input", '[data-testid="mobiscroll-datepicker-input"]'),
        class_patterns=("mbsc-",),
        global_check="mobiscroll",
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector='input.mbsc-input, [data-testid="mobiscroll-datepicker-input"]',
        notes="入力欄のクリックでポップアップ（モバイルはボトムシート）が開く",
    ),
    set_date_strategy=ClickDaySetDate(day_selector=".mbsc-calendar-cell:not(.mbsc-disabled)"),
    confirm_strategy=ClickDoneConfirm(
        button_selector=".mbsc-popup-button-primary",
        fallback_button_selector=".mbsc-popup-button",
        notes="Set ボタンで確定。インライン表示ではボタンが無い",
    ),
    validate_strategy=InputHasValueValidate(input_selector="input.mbsc-input"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        set_date=(InputValueSetDate(input_selector="input.mbsc-input"),),
        confirm=(BlurOrCloseConfirm(),),
    ),
    documentation=(
        "Mobiscroll Date Picker: 商用ライブラリ。ポップアップ・ボトムシート・インラインの表示モードを持つ。"
        "ライブラリ未ロード時は素の入力欄（mbsc-input）として描画される。"
    ),
)

_IONIC = PickerConfig(
    picker_type="IONIC",
    detection=DetectionHeuristics(
        selectors=(".ion-datetime", "ion-datetime", 'ion-modal [class*="datetime"]'),
        class_patterns=("ion-datetime", "datetime"),
    ),
    open_strategy=ClickTriggerOpen(
        trigger_selector='ion-datetime, input[type="text"]',
        notes="モーダルまたはインライン。カスタム要素 ion-datetime を探す",
    ),
    set_date_strategy=InputValueSetDate(
        input_selector="ion-datetime",
        notes="ion-datetime の value プロパティに ISO 文字列を設定する",
    ),
    confirm_strategy=ClickDoneConfirm(
        button_selector="ion-datetime .datetime-ready-btn, ion-modal ion-button",
    ),
    validate_strategy=ApiValueValidate(notes="ion-datetime の value プロパティを確認する"),
    supported_base_scenarios=ALL_BASE_SCENARIOS,
    fallback_strategies=FallbackStrategies(
        confirm=(NoConfirm(notes="インライン表示は確定ボタンを持たない"),),
    ),
    documentation=(
        "Ionic DateTime Picker: ion-modal 内またはインラインに描画される。"
        "ion-datetime の内部は Shadow DOM のため、host 経由で検索する。モバイルはホイール選択。"
    ),
)


# ---------------------------------------------------------------------------
# カタログ本体
# ---------------------------------------------------------------------------

PICKER_CONFIGS: tuple[PickerConfig, ...] = (
    _FLATPICKR,
    _PIKADAY,
    _AIR_DATEPICKER,
    _JQUERY_UI,
    _BOOTSTRAP_UX,
    _DATERANGEPICKER,
    _LITEPICKER,
    _REACT_DATEPICKER,
    _MUI,
    _ANTD,
    _REACT_DAY_PICKER,
    _ANGULAR_MATERIAL,
    _PRIMENG,
    _KENDO,
    _SYNCFUSION,
    _DEVEXPRESS,
    _CARBON,
    _CLARITY,
    _SEMANTIC_UI,
    _MOBISCROLL,
    _IONIC,
)
"""全ピッカーの設定。順序は検出時の同点決着（先勝ち）に使われる。"""


def check_unique_picker_types(configs: tuple[PickerConfig, ...]) -> None:
    """picker_type の重複を検査する。

    Raises:
        ValueError: 同じ picker_type のエントリが複数ある場合
    """
    seen: set[str] = set()
    duplicates: list[str] = []
    for config in configs:
        if config.picker_type in seen:
            duplicates.append(config.picker_type)
        seen.add(config.picker_type)
    if duplicates:
        raise ValueError(f"picker_type が重複しています: {', '.join(duplicates)}")


check_unique_picker_types(PICKER_CONFIGS)
