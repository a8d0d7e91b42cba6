"""
レジストリ型定義 — ピッカー検出ヒューリスティクスと操作ストラテジーのモデル

カタログの各エントリ（PickerConfig）と、そこに含まれる
open / set-date / confirm / validate の各ストラテジーを Pydantic v2 モデルで定義する。

ストラテジーは `type` フィールドを判別子とする discriminated union であり、
各バリアントは自分の型に必要なフィールドだけを宣言する（extra="forbid"）。
そのため、使われないフィールドを持つストラテジーは構築できない。

主な構成:
  - PickerType / BaseScenarioId: ピッカー種別・ベースシナリオ ID の Literal 型
  - DetectionHeuristics: 検出ヒューリスティクス
  - OpenStrategy / SetDateStrategy / ConfirmStrategy / ValidateStrategy: ストラテジー Union
  - FallbackStrategies / PickerConfig: カタログエントリ
  - DetectionResult / ValidationResult: 検出・検証の結果値オブジェクト
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

if TYPE_CHECKING:
    from ..dom.protocols import DomElement, PickerRoot


# ---------------------------------------------------------------------------
# 識別子
# ---------------------------------------------------------------------------

PickerType = Literal[
    "FLATPICKR",
    "PIKADAY",
    "AIR_DATEPICKER",
    "JQUERY_UI",
    "BOOTSTRAP_UX",
    "DATERANGEPICKER",
    "LITEPICKER",
    "REACT_DATEPICKER",
    "MUI",
    "ANTD",
    "REACT_DAY_PICKER",
    "ANGULAR_MATERIAL",
    "PRIMENG",
    "KENDO",
    "SYNCFUSION",
    "DEVEXPRESS",
    "CARBON",
    "CLARITY",
    "SEMANTIC_UI",
    "MOBISCROLL",
    "IONIC",
]
"""サポートするピッカーライブラリの識別子。シナリオ ID のピッカーコードと一致する。"""

BaseScenarioId = Literal["DS1", "DS2", "DS3", "DS4", "DS5", "DS6"]
"""ベースシナリオ ID（DS1–DS6）。"""

DEFAULT_INPUT_FORMAT = "yyyy-MM-dd"


class _FrozenModel(BaseModel):
    """カタログ用の不変モデル基底クラス。"""

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)


# ---------------------------------------------------------------------------
# 検出ヒューリスティクス
# ---------------------------------------------------------------------------

class DetectionHeuristics(_FrozenModel):
    """ルート内でピッカーを検出するためのヒューリスティクス。

    各フィールドは任意で、設定されているものだけが信頼度に寄与する。
    """

    selectors: Optional[tuple[str, ...]] = Field(
        default=None, description="ピッカーを示す CSS セレクタ（最初に一致したものを採用）"
    )
    aria_roles: Optional[tuple[str, ...]] = Field(
        default=None, description="ピッカーが公開する ARIA ロール（参考情報）"
    )
    class_patterns: Optional[tuple[Union[str, re.Pattern[str]], ...]] = Field(
        default=None, description="className の部分文字列、またはコンパイル済み正規表現"
    )
    data_attributes: Optional[tuple[str, ...]] = Field(
        default=None, description="存在を期待する属性名（attr または data-attr）"
    )
    global_check: Optional[str] = Field(
        default=None, description="ルートの window に存在するはずのグローバルシンボル名"
    )


# ---------------------------------------------------------------------------
# ストラテジー共通
# ---------------------------------------------------------------------------

class _Strategy(_FrozenModel):
    notes: Optional[str] = Field(default=None, description="フレームワーク固有の補足")


# ---------------------------------------------------------------------------
# open ストラテジー
# ---------------------------------------------------------------------------

class ClickTriggerOpen(_Strategy):
    """トリガー要素をクリックして開く。"""

    type: Literal["click_trigger"] = "click_trigger"
    trigger_selector: Optional[str] = None
    fallback_trigger_selector: Optional[str] = None


class FocusInputOpen(_Strategy):
    """入力欄にフォーカスして開く。"""

    type: Literal["focus_input"] = "focus_input"
    trigger_selector: Optional[str] = None
    fallback_trigger_selector: Optional[str] = None


class FocusThenClickOpen(_Strategy):
    """入力欄にフォーカスした後、クリックを送って開く。"""

    type: Literal["focus_then_click"] = "focus_then_click"
    trigger_selector: Optional[str] = None
    fallback_trigger_selector: Optional[str] = None


class ApiOpen(_Strategy):
    """トリガー要素の API メソッドを呼び出して開く。"""

    type: Literal["api_open"] = "api_open"
    api_method: str
    trigger_selector: Optional[str] = None


class AlreadyInlineOpen(_Strategy):
    """常時表示のインラインカレンダー（開く操作は不要）。"""

    type: Literal["already_inline"] = "already_inline"


OpenStrategy = Annotated[
    Union[ClickTriggerOpen, FocusInputOpen, FocusThenClickOpen, ApiOpen, AlreadyInlineOpen],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# set-date ストラテジー
# ---------------------------------------------------------------------------

class InputValueSetDate(_Strategy):
    """入力欄の value に直接書き込み、input / change イベントを発火する。

    input_selector が未指定の場合は検出されたトリガー要素に書き込む。
    """

    type: Literal["input_value"] = "input_value"
    input_selector: Optional[str] = None
    end_input_selector: Optional[str] = None
    input_format: str = DEFAULT_INPUT_FORMAT


class ClickDaySetDate(_Strategy):
    """data-date / aria-label / テキストが一致する日付セルをクリックする。"""

    type: Literal["click_day"] = "click_day"
    day_selector: str
    input_format: str = DEFAULT_INPUT_FORMAT


class ApiSetDate(_Strategy):
    """トリガー要素の API メソッドに日付を渡す（例: flatpickr の setDate）。"""

    type: Literal["api_set_date"] = "api_set_date"
    api_method: str
    end_input_selector: Optional[str] = None
    input_format: str = DEFAULT_INPUT_FORMAT


class TypeThenSelectSetDate(_Strategy):
    """入力欄に日付を入力し、続けて一致する日付セルをクリックする。"""

    type: Literal["type_then_select"] = "type_then_select"
    input_selector: str
    day_selector: str
    input_format: str = DEFAULT_INPUT_FORMAT


SetDateStrategy = Annotated[
    Union[InputValueSetDate, ClickDaySetDate, ApiSetDate, TypeThenSelectSetDate],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# confirm ストラテジー
# ---------------------------------------------------------------------------

class ClickApplyConfirm(_Strategy):
    """Apply / OK ボタンをクリックして確定する。"""

    type: Literal["click_apply"] = "click_apply"
    button_selector: str
    fallback_button_selector: Optional[str] = None


class ClickDoneConfirm(_Strategy):
    """Done ボタン（または選択済みセル）をクリックして確定する。"""

    type: Literal["click_done"] = "click_done"
    button_selector: str
    fallback_button_selector: Optional[str] = None


class PressEnterConfirm(_Strategy):
    """ボタンが見つからなければアクティブ要素に Enter の keydown を送る。"""

    type: Literal["press_enter"] = "press_enter"
    button_selector: Optional[str] = None


class BlurOrCloseConfirm(_Strategy):
    """selector の要素をクリック、未指定ならアクティブ要素をブラーして閉じる。"""

    type: Literal["blur_or_close"] = "blur_or_close"
    selector: Optional[str] = None


class NoConfirm(_Strategy):
    """選択と同時に確定するウィジェット（確定操作は不要）。"""

    type: Literal["none"] = "none"


ConfirmStrategy = Annotated[
    Union[ClickApplyConfirm, ClickDoneConfirm, PressEnterConfirm, BlurOrCloseConfirm, NoConfirm],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# validate ストラテジー
# ---------------------------------------------------------------------------

class InputHasValueValidate(_Strategy):
    """入力欄が空でない値を持つことを確認する。"""

    type: Literal["input_has_value"] = "input_has_value"
    input_selector: Optional[str] = None


class AriaSelectedValidate(_Strategy):
    """aria-selected 相当のマーカーを持つ日付セルが存在することを確認する。"""

    type: Literal["aria_selected"] = "aria_selected"
    selected_day_selector: str


class ClassHasSelectedValidate(_Strategy):
    """選択済みクラスを持つ日付セルが存在することを確認する。"""

    type: Literal["class_has_selected"] = "class_has_selected"
    selected_day_selector: str


class ApiValueValidate(_Strategy):
    """トリガー要素のプロパティ（既定: value）が空でないことを確認する。"""

    type: Literal["api_value"] = "api_value"
    property_name: Literal["value"] = "value"


class NoValidate(_Strategy):
    type: Literal["none"] = "none"


ValidateStrategy = Annotated[
    Union[InputHasValueValidate, AriaSelectedValidate, ClassHasSelectedValidate, ApiValueValidate, NoValidate],
    Field(discriminator="type"),
]


# ---------------------------------------------------------------------------
# カタログエントリ
# ---------------------------------------------------------------------------

class FallbackStrategies(_FrozenModel):
    """主ストラテジーが適用できない場合に順に試すストラテジー。"""

    model_config = ConfigDict(
        frozen=True, extra="forbid", arbitrary_types_allowed=True, populate_by_name=True,
    )

    open: tuple[OpenStrategy, ...] = ()
    set_date: tuple[SetDateStrategy, ...] = ()
    confirm: tuple[ConfirmStrategy, ...] = ()
    # 入力キーは validate（BaseModel.validate と同名のため属性名は validate_）
    validate_: tuple[ValidateStrategy, ...] = Field(default=(), alias="validate")


class PickerConfig(_FrozenModel):
    """1つのピッカーライブラリの検出方法と操作方法。

    カタログはプロセス起動時に一度だけ構築され、以後変更されない。
    """

    picker_type: PickerType
    detection: DetectionHeuristics
    open_strategy: OpenStrategy
    set_date_strategy: SetDateStrategy
    confirm_strategy: ConfirmStrategy
    validate_strategy: ValidateStrategy
    supported_base_scenarios: tuple[BaseScenarioId, ...]
    fallback_strategies: Optional[FallbackStrategies] = None
    documentation: Optional[str] = None


# ---------------------------------------------------------------------------
# 結果値オブジェクト
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DetectionResult:
    """ピッカー検出結果。

    後続の open / set_date / confirm / validate 呼び出しのコンテキストとなる。
    DOM が変化した場合は再検出が必要。

    Attributes:
        picker_type: 検出されたピッカー種別
        root: ピッカーが見つかったルート（Document または ShadowRoot）
        trigger_element: ピッカーを開く入力欄・ボタン
        panel_element: カレンダーパネル要素
        confidence: 0〜1 の信頼度（複数一致時の順位付けにのみ使用）
    """

    picker_type: str
    root: PickerRoot
    trigger_element: Optional[DomElement] = None
    panel_element: Optional[DomElement] = None
    confidence: float = 0.5


@dataclass(frozen=True)
class ValidationResult:
    """ピッカー自身による選択状態の検証結果。"""

    valid: bool
    message: Optional[str] = None
    value: Optional[str] = None
