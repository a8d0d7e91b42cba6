"""
ピッカーレジストリ — 検出と open / set_date / confirm / validate の実行

カタログ（PickerConfig のタプル）を受け取り、スコープ内の全ルートから
最も信頼度の高いピッカーを検出する。以降の操作は検出結果（DetectionResult）を
コンテキストとして、該当エントリのストラテジーに汎用的にディスパッチする。

主な構成:
  - PickerRegistry: 検出・操作・検証の本体
  - format_date: yyyy / MM / dd トークンによる日付整形
  - picker_registry: 組み込みカタログで構築した既定インスタンス

ストラテジーの解決規則:
  - セレクタを持つストラテジーは、そのセレクタでのみ対象要素を解決する
  - セレクタを持たないストラテジーは、検出時のトリガー（またはパネル）要素を対象とする
  - 主ストラテジーが対象を見つけられなければフォールバックを順に試す
  - いずれも適用できなければ PickerInteractionError を送出する
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import Iterable, Optional

from ..dom.protocols import DomElement, InvalidSelectorError, PickerRoot, Scope
from .catalog import PICKER_CONFIGS, check_unique_picker_types
from .errors import PickerInteractionError, UnknownPickerTypeError
from .scope import (
    element_has_data_attributes,
    element_matches_class_patterns,
    get_searchable_roots,
    query_selector_all_in_root,
    query_selector_in_root,
    window_has_global,
)
from .types import (
    AlreadyInlineOpen,
    ApiOpen,
    ApiSetDate,
    ApiValueValidate,
    AriaSelectedValidate,
    BlurOrCloseConfirm,
    ClassHasSelectedValidate,
    ClickApplyConfirm,
    ClickDaySetDate,
    ClickDoneConfirm,
    ClickTriggerOpen,
    ConfirmStrategy,
    DetectionResult,
    FocusInputOpen,
    FocusThenClickOpen,
    InputHasValueValidate,
    InputValueSetDate,
    NoConfirm,
    NoValidate,
    OpenStrategy,
    PickerConfig,
    PressEnterConfirm,
    SetDateStrategy,
    TypeThenSelectSetDate,
    ValidateStrategy,
    ValidationResult,
)

logger = logging.getLogger(__name__)

# 検出ヒューリスティクスの信頼度
_BASE_CONFIDENCE = 0.5
_SELECTOR_CONFIDENCE = 0.9
_CLASS_PATTERN_CONFIDENCE = 0.85
_CLASS_PATTERN_PENALTY = 0.1
_DATA_ATTRIBUTE_PENALTY = 0.05
_GLOBAL_BONUS = 0.1


# ---------------------------------------------------------------------------
# 日付整形
# ---------------------------------------------------------------------------

def format_date(value: dt.date, fmt: str = "yyyy-MM-dd") -> str:
    """日付を yyyy / MM / dd トークンで整形する。

    Args:
        value: 整形する日付
        fmt: 書式（例: "yyyy-MM-dd", "MM/dd/yyyy"）

    Returns:
        整形済み文字列
    """
    return (
        fmt.replace("yyyy", f"{value.year:04d}")
        .replace("MM", f"{value.month:02d}")
        .replace("dd", f"{value.day:02d}")
    )


# ---------------------------------------------------------------------------
# PickerRegistry 本体
# ---------------------------------------------------------------------------

class PickerRegistry:
    """ピッカーの検出と操作を提供するレジストリ。

    使用例::

        registry = PickerRegistry(PICKER_CONFIGS)
        detection = registry.detect(document)
        if detection is not None:
            registry.open(detection)
            registry.set_date(detection, date(2024, 3, 1), date(2024, 3, 7))
            registry.confirm(detection)
            result = registry.validate(detection)
    """

    def __init__(
        self,
        configs: Iterable[PickerConfig] = PICKER_CONFIGS,
        *,
        default_scope: Optional[Scope] = None,
    ) -> None:
        """レジストリを初期化する。

        Args:
            configs: ピッカー設定（順序は検出時の同点決着に使われる）
            default_scope: detect() にスコープが渡されなかった場合の検索範囲

        Raises:
            ValueError: picker_type が重複している場合
        """
        self._configs: tuple[PickerConfig, ...] = tuple(configs)
        check_unique_picker_types(self._configs)
        self._by_type: dict[str, PickerConfig] = {c.picker_type: c for c in self._configs}
        self.default_scope = default_scope

    # ----- カタログ参照 -----

    @property
    def configs(self) -> tuple[PickerConfig, ...]:
        return self._configs

    @property
    def names(self) -> list[str]:
        """登録済みピッカー種別をカタログ順で返す。"""
        return [c.picker_type for c in self._configs]

    def has(self, picker_type: str) -> bool:
        return picker_type in self._by_type

    def get_config(self, picker_type: str) -> PickerConfig:
        """ピッカー種別の設定を返す。

        Raises:
            UnknownPickerTypeError: 未登録のピッカー種別の場合
        """
        config = self._by_type.get(picker_type)
        if config is None:
            raise UnknownPickerTypeError(picker_type, self.names)
        return config

    # ----- 検出 -----

    def detect(self, scope: Optional[Scope] = None) -> Optional[DetectionResult]:
        """スコープ内の全ルートから最も信頼度の高いピッカーを検出する。

        同点の場合はルートの発見順、次にカタログ順で先に見つかったものを採用する。

        Args:
            scope: 検索範囲（ドキュメントまたは要素）。None の場合は default_scope

        Returns:
            検出結果。どのピッカーにも一致しなければ None
        """
        target = scope if scope is not None else self.default_scope
        if target is None:
            logger.debug("検索スコープが指定されていません")
            return None

        best: Optional[DetectionResult] = None
        for root in get_searchable_roots(target):
            for config in self._configs:
                result = _run_detection_in_root(root, config)
                if result is not None and (best is None or result.confidence > best.confidence):
                    best = result

        if best is None:
            logger.info("ピッカーは検出されませんでした")
        else:
            logger.info(
                "ピッカーを検出しました: %s (confidence=%.2f, root=%s)",
                best.picker_type, best.confidence, best.root.root_key,
            )
        return best

    # ----- open -----

    def open(self, context: DetectionResult) -> None:
        """ピッカーを開く。

        主ストラテジー、続いて fallback_strategies.open を順に試し、
        クリック・フォーカス・API 呼び出しを送出した時点で成功とする。

        Raises:
            UnknownPickerTypeError: 未登録のピッカー種別の場合
            PickerInteractionError: いずれのストラテジーも適用できなかった場合
        """
        config = self.get_config(context.picker_type)
        fallbacks = config.fallback_strategies.open if config.fallback_strategies else ()
        attempted: list[str] = []
        for strategy in (config.open_strategy, *fallbacks):
            attempted.append(strategy.type)
            if self._try_open(context, strategy):
                logger.debug("%s: open 成功 (strategy=%s)", context.picker_type, strategy.type)
                return
            logger.debug("%s: open 対象なし (strategy=%s)", context.picker_type, strategy.type)
        raise PickerInteractionError(context.picker_type, "open", attempted)

    def _try_open(self, context: DetectionResult, strategy: OpenStrategy) -> bool:
        if isinstance(strategy, AlreadyInlineOpen):
            return True

        if isinstance(strategy, ApiOpen):
            target = _resolve_target(context, strategy.trigger_selector)
            if target is None or not target.has_method(strategy.api_method):
                return False
            target.call_method(strategy.api_method)
            return True

        trigger = _resolve_target(
            context, strategy.trigger_selector, strategy.fallback_trigger_selector
        )
        if trigger is None:
            return False
        if isinstance(strategy, (FocusInputOpen, FocusThenClickOpen)):
            trigger.focus()
            if isinstance(strategy, FocusThenClickOpen):
                trigger.click()
            return True
        if isinstance(strategy, ClickTriggerOpen):
            trigger.click()
            return True
        return False

    # ----- set_date -----

    def set_date(
        self,
        context: DetectionResult,
        date: dt.date,
        end_date: Optional[dt.date] = None,
    ) -> None:
        """日付（範囲の場合は開始日と終了日）を設定する。

        Args:
            context: 検出結果
            date: 開始日（単一日付の場合はその日付）
            end_date: 終了日。単一日付の場合は None

        Raises:
            UnknownPickerTypeError: 未登録のピッカー種別の場合
            PickerInteractionError: いずれのストラテジーも対象を見つけられなかった場合
        """
        config = self.get_config(context.picker_type)
        fallbacks = config.fallback_strategies.set_date if config.fallback_strategies else ()
        attempted: list[str] = []
        for strategy in (config.set_date_strategy, *fallbacks):
            attempted.append(strategy.type)
            if self._try_set_date(context, strategy, date, end_date):
                logger.debug(
                    "%s: set_date 成功 (strategy=%s, start=%s, end=%s)",
                    context.picker_type, strategy.type, date, end_date,
                )
                return
            logger.debug("%s: set_date 対象なし (strategy=%s)", context.picker_type, strategy.type)
        raise PickerInteractionError(context.picker_type, "set_date", attempted)

    def _try_set_date(
        self,
        context: DetectionResult,
        strategy: SetDateStrategy,
        date: dt.date,
        end_date: Optional[dt.date],
    ) -> bool:
        fmt = strategy.input_format

        if isinstance(strategy, InputValueSetDate):
            target = _resolve_target(context, strategy.input_selector)
            if target is None:
                return False
            _write_input(target, format_date(date, fmt))
            if end_date is not None and strategy.end_input_selector:
                end_target = _query(context.root, strategy.end_input_selector)
                if end_target is not None:
                    _write_input(end_target, format_date(end_date, fmt))
            return True

        if isinstance(strategy, ClickDaySetDate):
            cells = _query_all(context.root, strategy.day_selector)
            start_cell = _find_day_cell(cells, format_date(date, fmt))
            if start_cell is None:
                return False
            start_cell.click()
            # 開始日クリック後もカレンダーが開いているとは限らないため、終了日は独立に探す
            if end_date is not None:
                end_cell = _find_day_cell(cells, format_date(end_date, fmt))
                if end_cell is not None:
                    end_cell.click()
            return True

        if isinstance(strategy, ApiSetDate):
            target = context.trigger_element or context.panel_element
            if target is None or not target.has_method(strategy.api_method):
                return False
            target.call_method(strategy.api_method, date)
            if end_date is not None and strategy.end_input_selector:
                end_target = _query(context.root, strategy.end_input_selector)
                if end_target is not None and end_target.has_method(strategy.api_method):
                    end_target.call_method(strategy.api_method, end_date)
            return True

        if isinstance(strategy, TypeThenSelectSetDate):
            target = _query(context.root, strategy.input_selector)
            if target is None:
                return False
            _write_input(target, format_date(date, fmt))
            cells = _query_all(context.root, strategy.day_selector)
            for day in (date, end_date):
                if day is None:
                    continue
                cell = _find_day_cell(cells, format_date(day, fmt))
                if cell is not None:
                    cell.click()
            return True

        return False

    # ----- confirm -----

    def confirm(self, context: DetectionResult) -> None:
        """選択を確定する。

        Raises:
            UnknownPickerTypeError: 未登録のピッカー種別の場合
            PickerInteractionError: いずれのストラテジーも適用できなかった場合
        """
        config = self.get_config(context.picker_type)
        fallbacks = config.fallback_strategies.confirm if config.fallback_strategies else ()
        attempted: list[str] = []
        for strategy in (config.confirm_strategy, *fallbacks):
            attempted.append(strategy.type)
            if self._try_confirm(context, strategy):
                logger.debug("%s: confirm 成功 (strategy=%s)", context.picker_type, strategy.type)
                return
            logger.debug("%s: confirm 対象なし (strategy=%s)", context.picker_type, strategy.type)
        raise PickerInteractionError(context.picker_type, "confirm", attempted)

    def _try_confirm(self, context: DetectionResult, strategy: ConfirmStrategy) -> bool:
        if isinstance(strategy, NoConfirm):
            return True

        if isinstance(strategy, (ClickApplyConfirm, ClickDoneConfirm)):
            for selector in (strategy.button_selector, strategy.fallback_button_selector):
                if not selector:
                    continue
                button = _query(context.root, selector)
                if button is not None:
                    button.click()
                    return True
            return False

        if isinstance(strategy, PressEnterConfirm):
            if strategy.button_selector:
                button = _query(context.root, strategy.button_selector)
                if button is not None:
                    button.click()
                    return True
            active = _active_element(context.root)
            if active is None:
                return False
            active.dispatch_event("keydown", key="Enter")
            return True

        if isinstance(strategy, BlurOrCloseConfirm):
            if strategy.selector:
                closer = _query(context.root, strategy.selector)
                if closer is not None:
                    closer.click()
                    return True
            active = _active_element(context.root)
            if active is None:
                return False
            active.blur()
            return True

        return False

    # ----- validate -----

    def validate(self, context: DetectionResult) -> ValidationResult:
        """ピッカーに選択が反映されているかを検証する。

        主ストラテジーで無効と判定された場合は fallback_strategies.validate を順に試し、
        最初に有効となった結果を返す。すべて無効なら主ストラテジーの結果を返す。

        Returns:
            検証結果。未登録のピッカー種別の場合は valid=False
        """
        config = self._by_type.get(context.picker_type)
        if config is None:
            return ValidationResult(valid=False, message=f"未登録のピッカー種別です: {context.picker_type}")

        primary = _run_validate(context, config.validate_strategy)
        if primary.valid:
            return primary
        fallbacks = config.fallback_strategies.validate_ if config.fallback_strategies else ()
        for strategy in fallbacks:
            result = _run_validate(context, strategy)
            if result.valid:
                return result
        return primary


# ---------------------------------------------------------------------------
# 検出ヘルパー
# ---------------------------------------------------------------------------

def _run_detection_in_root(root: PickerRoot, config: PickerConfig) -> Optional[DetectionResult]:
    """1つのルートで1エントリの検出ヒューリスティクスを評価する。"""
    heuristics = config.detection
    confidence = _BASE_CONFIDENCE
    element: Optional[DomElement] = None

    if heuristics.selectors:
        for selector in heuristics.selectors:
            found = _query(root, selector)
            if found is not None:
                element = found
                confidence = _SELECTOR_CONFIDENCE
                break
        if element is None:
            return None

    if heuristics.class_patterns:
        if element is not None:
            if not element_matches_class_patterns(element, heuristics.class_patterns):
                confidence -= _CLASS_PATTERN_PENALTY
        else:
            element = next(
                (
                    el for el in root.iter_elements()
                    if element_matches_class_patterns(el, heuristics.class_patterns)
                ),
                None,
            )
            if element is None:
                return None
            confidence = _CLASS_PATTERN_CONFIDENCE

    if heuristics.data_attributes and element is not None:
        if not element_has_data_attributes(element, heuristics.data_attributes):
            confidence -= _DATA_ATTRIBUTE_PENALTY

    if heuristics.global_check and window_has_global(root, heuristics.global_check):
        confidence = min(1.0, confidence + _GLOBAL_BONUS)

    return DetectionResult(
        picker_type=config.picker_type,
        root=root,
        trigger_element=element,
        panel_element=element,
        confidence=round(confidence, 4),
    )


# ---------------------------------------------------------------------------
# DOM ヘルパー
# ---------------------------------------------------------------------------

def _query(root: PickerRoot, selector: str) -> Optional[DomElement]:
    try:
        return query_selector_in_root(root, selector)
    except InvalidSelectorError as exc:
        logger.debug("セレクタを読み飛ばします: %s", exc)
        return None


def _query_all(root: PickerRoot, selector: str) -> list[DomElement]:
    try:
        return query_selector_all_in_root(root, selector)
    except InvalidSelectorError as exc:
        logger.debug("セレクタを読み飛ばします: %s", exc)
        return []


def _resolve_target(context: DetectionResult, *selectors: Optional[str]) -> Optional[DomElement]:
    """ストラテジーの操作対象を解決する。

    セレクタが1つでも設定されていればそのセレクタ群だけで検索し、
    未設定なら検出時のトリガー要素（無ければパネル要素）を返す。
    """
    configured = [s for s in selectors if s]
    if not configured:
        return context.trigger_element or context.panel_element
    for selector in configured:
        element = _query(context.root, selector)
        if element is not None:
            return element
    return None


def _active_element(root: PickerRoot) -> Optional[DomElement]:
    document = root if root.node_kind == "document" else root.host.owner_document
    return document.active_element


def _write_input(element: DomElement, value: str) -> None:
    element.value = value
    element.dispatch_event("input")
    element.dispatch_event("change")


def _find_day_cell(cells: list[DomElement], formatted: str) -> Optional[DomElement]:
    """data-date（無ければテキスト）が一致、または aria-label が含むセルを返す。"""
    for cell in cells:
        data_date = cell.get_attribute("data-date")
        label = data_date if data_date is not None else cell.text_content.strip()
        if label == formatted:
            return cell
        aria_label = cell.get_attribute("aria-label")
        if aria_label and formatted in aria_label:
            return cell
    return None


# ---------------------------------------------------------------------------
# 検証ヘルパー
# ---------------------------------------------------------------------------

def _run_validate(context: DetectionResult, strategy: ValidateStrategy) -> ValidationResult:
    if isinstance(strategy, InputHasValueValidate):
        element = _resolve_target(context, strategy.input_selector)
        if element is None:
            return ValidationResult(valid=False, message="入力欄が見つかりません")
        value = element.value.strip()
        if not value:
            return ValidationResult(valid=False, message="入力欄が空です")
        return ValidationResult(valid=True, value=value)

    if isinstance(strategy, (AriaSelectedValidate, ClassHasSelectedValidate)):
        selected = _query(context.root, strategy.selected_day_selector)
        if selected is None:
            return ValidationResult(valid=False, message="選択済みの日付セルが見つかりません")
        return ValidationResult(valid=True, value=selected.get_attribute("data-date"))

    if isinstance(strategy, ApiValueValidate):
        target = context.trigger_element or context.panel_element
        if target is None:
            return ValidationResult(valid=False, message="ピッカー要素が見つかりません")
        value = (target.value or "").strip()
        if not value:
            return ValidationResult(valid=False, message=f"{strategy.property_name} が空です")
        return ValidationResult(valid=True, value=value)

    if isinstance(strategy, NoValidate):
        return ValidationResult(valid=True)

    return ValidationResult(valid=False, message=f"未対応の検証ストラテジーです: {strategy.type}")


picker_registry = PickerRegistry(PICKER_CONFIGS)
"""組み込みカタログで構築した既定のレジストリ。"""
