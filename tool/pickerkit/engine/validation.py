"""
フロー後検証 — 入力値・モデル・送信ペイロードが期待した日付になっているかを確認する

レジストリの validate() を再度呼び出した上で、全ルート（Shadow ルート・同一オリジン
iframe を含む）から既知の日付入力欄を探し、値に含まれる ISO 日付（YYYY-MM-DD）を
期待値と比較する。

判定規則:
  - 入力欄が2つ以上: 1つ目が開始日、2つ目が終了日
  - 入力欄が1つで日付を2つ含む: 1つ目が開始日、2つ目が終了日
  - 入力欄が1つで日付を1つ含む: 開始日・終了日のどちらかと一致すれば一致とみなす
    （単一値のウィジェットは最後に設定した日付を保持するため）
  - 既知の入力欄が無い: レジストリが報告した値に開始日が含まれるかで判定
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from typing import Optional

from ..dom.protocols import DomElement, InvalidSelectorError, Scope
from ..registry.registry import PickerRegistry, format_date, picker_registry
from ..registry.scope import get_searchable_roots, query_selector_in_root
from ..registry.types import DetectionResult
from .types import FlowValidation

logger = logging.getLogger(__name__)

# 送信ペイロードを保持する既知の日付入力欄（ルートごとにこの順で探す）
DATE_INPUT_SELECTORS: tuple[str, ...] = (
    'input[id="date-start"]',
    'input[data-testid="date-start"]',
    'input[name="date-start"]',
    'input[id="date-from"]',
    'input[data-testid="date-from"]',
    'input[id="date-end"]',
    'input[data-testid="date-end"]',
    'input[name="date-end"]',
    'input[id="date-to"]',
    'input[data-testid="date-to"]',
    ".flatpickr-input",
    'input[type="date"]',
)

_ISO_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")


def validate_after_flow(
    context: DetectionResult,
    expected_start: dt.date,
    expected_end: dt.date,
    scope: Scope,
    *,
    registry: Optional[PickerRegistry] = None,
) -> FlowValidation:
    """open / set_date / confirm 後の状態を検証する。

    Args:
        context: 検出結果
        expected_start: 期待する開始日
        expected_end: 期待する終了日（単一日付の場合は開始日と同じ）
        scope: 入力欄を探す範囲（ドキュメントまたは要素）
        registry: validate() に使うレジストリ。None の場合は既定のレジストリ

    Returns:
        検証結果。model_updated は input_value_updated と同値
    """
    if registry is None:
        registry = picker_registry
    picker_result = registry.validate(context)

    start_str = format_date(expected_start)
    end_str = format_date(expected_end)
    single_day = expected_start == expected_end

    input_value_updated = picker_result.valid
    payload_correct = False

    inputs = find_date_inputs(scope)
    if inputs:
        start_matches, end_matches = _match_inputs(inputs, start_str, end_str)
        input_value_updated = input_value_updated or start_matches
        payload_correct = start_matches and (single_day or end_matches)
        logger.debug(
            "日付入力欄を検証しました: inputs=%d, start=%s, end=%s",
            len(inputs), start_matches, end_matches,
        )
    elif picker_result.value:
        input_value_updated = True
        payload_correct = start_str in picker_result.value
        logger.debug("既知の入力欄が無いためピッカーの値で判定しました: %r", picker_result.value)

    return FlowValidation(
        input_value_updated=input_value_updated,
        model_updated=input_value_updated,
        payload_correct=payload_correct,
        message=picker_result.message,
    )


def find_date_inputs(scope: Scope) -> list[DomElement]:
    """全ルートから既知の日付入力欄を、ルート順 → セレクタ順で重複なく返す。"""
    found: list[DomElement] = []
    for root in get_searchable_roots(scope):
        for selector in DATE_INPUT_SELECTORS:
            try:
                element = query_selector_in_root(root, selector)
            except InvalidSelectorError:
                continue
            if element is None:
                continue
            if any(element.is_same_node(existing) for existing in found):
                continue
            found.append(element)
    return found


def _match_inputs(inputs: list[DomElement], start_str: str, end_str: str) -> tuple[bool, bool]:
    """入力欄の値から (開始日一致, 終了日一致) を返す。"""
    if len(inputs) >= 2:
        start_dates = _ISO_DATE_RE.findall(inputs[0].value)
        end_dates = _ISO_DATE_RE.findall(inputs[1].value)
        return (
            bool(start_dates) and start_dates[0] == start_str,
            bool(end_dates) and end_dates[0] == end_str,
        )

    dates = _ISO_DATE_RE.findall(inputs[0].value)
    if len(dates) >= 2:
        return dates[0] == start_str, dates[1] == end_str
    if len(dates) == 1:
        matched = dates[0] in (start_str, end_str)
        return matched, matched
    return False, False
