"""
ベースシナリオの振る舞いマップ — DS1–DS6 から既定の日付と範囲/単一の区別を決める

実行エンジンはピッカー種別で分岐せず、ベースシナリオの種別だけで振る舞いを決める。
today は引数で差し替え可能（テストでの決定的な実行用）。
"""

from __future__ import annotations

import calendar
import datetime as dt
from typing import Optional

from .types import BaseScenarioKind, DateRange

_DS_TO_KIND: dict[str, BaseScenarioKind] = {
    "DS1": "presets",
    "DS2": "from-to",
    "DS3": "dual-calendar",
    "DS4": "month-year",
    "DS5": "year-only",
    "DS6": "inline-calendar",
}

_RANGE_KINDS: frozenset[str] = frozenset({"presets", "from-to", "dual-calendar", "inline-calendar"})

# 会計年度の開始月（4月〜翌3月）
_FISCAL_YEAR_START_MONTH = 4
_DEFAULT_RANGE_DAYS = 7


def get_base_scenario_kind(base_scenario_id: str) -> Optional[BaseScenarioKind]:
    """ベースシナリオ ID（DS1–DS6）の振る舞い種別を返す。未知の ID なら None。"""
    return _DS_TO_KIND.get(base_scenario_id)


def get_default_dates_for_base_scenario(
    base_scenario_id: str,
    today: Optional[dt.date] = None,
) -> DateRange:
    """ベースシナリオの既定の開始日・終了日を返す。

    - month-year: 今月の1日〜末日
    - year-only: 今日を含む会計年度（4月1日〜翌年3月31日）
    - それ以外（未知の ID を含む）: 今日で終わる直近7日間

    Args:
        base_scenario_id: ベースシナリオ ID
        today: 基準日。None の場合はシステム日付

    Returns:
        既定の日付範囲
    """
    today = today or dt.date.today()
    kind = _DS_TO_KIND.get(base_scenario_id)
    if kind == "month-year":
        return _current_month_range(today)
    if kind == "year-only":
        return _current_fiscal_year_range(today)
    return _default_range(today)


def is_range_scenario(base_scenario_id: str) -> bool:
    """ベースシナリオが範囲選択を扱うかを返す（month-year / year-only は単一扱い）。"""
    return _DS_TO_KIND.get(base_scenario_id) in _RANGE_KINDS


# ---------------------------------------------------------------------------
# 内部ヘルパー
# ---------------------------------------------------------------------------

def _default_range(today: dt.date) -> DateRange:
    return DateRange(start=today - dt.timedelta(days=_DEFAULT_RANGE_DAYS - 1), end=today)


def _current_month_range(today: dt.date) -> DateRange:
    last_day = calendar.monthrange(today.year, today.month)[1]
    return DateRange(start=today.replace(day=1), end=today.replace(day=last_day))


def _current_fiscal_year_range(today: dt.date) -> DateRange:
    start_year = today.year if today.month >= _FISCAL_YEAR_START_MONTH else today.year - 1
    return DateRange(
        start=dt.date(start_year, _FISCAL_YEAR_START_MONTH, 1),
        end=dt.date(start_year + 1, _FISCAL_YEAR_START_MONTH - 1, 31),
    )
