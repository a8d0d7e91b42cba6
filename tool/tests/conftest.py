"""
テスト共通フィクスチャ・Hypothesis ストラテジー定義

全テストモジュールで共有する HTML フィクスチャとデータ生成器を提供する。
DOM はすべて BeautifulSoup ベースのインメモリ実装（HtmlDocument）で構築し、
ブラウザは起動しない。
"""

from __future__ import annotations

import datetime as dt
from typing import Callable

import pytest
from hypothesis import strategies as st

from pickerkit.dom.html import HtmlDocument


# ---------------------------------------------------------------------------
# HTML 断片
# ---------------------------------------------------------------------------

FLATPICKR_INPUT = '<input class="flatpickr-input" id="when">'

PIKADAY_PANEL = """\
<input data-pikaday id="pika-input">
<div class="pika-single">
  <table>
    <tr>
      <td><button class="pika-day" data-date="2024-03-09">9</button></td>
      <td><button class="pika-day is-disabled" data-date="2024-03-10">10</button></td>
      <td><button class="pika-day" aria-label="Friday, 2024-03-15">15</button></td>
    </tr>
  </table>
</div>
"""

REACT_DAY_PICKER_INLINE = """\
<div class="rdp">
  <button class="rdp-day" data-date="2024-03-01">1</button>
  <button class="rdp-day rdp-day_selected" aria-selected="true" data-date="2024-03-02">2</button>
</div>
"""

MUI_POPPER_ONLY_ROOT = """\
<div class="MuiPickersPopper-root"></div>
<div class="MuiInputBase-root" id="mui-root"></div>
"""

# 検出ヒューリスティクスのいずれかに一致する断片（property テスト用）
PICKER_SNIPPETS: tuple[str, ...] = (
    FLATPICKR_INPUT,
    '<div class="pika-single"></div>',
    '<input class="hasDatepicker">',
    '<div class="daterangepicker"><button class="applyBtn">Apply</button></div>',
    '<div class="react-datepicker"></div>',
    '<div class="ant-picker"><div class="ant-picker-input"><input></div></div>',
    '<div class="rdp"></div>',
    '<div class="k-datepicker"><input class="k-input"></div>',
    '<input class="mbsc-input">',
    "<ion-datetime></ion-datetime>",
    "<p>no picker here</p>",
)


def shadow_wrap(inner: str, depth: int = 1) -> str:
    """inner を depth 段の宣言的 Shadow DOM で包んだ HTML を返す。"""
    markup = inner
    for level in range(depth, 0, -1):
        markup = f'<div id="host-{level}"><template shadowrootmode="open">{markup}</template></div>'
    return markup


def srcdoc_iframe(inner: str) -> str:
    """inner を srcdoc に持つ同一オリジン iframe の HTML を返す。"""
    escaped = inner.replace("&", "&amp;").replace('"', "&quot;")
    return f'<iframe srcdoc="{escaped}"></iframe>'


# ---------------------------------------------------------------------------
# pytest フィクスチャ
# ---------------------------------------------------------------------------

@pytest.fixture
def make_document() -> Callable[..., HtmlDocument]:
    """HTML 文字列から HtmlDocument を生成するファクトリ。"""

    def _make(markup: str, **kwargs) -> HtmlDocument:
        return HtmlDocument.from_html(f"<html><body>{markup}</body></html>", **kwargs)

    return _make


@pytest.fixture
def flatpickr_document(make_document) -> HtmlDocument:
    """flatpickr-input を1つだけ持つドキュメント。"""
    return make_document(FLATPICKR_INPUT)


@pytest.fixture
def today() -> dt.date:
    """既定日付の算出に使う固定の基準日。"""
    return dt.date(2024, 3, 15)


# ---------------------------------------------------------------------------
# Hypothesis ストラテジー
# ---------------------------------------------------------------------------

def page_markups() -> st.SearchStrategy[str]:
    """ピッカー断片を組み合わせ、一部を Shadow DOM や iframe に入れた HTML を生成する。"""
    placed = st.tuples(
        st.sampled_from(PICKER_SNIPPETS),
        st.sampled_from(("plain", "shadow", "iframe")),
    ).map(
        lambda pair: {
            "plain": pair[0],
            "shadow": shadow_wrap(pair[0]),
            "iframe": srcdoc_iframe(pair[0]),
        }[pair[1]]
    )
    return st.lists(placed, min_size=0, max_size=4).map("".join)
