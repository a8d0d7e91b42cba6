"""
ブラウザ DOM アダプタ — Playwright 同期 API による実ページの DOM 操作

Playwright の JSHandle / ElementHandle をラップし、protocols.py の
Document / ShadowRoot / DomElement インターフェースを提供する。

Playwright の Locator は Shadow DOM を自動で貫通するため、
ルート単位の querySelector の意味を保てない。本アダプタは
evaluate_handle でルートオブジェクトの querySelector を直接呼び出す。

主な機能:
  - BrowserDocument.from_page(): Page のメインフレームのドキュメントを取得
  - Shadow ルート・同一オリジン iframe の contentDocument へのアクセス
  - ルートへの同一性キーの付与（走査時の重複排除に使用）
  - ドット区切りのウィジェット API 呼び出し（例: "_flatpickr.setDate"）
"""

from __future__ import annotations

import datetime as dt
import logging
from typing import TYPE_CHECKING, Any, Iterator, Optional

from playwright.sync_api import Error as PlaywrightError

from .protocols import CrossOriginAccessError, DomError, InvalidSelectorError

if TYPE_CHECKING:
    from playwright.sync_api import ElementHandle, JSHandle, Page

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ページ内で実行するスクリプト
# ---------------------------------------------------------------------------

# ルートオブジェクトに一度だけキーを付与して返す
_STAMP_ROOT_JS = """(root) => {
  if (!root.__pickerkitKey) {
    root.__pickerkitKey = Math.random().toString(36).slice(2) + Date.now().toString(36);
  }
  return root.__pickerkitKey;
}"""

_QUERY_ONE_JS = "(root, selector) => root.querySelector(selector)"
_QUERY_ALL_JS = "(root, selector) => Array.from(root.querySelectorAll(selector))"

# ドット区切りのパスを辿って関数を解決する
_HAS_METHOD_JS = """(el, path) => {
  const parts = path.split('.');
  let owner = el;
  for (const part of parts.slice(0, -1)) {
    owner = owner == null ? undefined : owner[part];
  }
  return owner != null && typeof owner[parts[parts.length - 1]] === 'function';
}"""

_CALL_METHOD_JS = """(el, [path, args]) => {
  const parts = path.split('.');
  let owner = el;
  for (const part of parts.slice(0, -1)) owner = owner[part];
  const toArg = (a) => (typeof a === 'string' && /^\\d{4}-\\d{2}-\\d{2}$/.test(a))
    ? new Date(a + 'T00:00:00') : a;
  owner[parts[parts.length - 1]](...args.map(toArg));
}"""


# ---------------------------------------------------------------------------
# ルート
# ---------------------------------------------------------------------------

class BrowserDocument:
    """Playwright の JSHandle で表されたドキュメント。"""

    node_kind = "document"

    def __init__(self, handle: JSHandle) -> None:
        self._handle = handle
        self._key: Optional[str] = None

    @classmethod
    def from_page(cls, page: Page) -> BrowserDocument:
        """Page のメインフレームのドキュメントを返す。"""
        return cls(page.evaluate_handle("document"))

    @property
    def root_key(self) -> str:
        if self._key is None:
            self._key = "document:" + str(self._handle.evaluate(_STAMP_ROOT_JS))
        return self._key

    @property
    def active_element(self) -> Optional[BrowserElement]:
        handle = self._handle.evaluate_handle("(doc) => doc.activeElement")
        return _as_element(handle)

    @property
    def owner_document(self) -> BrowserDocument:
        return self

    def query_selector(self, selector: str) -> Optional[BrowserElement]:
        return _query_one(self._handle, selector)

    def query_selector_all(self, selector: str) -> list[BrowserElement]:
        return _query_all(self._handle, selector)

    def iter_elements(self) -> Iterator[BrowserElement]:
        yield from _query_all(self._handle, "*")

    def has_global(self, name: str) -> bool:
        return bool(self._handle.evaluate(
            "(doc, name) => doc.defaultView != null && doc.defaultView[name] != null",
            name,
        ))


class BrowserShadowRoot:
    """Playwright の JSHandle で表された Shadow ルート。"""

    node_kind = "shadow-root"

    def __init__(self, handle: JSHandle) -> None:
        self._handle = handle
        self._key: Optional[str] = None

    @property
    def root_key(self) -> str:
        if self._key is None:
            self._key = "shadow:" + str(self._handle.evaluate(_STAMP_ROOT_JS))
        return self._key

    @property
    def host(self) -> BrowserElement:
        element = _as_element(self._handle.evaluate_handle("(root) => root.host"))
        if element is None:
            raise DomError("Shadow ルートの host を取得できません")
        return element

    def query_selector(self, selector: str) -> Optional[BrowserElement]:
        return _query_one(self._handle, selector)

    def query_selector_all(self, selector: str) -> list[BrowserElement]:
        return _query_all(self._handle, selector)

    def iter_elements(self) -> Iterator[BrowserElement]:
        yield from _query_all(self._handle, "*")

    def has_global(self, name: str) -> bool:
        return bool(self._handle.evaluate(
            "(root, name) => { const w = root.host.ownerDocument.defaultView;"
            " return w != null && w[name] != null; }",
            name,
        ))


# ---------------------------------------------------------------------------
# 要素
# ---------------------------------------------------------------------------

class BrowserElement:
    """Playwright の ElementHandle をラップした DOM 要素。"""

    node_kind = "element"

    def __init__(self, handle: ElementHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> ElementHandle:
        return self._handle

    @property
    def tag_name(self) -> str:
        return str(self._handle.evaluate("(el) => el.tagName")).upper()

    @property
    def class_name(self) -> str:
        return str(self._handle.evaluate(
            "(el) => typeof el.className === 'string' ? el.className : (el.getAttribute('class') || '')"
        ))

    @property
    def text_content(self) -> str:
        return self._handle.text_content() or ""

    @property
    def value(self) -> str:
        value = self._handle.evaluate("(el) => el.value")
        return "" if value is None else str(value)

    @value.setter
    def value(self, new_value: str) -> None:
        self._handle.evaluate("(el, v) => { el.value = v; }", str(new_value))

    @property
    def shadow_root(self) -> Optional[BrowserShadowRoot]:
        if not self._handle.evaluate("(el) => el.shadowRoot != null"):
            return None
        return BrowserShadowRoot(self._handle.evaluate_handle("(el) => el.shadowRoot"))

    @property
    def owner_document(self) -> BrowserDocument:
        return BrowserDocument(self._handle.evaluate_handle("(el) => el.ownerDocument"))

    def get_attribute(self, name: str) -> Optional[str]:
        return self._handle.get_attribute(name)

    def has_attribute(self, name: str) -> bool:
        return bool(self._handle.evaluate("(el, name) => el.hasAttribute(name)", name))

    def content_document(self) -> Optional[BrowserDocument]:
        """iframe の contentDocument を返す。

        クロスオリジンの iframe ではブラウザが null を返すため、
        その場合も未ロードと同様に None を返す。

        Raises:
            CrossOriginAccessError: contentDocument へのアクセスで例外が発生した場合
        """
        if self.tag_name != "IFRAME":
            return None
        state = self._handle.evaluate(
            "(el) => { try { return el.contentDocument != null ? 'ok' : 'none'; }"
            " catch (e) { return 'denied'; } }"
        )
        if state == "denied":
            raise CrossOriginAccessError("iframe の contentDocument へのアクセスが拒否されました")
        if state != "ok":
            return None
        return BrowserDocument(self._handle.evaluate_handle("(el) => el.contentDocument"))

    def query_selector(self, selector: str) -> Optional[BrowserElement]:
        return _query_one(self._handle, selector)

    def query_selector_all(self, selector: str) -> list[BrowserElement]:
        return _query_all(self._handle, selector)

    def focus(self) -> None:
        self._handle.focus()

    def blur(self) -> None:
        self._handle.evaluate("(el) => el.blur()")

    def click(self) -> None:
        # 実クリックではなく合成イベント（要素の可視性・位置に依存しない）
        self._handle.dispatch_event("click")

    def dispatch_event(self, event_type: str, **detail: Any) -> None:
        self._handle.dispatch_event(event_type, detail or None)

    def has_method(self, name: str) -> bool:
        return bool(self._handle.evaluate(_HAS_METHOD_JS, name))

    def call_method(self, name: str, *args: Any) -> Any:
        js_args = [a.isoformat() if isinstance(a, dt.date) else a for a in args]
        try:
            return self._handle.evaluate(_CALL_METHOD_JS, [name, js_args])
        except PlaywrightError as exc:
            raise DomError(f"{name} の呼び出しに失敗しました: {exc}") from exc

    def is_same_node(self, other: Any) -> bool:
        if not isinstance(other, BrowserElement):
            return False
        return bool(self._handle.evaluate("(a, b) => a === b", other._handle))


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

def _as_element(handle: JSHandle) -> Optional[BrowserElement]:
    element = handle.as_element()
    return BrowserElement(element) if element is not None else None


def _query_one(root: JSHandle, selector: str) -> Optional[BrowserElement]:
    try:
        handle = root.evaluate_handle(_QUERY_ONE_JS, selector)
    except PlaywrightError as exc:
        raise _selector_error(selector, exc) from exc
    return _as_element(handle)


def _query_all(root: JSHandle, selector: str) -> list[BrowserElement]:
    try:
        array = root.evaluate_handle(_QUERY_ALL_JS, selector)
    except PlaywrightError as exc:
        raise _selector_error(selector, exc) from exc

    # get_properties() は {"0": handle, "1": handle, ...} を返す（順序は保証されない）
    properties = array.get_properties()
    elements: list[BrowserElement] = []
    for key in sorted((k for k in properties if k.isdigit()), key=int):
        element = _as_element(properties[key])
        if element is not None:
            elements.append(element)
    return elements


def _selector_error(selector: str, exc: Exception) -> DomError:
    message = str(exc)
    if "SyntaxError" in message or "not a valid selector" in message:
        return InvalidSelectorError(f"不正なセレクタです: {selector!r}")
    return DomError(f"querySelector の実行に失敗しました: {selector!r} — {message}")
