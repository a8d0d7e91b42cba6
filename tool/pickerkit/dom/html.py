"""
インメモリ DOM — BeautifulSoup ベースの静的 HTML ドキュメント

ブラウザを起動せずにピッカー検出・操作を行うための DOM 実装。
HTML 文字列をパースし、protocols.py の Document / ShadowRoot / DomElement
インターフェースを提供する。

主な機能:
  - 宣言的 Shadow DOM: <template shadowrootmode="open"> を親要素の Shadow ルートとして扱う
  - srcdoc iframe: 同一オリジンの子ドキュメントとして遅延パース
  - src iframe: 異なるオリジンの場合は CrossOriginAccessError、未ロードは None
  - イベント: add_event_listener と親方向への伝播（Shadow ルートから host へも伝播）
  - ウィジェット API: expose() で要素にメソッドを公開（flatpickr の setDate 等の模擬）
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterator, Optional
from urllib.parse import urlparse

import soupsieve
from bs4 import BeautifulSoup, Tag

from .protocols import CrossOriginAccessError, DomError, InvalidSelectorError

logger = logging.getLogger(__name__)

_root_ids = itertools.count(1)

# 宣言的 Shadow DOM の属性名（現行仕様 / 旧 Chrome 実装）
_SHADOW_ROOT_ATTRS = ("shadowrootmode", "shadowroot")

EventListener = Callable[["DomEvent"], None]


# ---------------------------------------------------------------------------
# イベント
# ---------------------------------------------------------------------------

@dataclass
class DomEvent:
    """合成イベント。

    Attributes:
        type: イベント種別（click, input, change, keydown 等）
        target: イベントを発火した要素
        detail: 追加情報（keydown の key 等）
        bubbles: 親方向へ伝播するか
        current_target: 現在リスナーを実行している要素（またはドキュメント）
    """

    type: str
    target: HtmlElement
    detail: dict[str, Any] = field(default_factory=dict)
    bubbles: bool = True
    current_target: Any = None
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


class _ListenerMixin:
    """イベントリスナーの登録・呼び出しを提供する。"""

    def _init_listeners(self) -> None:
        self._listeners: dict[str, list[EventListener]] = {}

    def add_event_listener(self, event_type: str, listener: EventListener) -> None:
        self._listeners.setdefault(event_type, []).append(listener)

    def _fire(self, event: DomEvent) -> None:
        event.current_target = self
        for listener in list(self._listeners.get(event.type, [])):
            listener(event)


# ---------------------------------------------------------------------------
# ドキュメント
# ---------------------------------------------------------------------------

class HtmlDocument(_ListenerMixin):
    """BeautifulSoup でパースした HTML ドキュメント。

    使用例::

        doc = HtmlDocument.from_html('<input class="flatpickr-input">')
        doc.window["flatpickr"] = object()
        el = doc.query_selector(".flatpickr-input")
    """

    node_kind = "document"

    def __init__(
        self,
        soup: BeautifulSoup,
        *,
        origin: str = "about:srcdoc",
        globals: Optional[dict[str, Any]] = None,
    ) -> None:
        """ドキュメントを初期化し、宣言的 Shadow ルートを切り出す。

        Args:
            soup: パース済みの BeautifulSoup オブジェクト
            origin: ドキュメントのオリジン（iframe の同一オリジン判定に使用）
            globals: window に公開するグローバルシンボル
        """
        self._init_listeners()
        self._soup = soup
        self.origin = origin
        self.window: dict[str, Any] = dict(globals or {})
        self._key = f"document:{next(_root_ids)}"
        self._active: Optional[HtmlElement] = None
        self._wrappers: dict[int, HtmlElement] = {}
        self._shadow_roots: dict[int, HtmlShadowRoot] = {}
        self._fragments: dict[int, HtmlShadowRoot] = {}
        self._frames: dict[int, Optional[HtmlDocument]] = {}
        self._attach_shadow_roots(soup)

    @classmethod
    def from_html(
        cls,
        markup: str,
        *,
        origin: str = "about:srcdoc",
        globals: Optional[dict[str, Any]] = None,
    ) -> HtmlDocument:
        """HTML 文字列からドキュメントを生成する。"""
        return cls(BeautifulSoup(markup, "html.parser"), origin=origin, globals=globals)

    @classmethod
    def from_file(cls, path: Path, *, globals: Optional[dict[str, Any]] = None) -> HtmlDocument:
        """HTML ファイルを読み込んでドキュメントを生成する。

        Raises:
            FileNotFoundError: ファイルが存在しない場合
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"HTML ファイルが見つかりません: {path}")
        markup = path.read_text(encoding="utf-8")
        return cls.from_html(markup, origin="file://", globals=globals)

    # ----- ルートとしてのインターフェース -----

    @property
    def root_key(self) -> str:
        return self._key

    @property
    def active_element(self) -> Optional[HtmlElement]:
        return self._active

    @property
    def owner_document(self) -> HtmlDocument:
        return self

    def query_selector(self, selector: str) -> Optional[HtmlElement]:
        return _select_one(self, self._soup, selector)

    def query_selector_all(self, selector: str) -> list[HtmlElement]:
        return _select(self, self._soup, selector)

    def iter_elements(self) -> Iterator[HtmlElement]:
        for tag in self._soup.find_all(True):
            yield self._wrap(tag)

    def has_global(self, name: str) -> bool:
        return self.window.get(name) is not None

    def to_html(self) -> str:
        """Shadow ルートを除いたメインツリーを HTML として返す。"""
        return str(self._soup)

    # ----- 内部ヘルパー -----

    def _wrap(self, tag: Tag) -> HtmlElement:
        """Tag を HtmlElement でラップする（同一 Tag には同一インスタンスを返す）。"""
        wrapper = self._wrappers.get(id(tag))
        if wrapper is None:
            wrapper = HtmlElement(self, tag)
            self._wrappers[id(tag)] = wrapper
        return wrapper

    def _attach_shadow_roots(self, container: Tag) -> None:
        """container 内の宣言的 Shadow DOM テンプレートを Shadow ルートに変換する。

        テンプレートはメインツリーから取り除かれるため、
        外側のルートに対する querySelector は Shadow ツリー内の要素を返さない。
        """
        for template in container.find_all("template"):
            # 外側のテンプレート処理時に既に切り出されている場合
            if template.parent is None:
                continue
            mode = next(
                (template.get(attr) for attr in _SHADOW_ROOT_ATTRS if template.get(attr)),
                None,
            )
            if not mode:
                continue
            host = template.parent
            if id(host) in self._shadow_roots:
                # 1つの host に付与できる Shadow ルートは1つだけ
                continue

            template.extract()
            fragment = BeautifulSoup("", "html.parser")
            for child in list(template.contents):
                fragment.append(child.extract())

            shadow = HtmlShadowRoot(self, host, fragment, mode=str(mode))
            self._shadow_roots[id(host)] = shadow
            self._fragments[id(fragment)] = shadow
            self._attach_shadow_roots(fragment)

    def _set_active(self, element: Optional[HtmlElement]) -> None:
        self._active = element

    def _parent_of(self, tag: Tag) -> Any:
        """イベント伝播用に、tag の親（要素・Shadow ルート・ドキュメント）を返す。"""
        parent = tag.parent
        if parent is None:
            return None
        if isinstance(parent, BeautifulSoup):
            shadow = self._fragments.get(id(parent))
            return shadow if shadow is not None else self
        return self._wrap(parent)


# ---------------------------------------------------------------------------
# Shadow ルート
# ---------------------------------------------------------------------------

class HtmlShadowRoot(_ListenerMixin):
    """宣言的 Shadow DOM から生成した Shadow ルート。"""

    node_kind = "shadow-root"

    def __init__(self, document: HtmlDocument, host: Tag, fragment: BeautifulSoup, *, mode: str) -> None:
        self._init_listeners()
        self._document = document
        self._host_tag = host
        self._fragment = fragment
        self.mode = mode
        self._key = f"shadow:{next(_root_ids)}"

    @property
    def root_key(self) -> str:
        return self._key

    @property
    def host(self) -> HtmlElement:
        return self._document._wrap(self._host_tag)

    @property
    def owner_document(self) -> HtmlDocument:
        return self._document

    def query_selector(self, selector: str) -> Optional[HtmlElement]:
        return _select_one(self._document, self._fragment, selector)

    def query_selector_all(self, selector: str) -> list[HtmlElement]:
        return _select(self._document, self._fragment, selector)

    def iter_elements(self) -> Iterator[HtmlElement]:
        for tag in self._fragment.find_all(True):
            yield self._document._wrap(tag)

    def has_global(self, name: str) -> bool:
        # グローバルは host を所有するドキュメントの window に属する
        return self._document.has_global(name)


# ---------------------------------------------------------------------------
# 要素
# ---------------------------------------------------------------------------

class HtmlElement(_ListenerMixin):
    """BeautifulSoup の Tag をラップした DOM 要素。"""

    node_kind = "element"

    def __init__(self, document: HtmlDocument, tag: Tag) -> None:
        self._init_listeners()
        self._document = document
        self._tag = tag
        self._methods: dict[str, Callable[..., Any]] = {}

    def __repr__(self) -> str:
        return f"<HtmlElement {self._tag.name} class={self.class_name!r}>"

    # ----- 属性 -----

    @property
    def tag_name(self) -> str:
        return self._tag.name.upper()

    @property
    def class_name(self) -> str:
        return self.get_attribute("class") or ""

    @property
    def text_content(self) -> str:
        return self._tag.get_text()

    @property
    def value(self) -> str:
        return self.get_attribute("value") or ""

    @value.setter
    def value(self, new_value: str) -> None:
        self._tag["value"] = str(new_value)

    @property
    def shadow_root(self) -> Optional[HtmlShadowRoot]:
        return self._document._shadow_roots.get(id(self._tag))

    @property
    def owner_document(self) -> HtmlDocument:
        return self._document

    def get_attribute(self, name: str) -> Optional[str]:
        value = self._tag.get(name.lower())
        if value is None:
            return None
        # class 等の複数値属性はリストで保持されている
        if isinstance(value, list):
            return " ".join(value)
        return str(value)

    def has_attribute(self, name: str) -> bool:
        return self._tag.has_attr(name.lower())

    def set_attribute(self, name: str, value: str) -> None:
        self._tag[name.lower()] = value

    def remove_attribute(self, name: str) -> None:
        if self._tag.has_attr(name.lower()):
            del self._tag[name.lower()]

    def add_class(self, *names: str) -> None:
        classes = self.class_name.split()
        classes.extend(n for n in names if n not in classes)
        self._tag["class"] = classes

    # ----- iframe -----

    def content_document(self) -> Optional[HtmlDocument]:
        """iframe の contentDocument を返す。

        srcdoc を持つ iframe は同一オリジンの子ドキュメントとして扱う。
        src がドキュメントと異なるオリジンを指す場合はアクセス拒否とする。

        Raises:
            CrossOriginAccessError: クロスオリジンの iframe の場合
        """
        if self._tag.name != "iframe":
            return None
        frames = self._document._frames
        if id(self._tag) in frames:
            return frames[id(self._tag)]

        srcdoc = self._tag.get("srcdoc")
        if srcdoc is not None:
            child = HtmlDocument.from_html(str(srcdoc), origin=self._document.origin)
            frames[id(self._tag)] = child
            return child

        src = self._tag.get("src")
        if src:
            origin = _origin_of(str(src))
            if origin is not None and origin != self._document.origin:
                raise CrossOriginAccessError(
                    f"クロスオリジン iframe にはアクセスできません: {src}"
                )
        # 同一オリジンでも未ロード（ネットワーク取得は行わない）
        return None

    # ----- 検索 -----

    def query_selector(self, selector: str) -> Optional[HtmlElement]:
        return _select_one(self._document, self._tag, selector)

    def query_selector_all(self, selector: str) -> list[HtmlElement]:
        return _select(self._document, self._tag, selector)

    # ----- 操作 -----

    def focus(self) -> None:
        self._document._set_active(self)
        self.dispatch_event("focus", bubbles=False)

    def blur(self) -> None:
        if self._document.active_element is self:
            self._document._set_active(None)
        self.dispatch_event("blur", bubbles=False)

    def click(self) -> None:
        self.dispatch_event("click")

    def dispatch_event(self, event_type: str, **detail: Any) -> None:
        """イベントを発火し、bubbles が真なら親方向へ伝播させる。

        Shadow ルート内で発火したイベントは host 要素を経由して外側へ伝播する。
        """
        bubbles = bool(detail.pop("bubbles", True))
        event = DomEvent(type=event_type, target=self, detail=detail, bubbles=bubbles)

        node: Any = self
        while node is not None and not event.propagation_stopped:
            node._fire(event)
            if not event.bubbles:
                break
            node = _next_in_path(self._document, node)

    # ----- ウィジェット API -----

    def expose(self, name: str, method: Callable[..., Any]) -> None:
        """ウィジェットの命令的 API メソッドを要素に公開する。"""
        self._methods[name] = method

    def has_method(self, name: str) -> bool:
        return name in self._methods

    def call_method(self, name: str, *args: Any) -> Any:
        method = self._methods.get(name)
        if method is None:
            raise DomError(f"{self.tag_name}.{name} is not a function")
        return method(*args)

    def is_same_node(self, other: Any) -> bool:
        return isinstance(other, HtmlElement) and other._tag is self._tag


# ---------------------------------------------------------------------------
# ヘルパー関数
# ---------------------------------------------------------------------------

def _select_one(document: HtmlDocument, container: Tag, selector: str) -> Optional[HtmlElement]:
    try:
        tag = container.select_one(selector)
    except (soupsieve.SelectorSyntaxError, NotImplementedError) as exc:
        raise InvalidSelectorError(f"不正なセレクタです: {selector!r} — {exc}") from exc
    return document._wrap(tag) if tag is not None else None


def _select(document: HtmlDocument, container: Tag, selector: str) -> list[HtmlElement]:
    try:
        tags = container.select(selector)
    except (soupsieve.SelectorSyntaxError, NotImplementedError) as exc:
        raise InvalidSelectorError(f"不正なセレクタです: {selector!r} — {exc}") from exc
    return [document._wrap(tag) for tag in tags]


def _next_in_path(document: HtmlDocument, node: Any) -> Any:
    """伝播経路上の次のノードを返す（要素 → 親要素 → … → ドキュメント）。"""
    if isinstance(node, HtmlElement):
        return document._parent_of(node._tag)
    if isinstance(node, HtmlShadowRoot):
        return node.host
    return None


def _origin_of(url: str) -> Optional[str]:
    """URL のオリジンを返す。相対 URL の場合は None。"""
    parsed = urlparse(url)
    if parsed.scheme in ("http", "https") and parsed.netloc:
        return f"{parsed.scheme}://{parsed.netloc}"
    # about:blank は親ドキュメントのオリジンを継承する
    if not parsed.scheme or parsed.scheme == "about":
        return None
    return f"{parsed.scheme}://"
