"""
DOM プロトコル — レジストリが依存する最小限の DOM インターフェース

ピッカーの検出・操作は「ルート」（Document または ShadowRoot）単位の
querySelector に依存する。本モジュールはその構造的インターフェースを
Protocol として定義し、インメモリ DOM（html.py）と
Playwright アダプタ（browser.py）の双方が同じ形を満たすようにする。

主な構成:
  - DomElement: 要素の属性・値・イベント・API 呼び出し
  - Document / ShadowRoot: 検索スコープとなるルート
  - PickerRoot: Document | ShadowRoot の Union 型
  - DomError 系例外: セレクタ不正・クロスオリジンアクセス
"""

from __future__ import annotations

from typing import Any, Iterator, Literal, Optional, Protocol, Union


# ---------------------------------------------------------------------------
# エラー定義
# ---------------------------------------------------------------------------

class DomError(Exception):
    """DOM 操作に関するエラーの基底クラス。"""


class InvalidSelectorError(DomError):
    """CSS セレクタの構文が不正な場合のエラー。"""


class CrossOriginAccessError(DomError):
    """クロスオリジン iframe の contentDocument にアクセスした場合のエラー。"""


# ---------------------------------------------------------------------------
# 要素
# ---------------------------------------------------------------------------

class DomElement(Protocol):
    """DOM 要素の共通インターフェース。"""

    node_kind: Literal["element"]

    @property
    def tag_name(self) -> str:
        """大文字のタグ名（例: "INPUT"）。"""
        ...

    @property
    def class_name(self) -> str:
        """class 属性の文字列（空白区切り）。"""
        ...

    @property
    def text_content(self) -> str:
        ...

    @property
    def value(self) -> str:
        """input 要素の現在値。"""
        ...

    @value.setter
    def value(self, new_value: str) -> None:
        ...

    @property
    def shadow_root(self) -> Optional[ShadowRoot]:
        ...

    @property
    def owner_document(self) -> Document:
        ...

    def get_attribute(self, name: str) -> Optional[str]:
        ...

    def has_attribute(self, name: str) -> bool:
        ...

    def content_document(self) -> Optional[Document]:
        """iframe の contentDocument を返す。

        Raises:
            CrossOriginAccessError: クロスオリジンの iframe の場合
        """
        ...

    def query_selector(self, selector: str) -> Optional[DomElement]:
        ...

    def query_selector_all(self, selector: str) -> list[DomElement]:
        ...

    def focus(self) -> None:
        ...

    def blur(self) -> None:
        ...

    def click(self) -> None:
        ...

    def dispatch_event(self, event_type: str, **detail: Any) -> None:
        ...

    def has_method(self, name: str) -> bool:
        """要素がウィジェット API メソッド name を公開しているかを返す。"""
        ...

    def call_method(self, name: str, *args: Any) -> Any:
        ...

    def is_same_node(self, other: DomElement) -> bool:
        """other が同じ DOM ノードを指すかを返す（ラッパーの同一性には依存しない）。"""
        ...


# ---------------------------------------------------------------------------
# ルート（Document / ShadowRoot）
# ---------------------------------------------------------------------------

class Document(Protocol):
    """ドキュメントルート。メインドキュメントと iframe ドキュメントの両方を表す。"""

    node_kind: Literal["document"]

    @property
    def root_key(self) -> str:
        """ルートの同一性キー。同じルートに対しては常に同じ値を返す。"""
        ...

    @property
    def active_element(self) -> Optional[DomElement]:
        ...

    def query_selector(self, selector: str) -> Optional[DomElement]:
        ...

    def query_selector_all(self, selector: str) -> list[DomElement]:
        ...

    def iter_elements(self) -> Iterator[DomElement]:
        """このルート自身のツリーに属する全要素を文書順に返す。

        Shadow ツリーや iframe ドキュメントの中には降りない。
        """
        ...

    def has_global(self, name: str) -> bool:
        """ルートの window にグローバルシンボル name が存在するかを返す。"""
        ...


class ShadowRoot(Protocol):
    """Shadow ルート。host 要素に紐づく独立した検索スコープ。"""

    node_kind: Literal["shadow-root"]

    @property
    def root_key(self) -> str:
        ...

    @property
    def host(self) -> DomElement:
        ...

    def query_selector(self, selector: str) -> Optional[DomElement]:
        ...

    def query_selector_all(self, selector: str) -> list[DomElement]:
        ...

    def iter_elements(self) -> Iterator[DomElement]:
        ...

    def has_global(self, name: str) -> bool:
        ...


PickerRoot = Union[Document, ShadowRoot]
"""ピッカーを検索するスコープの単位（Document または ShadowRoot）。"""

Scope = Union[Document, DomElement]
"""呼び出し元が渡す検索範囲（Document または任意の要素）。"""
