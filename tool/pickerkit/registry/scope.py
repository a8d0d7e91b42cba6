"""
ルートスキャナ — ピッカーが描画され得る全ルートの列挙

Document に対する querySelectorAll は Shadow ツリーや iframe の中身を返さないため、
各要素の shadow_root と iframe の contentDocument を明示的に辿る。

主な機能:
  - get_searchable_roots: メインドキュメント・全 Shadow ルート・同一オリジン iframe を列挙
  - query_selector_in_root / query_selector_all_in_root: ルート単位の検索
  - element_matches_class_patterns / element_has_data_attributes: 検出ヒューリスティクスの判定
  - window_has_global: ルートの window のグローバルシンボル確認
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Sequence, Union

from ..dom.protocols import DomElement, PickerRoot, Scope

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ルートの列挙
# ---------------------------------------------------------------------------

def owner_document_of(scope: Scope):
    """scope が属するドキュメントを返す（scope 自身がドキュメントならそのまま）。"""
    if getattr(scope, "node_kind", None) == "document":
        return scope
    return scope.owner_document


def get_searchable_roots(scope: Scope) -> list[PickerRoot]:
    """scope の所有ドキュメントから到達できる全ルートを発見順に返す。

    深さ優先で全要素を走査し、Shadow ルートと同一オリジン iframe の
    ドキュメントを新しいルートとして再帰的に追加する。
    同じルートは root_key により一度だけ訪問する。

    クロスオリジン・未ロードの iframe や DOM エラーは読み飛ばし、例外は送出しない。

    Args:
        scope: 走査の起点（ドキュメントまたは任意の要素）

    Returns:
        ルートのリスト（先頭は必ず所有ドキュメント）
    """
    try:
        document = owner_document_of(scope)
    except Exception as exc:
        logger.debug("所有ドキュメントを取得できません: %s", exc)
        return []
    if document is None:
        return []

    roots: list[PickerRoot] = []
    seen: set[str] = set()

    def add_root(root: PickerRoot) -> None:
        key = root.root_key
        if key in seen:
            return
        seen.add(key)
        roots.append(root)
        try:
            for element in root.iter_elements():
                shadow = element.shadow_root
                if shadow is not None:
                    add_root(shadow)
                if element.tag_name == "IFRAME":
                    child = _content_document_or_none(element)
                    if child is not None:
                        add_root(child)
        except Exception as exc:
            # 走査中の DOM 変化・アクセス拒否は読み飛ばす
            logger.debug("ルートの走査を中断しました (%s): %s", key, exc)

    add_root(document)
    return roots


def _content_document_or_none(iframe: DomElement):
    try:
        return iframe.content_document()
    except Exception as exc:
        logger.debug("iframe を読み飛ばします: %s", exc)
        return None


# ---------------------------------------------------------------------------
# ルート単位の検索
# ---------------------------------------------------------------------------

def query_selector_in_root(root: PickerRoot, selector: str) -> Optional[DomElement]:
    """root 内で selector に最初に一致する要素を返す。"""
    return root.query_selector(selector)


def query_selector_all_in_root(root: PickerRoot, selector: str) -> list[DomElement]:
    """root 内で selector に一致する全要素を文書順に返す。"""
    return list(root.query_selector_all(selector))


# ---------------------------------------------------------------------------
# ヒューリスティクス判定
# ---------------------------------------------------------------------------

def element_matches_class_patterns(
    element: DomElement,
    patterns: Sequence[Union[str, re.Pattern[str]]],
) -> bool:
    """className がいずれかのパターンに一致するかを返す。

    文字列は部分一致、コンパイル済み正規表現は search() で判定する。
    """
    class_name = element.class_name or ""
    for pattern in patterns:
        if isinstance(pattern, str):
            if pattern in class_name:
                return True
        elif pattern.search(class_name):
            return True
    return False


def element_has_data_attributes(element: DomElement, attributes: Sequence[str]) -> bool:
    """attr または data-attr のいずれかの属性を持つかを返す。"""
    return any(
        element.has_attribute(attr) or element.has_attribute(f"data-{attr}")
        for attr in attributes
    )


def window_has_global(root: PickerRoot, name: str) -> bool:
    """ルートの window にグローバルシンボル name が存在するかを返す。"""
    try:
        return root.has_global(name)
    except Exception as exc:
        logger.debug("グローバル %s を確認できません: %s", name, exc)
        return False
