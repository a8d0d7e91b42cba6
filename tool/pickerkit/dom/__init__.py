"""DOM アクセス層 — インメモリ DOM と Playwright アダプタ。"""

from .html import DomEvent, HtmlDocument, HtmlElement, HtmlShadowRoot
from .protocols import (
    CrossOriginAccessError,
    Document,
    DomElement,
    DomError,
    InvalidSelectorError,
    PickerRoot,
    Scope,
    ShadowRoot,
)

__all__ = [
    "CrossOriginAccessError",
    "Document",
    "DomElement",
    "DomError",
    "DomEvent",
    "HtmlDocument",
    "HtmlElement",
    "HtmlShadowRoot",
    "InvalidSelectorError",
    "PickerRoot",
    "Scope",
    "ShadowRoot",
]
