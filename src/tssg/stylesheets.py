"""Stylesheet resolution for the HTML viewer.

`index.css` files in a page's ancestry are inherited with the same policy
as layouts and injected into the page's HTML wrapper.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from tssg.config import InheritanceMode
from tssg.layouts import search_ancestors
from tssg.tree import Directory, Leaf, Node, TreePath

STYLESHEET_FILENAME = "index.css"


@dataclass(frozen=True)
class StylesheetCandidate:
    path: TreePath
    source: str
    depth: int


def _is_stylesheet(path: Sequence[str], node: Node | None) -> bool:
    return isinstance(node, Leaf) and node.is_text


def find_stylesheets(
    page_path: Sequence[str],
    tree: Directory,
    mode: InheritanceMode = InheritanceMode.FALLBACK,
    max_depth: int = 5,
) -> StylesheetCandidate | list[StylesheetCandidate] | None:
    """Resolve the stylesheet(s) applying to a page.

    Returns:
        A list (nearest first, possibly empty) in merge mode, otherwise the
        nearest stylesheet allowed by the mode or None.
    """
    found = [
        StylesheetCandidate(path=path, source=source, depth=depth)
        for path, source, depth in search_ancestors(
            page_path, tree, STYLESHEET_FILENAME, _is_stylesheet, mode, max_depth
        )
    ]

    if mode == InheritanceMode.MERGE:
        return found
    return found[0] if found else None


def compose_css(
    result: StylesheetCandidate | list[StylesheetCandidate] | None,
) -> str:
    """Join resolved stylesheets into one CSS string.

    Several stylesheets are concatenated farthest first, so rules of nearer
    directories come later in the cascade.
    """
    if result is None:
        return ""
    if isinstance(result, StylesheetCandidate):
        return result.source

    return "\n\n".join(
        f"/* === {'/'.join(css.path)} === */\n{css.source}"
        for css in reversed(result)
    )
