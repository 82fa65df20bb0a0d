"""Layout resolution.

A layout is an `index.typ` whose source defines `#let layout(body) = ...`.
Which ancestor layouts apply to a page depends on the inheritance mode:

- none: only a layout in the page's own directory
- fallback: the nearest layout walking up to the pages root
- merge: every layout up to `max_depth` levels up, nearest first

`is_layout` and `is_page` are the single source of truth for classifying
tree nodes; the build, the dependency graph and the incremental scheduler
all go through them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass

from tssg.config import InheritanceMode
from tssg.models import Page
from tssg.scan import is_layout_source
from tssg.tree import Directory, Leaf, Node, TreePath, get_node, walk_tree

log = logging.getLogger(__name__)

LAYOUT_FILENAME = "index.typ"
PAGE_SUFFIX = ".typ"


@dataclass(frozen=True)
class LayoutCandidate:
    """A layout found in a page's ancestry.

    Attributes:
        path: Path of the layout file under pages/.
        source: Layout source text.
        depth: Directory levels between the page and the layout (0 = same).
    """

    path: TreePath
    source: str
    depth: int


def is_layout(path: Sequence[str], node: Node | None) -> bool:
    """Whether the node at `path` is a layout definition."""
    return (
        bool(path)
        and path[-1] == LAYOUT_FILENAME
        and isinstance(node, Leaf)
        and is_layout_source(node.content)
    )


def is_page(path: Sequence[str], node: Node | None) -> bool:
    """Whether the node at `path` is a page: Typst text that is not a layout."""
    return (
        bool(path)
        and path[-1].endswith(PAGE_SUFFIX)
        and isinstance(node, Leaf)
        and node.is_text
        and not is_layout(path, node)
    )


def iter_pages(tree: Directory) -> Iterator[Page]:
    """Yield every page in the tree in path order."""
    for path, node in walk_tree(tree):
        if is_page(path, node):
            yield Page(path=path, content=node.content)


def search_ancestors(
    page_path: Sequence[str],
    tree: Directory,
    filename: str,
    accept: Callable[[TreePath, Node | None], bool],
    mode: InheritanceMode,
    max_depth: int,
) -> list[tuple[TreePath, str, int]]:
    """Find `filename` in the page's ancestor directories.

    Walks from the page's directory (depth 0) toward the pages root. In
    none mode only depth 0 is inspected, in fallback mode the walk stops at
    the first hit, in merge mode every hit up to `max_depth` (inclusive) is
    collected.

    Returns:
        (path, source, depth) tuples, nearest first.
    """
    if not page_path:
        return []

    directory = list(page_path[:-1])
    found: list[tuple[TreePath, str, int]] = []
    depth = 0

    while True:
        if mode == InheritanceMode.MERGE and depth > max_depth:
            log.debug(
                "Ancestor search for %s truncated at depth %d",
                "/".join(page_path),
                max_depth,
            )
            break

        candidate = (*directory, filename)
        node = get_node(tree, candidate)
        if accept(candidate, node):
            found.append((candidate, node.content, depth))
            if mode != InheritanceMode.MERGE:
                break

        if mode == InheritanceMode.NONE or not directory:
            break

        directory.pop()
        depth += 1

    return found


def find_layout(
    page_path: Sequence[str],
    tree: Directory,
    mode: InheritanceMode = InheritanceMode.FALLBACK,
    max_depth: int = 5,
) -> LayoutCandidate | list[LayoutCandidate] | None:
    """Resolve the layout(s) applying to a page.

    Args:
        page_path: Path of the page under pages/.
        tree: The pages tree.
        mode: Inheritance mode.
        max_depth: Deepest ancestor level searched in merge mode.

    Returns:
        A list (possibly empty) in merge mode, otherwise the layout or None.
    """
    found = [
        LayoutCandidate(path=path, source=source, depth=depth)
        for path, source, depth in search_ancestors(
            page_path, tree, LAYOUT_FILENAME, is_layout, mode, max_depth
        )
    ]

    if mode == InheritanceMode.MERGE:
        return found
    return found[0] if found else None


def as_layout_list(
    result: LayoutCandidate | list[LayoutCandidate] | None,
) -> list[LayoutCandidate]:
    if result is None:
        return []
    if isinstance(result, LayoutCandidate):
        return [result]
    return list(result)
