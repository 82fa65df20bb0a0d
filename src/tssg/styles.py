"""Style merging across ancestor layouts (merge inheritance mode).

Only the nearest layout is spliced into a page's document. The set rules
of farther layouts are carried over on their own, deduplicated by the
element they target so that the nearest ancestor wins.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from tssg.layouts import LayoutCandidate
from tssg.scan import extract_set_rules


@dataclass(frozen=True)
class StyleDirective:
    """A top-level set rule of a layout, e.g. kind "text" for `#set text(...)`."""

    kind: str
    text: str


def extract_styles(layout_source: str) -> list[StyleDirective]:
    """Set rules written directly in a layout body, as markup-level rules."""
    directives = []
    for kind, statement in extract_set_rules(layout_source):
        if not statement.startswith("#"):
            statement = "#" + statement
        directives.append(StyleDirective(kind=kind, text=statement))
    return directives


def merge_styles(
    layouts: Sequence[LayoutCandidate],
    sources: Sequence[str] | None = None,
) -> list[StyleDirective]:
    """Merge the set rules of ancestor layouts.

    Args:
        layouts: Layouts ordered nearest first, as resolved in merge mode.
        sources: Source text to scan per layout, in the same order. Defaults
            to each layout's own source; the composer passes the sources
            with rewritten imports.

    Returns:
        One directive per kind. Order is the order kinds are first seen
        going from the farthest layout to the nearest; a nearer layout
        replaces the value in place.
    """
    if sources is None:
        sources = [layout.source for layout in layouts]

    merged: dict[str, StyleDirective] = {}
    for source in reversed(sources):
        for directive in extract_styles(source):
            merged[directive.kind] = directive

    return list(merged.values())
