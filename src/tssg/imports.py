"""Import rewriting for relocated sources.

Pages and layouts are compiled inside a sandbox whose root holds the
contents of pages/ plus every other source directory next to it:

    <source root>/pages/blog/post.typ   ->  <sandbox>/blog/post.typ
    <source root>/util/util.typ         ->  <sandbox>/util/util.typ

A layout is spliced into the document of a page that may sit at a
different depth, so its relative `#import` / `#include` paths have to be
re-expressed from the page's directory.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from tssg.config import PAGES_DIR_NAME
from tssg.scan import REFERENCE_RE, classify_lines

log = logging.getLogger(__name__)


def is_relative_reference(reference: str) -> bool:
    return reference.startswith(("./", "../")) or reference in (".", "..")


def _resolve(base: Sequence[str], reference: str) -> list[str] | None:
    """Apply a relative reference to a directory path.

    Returns None when the reference climbs above the root of `base`.
    """
    parts = list(base)
    for segment in reference.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not parts:
                return None
            parts.pop()
        else:
            parts.append(segment)
    return parts


def resolve_reference(from_key: str, reference: str) -> str | None:
    """Resolve a reference made by the file at `from_key`.

    Args:
        from_key: "/"-separated path of the referencing file, relative to
            the source root.
        reference: The path written in the directive.

    Returns:
        The referenced file as a source-root key, or None when the reference
        is not relative or climbs above the source root.
    """
    if not is_relative_reference(reference):
        return None
    parts = _resolve(from_key.split("/")[:-1], reference)
    if not parts:
        return None
    return "/".join(parts)


def rewrite_imports(
    source: str, from_path: Sequence[str], to_path: Sequence[str]
) -> str:
    """Rewrite relative references so they resolve from `to_path`.

    Args:
        source: Typst source containing `#import` / `#include` directives.
        from_path: Logical location of `source` under pages/.
        to_path: Location under pages/ of the document `source` ends up in.

    Returns:
        Source with every relative reference rewritten. Package and absolute
        references, references inside raw blocks or comments, and references
        climbing above the source root are left as they are.
    """
    from_dir = [PAGES_DIR_NAME, *from_path[:-1]]
    prefix = "../" * (len(to_path) - 1)

    def replace(match) -> str:
        reference = match.group(2)
        if not is_relative_reference(reference):
            return match.group(0)

        target = _resolve(from_dir, reference)
        if not target:
            log.debug(
                "Leaving %r in %s unresolved: it climbs above the source root",
                reference,
                "/".join(from_path),
            )
            return match.group(0)

        if target[0] == PAGES_DIR_NAME:
            target = target[1:]
        return f'{match.group(1)}"{prefix}{"/".join(target)}"'

    return "".join(
        REFERENCE_RE.sub(replace, line) if is_code else line
        for line, is_code in classify_lines(source)
    )
