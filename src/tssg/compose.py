"""Document composition - layout(s) + page body -> one Typst document."""

from __future__ import annotations

from collections.abc import Sequence

from tssg.config import InheritanceMode
from tssg.exceptions import DocumentError
from tssg.imports import rewrite_imports
from tssg.layouts import LayoutCandidate, as_layout_list
from tssg.styles import merge_styles

MINIMAL_PREAMBLE = """#set page(
  width: 42em,
  height: auto,
  margin: (x: 0.25em, y: 0.25em),
  fill: white
)

#set text(fill: black)
"""


def minimal_document(page_body: str) -> str:
    """Wrap a page without layout in the built-in page defaults."""
    return f"{MINIMAL_PREAMBLE}\n{page_body}"


def _wrap(layout_source: str, page_body: str) -> str:
    return f"{layout_source}\n\n#layout[\n{page_body}\n]"


def compose_document(
    layout_result: LayoutCandidate | list[LayoutCandidate] | None,
    page_body: str,
    page_path: Sequence[str],
    mode: InheritanceMode = InheritanceMode.FALLBACK,
) -> str:
    """Compose the document compiled for a page.

    Args:
        layout_result: Output of `find_layout` for the page.
        page_body: Page source text.
        page_path: Path of the page under pages/.
        mode: Inheritance mode the layouts were resolved with.

    Returns:
        Typst source ready to be compiled from the page's directory.

    Raises:
        DocumentError: If the page body is not text.
    """
    if not isinstance(page_body, str):
        raise DocumentError(
            f"Page body of {'/'.join(page_path)} must be text, "
            f"got {type(page_body).__name__}"
        )

    body = rewrite_imports(page_body, page_path, page_path)
    layouts = as_layout_list(layout_result)
    if not layouts:
        return minimal_document(body)

    sources = [
        rewrite_imports(layout.source, layout.path, page_path) for layout in layouts
    ]

    if mode != InheritanceMode.MERGE or len(layouts) == 1:
        return _wrap(sources[0], body)

    directives = merge_styles(layouts, sources)
    merged = "\n".join(d.text for d in directives)
    return f"{merged}\n\n{_wrap(sources[0], body)}"
