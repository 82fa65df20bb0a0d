"""Dependency graph and incremental rebuild scheduling.

Keys are "/"-separated paths relative to the source root, e.g.
"pages/blog/post.typ" or "util/util.typ". An edge A -> B means the output
of A depends on the content of B. Edges come from two places:

- relative `#import` / `#include` directives in any Typst source
- layouts and stylesheets pulled in by directory convention for each page

The graph may be cyclic and may point at files that do not exist; every
traversal here tolerates both.
"""

from __future__ import annotations

import logging
import os
from collections import deque
from collections.abc import Iterable, Sequence
from pathlib import Path

from tssg.config import PAGES_DIR_NAME, BuildConfig, InheritanceMode
from tssg.imports import resolve_reference
from tssg.layouts import as_layout_list, find_layout, is_page, iter_pages
from tssg.models import ChangeKind, Page
from tssg.sandbox import is_excluded_dir
from tssg.scan import find_references
from tssg.stylesheets import STYLESHEET_FILENAME, find_stylesheets
from tssg.tree import Directory, get_node

log = logging.getLogger(__name__)

DependencyGraph = dict[str, set[str]]

SOURCE_SUFFIX = ".typ"


def page_key(path: Sequence[str], pages_prefix: str = PAGES_DIR_NAME) -> str:
    """Source-root key of a path under pages/."""
    return "/".join((pages_prefix, *path))


def scan_sources(src_dir: Path) -> DependencyGraph:
    """Collect the relative references of every Typst file under src_dir."""
    graph: DependencyGraph = {}
    src_dir = Path(src_dir)

    for root, dirs, files in os.walk(src_dir):
        # Prune build output, VCS and sandbox directories in place
        dirs[:] = sorted(d for d in dirs if not is_excluded_dir(d))

        for file_name in sorted(files):
            if not file_name.endswith(SOURCE_SUFFIX):
                continue

            file_path = Path(root) / file_name
            key = file_path.relative_to(src_dir).as_posix()
            try:
                content = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                log.warning("Could not scan %s: %s", key, e)
                graph.setdefault(key, set())
                continue

            deps = graph.setdefault(key, set())
            for reference in find_references(content):
                resolved = resolve_reference(key, reference)
                if resolved is not None:
                    deps.add(resolved)

    return graph


def build_dependency_graph(
    src_dir: Path,
    pages_tree: Directory,
    mode: InheritanceMode,
    max_depth: int,
    pages_prefix: str = PAGES_DIR_NAME,
) -> DependencyGraph:
    """Build the full dependency graph of a site.

    Args:
        src_dir: Source root to scan for Typst files.
        pages_tree: Tree read from the pages directory.
        mode: Active layout inheritance mode.
        max_depth: Merge-mode search depth.
        pages_prefix: Name of the pages directory inside src_dir.

    Returns:
        Mapping of source key -> keys it depends on.
    """
    graph = scan_sources(src_dir)

    for page in iter_pages(pages_tree):
        deps = graph.setdefault(page_key(page.path, pages_prefix), set())

        for layout in as_layout_list(find_layout(page.path, pages_tree, mode, max_depth)):
            deps.add(page_key(layout.path, pages_prefix))

        stylesheets = find_stylesheets(page.path, pages_tree, mode, max_depth)
        if stylesheets is not None and not isinstance(stylesheets, list):
            stylesheets = [stylesheets]
        for css in stylesheets or []:
            deps.add(page_key(css.path, pages_prefix))

    return graph


def reverse_graph(graph: DependencyGraph) -> DependencyGraph:
    """Map each key to the keys that depend on it."""
    dependents: DependencyGraph = {}
    for key, deps in graph.items():
        for dep in deps:
            dependents.setdefault(dep, set()).add(key)
    return dependents


def find_dependents(changed_key: str, graph: DependencyGraph) -> set[str]:
    """Every key that transitively depends on `changed_key`.

    The changed key itself is only included when it sits on a cycle.
    """
    dependents = reverse_graph(graph)
    affected: set[str] = set()
    visited = {changed_key}
    queue = deque([changed_key])

    while queue:
        current = queue.popleft()
        for dependent in dependents.get(current, ()):
            affected.add(dependent)
            if dependent not in visited:
                visited.add(dependent)
                queue.append(dependent)

    return affected


def _keys_to_pages(
    keys: Iterable[str], pages_tree: Directory, pages_prefix: str
) -> list[Page]:
    prefix = pages_prefix + "/"
    pages = []
    for key in sorted(keys):
        if not key.startswith(prefix):
            continue
        path = tuple(key[len(prefix) :].split("/"))
        node = get_node(pages_tree, path)
        if is_page(path, node):
            pages.append(Page(path=path, content=node.content))
    return pages


def find_affected_pages(
    changed_key: str,
    graph: DependencyGraph,
    pages_tree: Directory,
    pages_prefix: str = PAGES_DIR_NAME,
) -> list[Page]:
    """Pages that must be rebuilt after `changed_key` changed.

    Args:
        changed_key: Source-root key of the changed file.
        graph: Current dependency graph.
        pages_tree: Current pages tree, used to keep only real pages and to
            read their content.
        pages_prefix: Name of the pages directory inside the source root.

    Returns:
        Affected pages ordered by path. The changed file is included when it
        is itself a page.
    """
    affected = find_dependents(changed_key, graph)
    if changed_key.startswith(pages_prefix + "/"):
        affected.add(changed_key)
    return _keys_to_pages(affected, pages_tree, pages_prefix)


def classify_change(changed_file: Path, config: BuildConfig) -> ChangeKind:
    """Decide how a changed file is handled by an incremental build.

    - files under src/assets are copied as they are
    - Typst sources under src, and stylesheets under src/pages, go through
      the page dependency graph
    - anything else is not a page-graph change
    """
    changed = Path(changed_file).resolve()

    if changed.is_relative_to(config.assets_dir):
        return ChangeKind.ASSET
    if not changed.is_relative_to(config.src):
        return ChangeKind.IGNORED
    if changed.suffix == SOURCE_SUFFIX:
        return ChangeKind.PAGES
    if changed.name == STYLESHEET_FILENAME and changed.is_relative_to(
        config.pages_dir
    ):
        return ChangeKind.PAGES
    return ChangeKind.IGNORED
