"""Per-page compilation sandboxes.

Layout of a sandbox:

    tssg-XXXXXX/
    ├── <contents of src/pages>    # page directories at the sandbox root
    ├── util/                      # every other source directory
    └── assets/

Compilation runs from the page's own directory inside the sandbox with the
sandbox as the Typst root, so rewritten relative imports resolve the same
way they did in the source tree.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

from tssg.config import PAGES_DIR_NAME
from tssg.imports import rewrite_imports
from tssg.tree import TreePath

log = logging.getLogger(__name__)

SANDBOX_PREFIX = "tssg-"
EXCLUDED_DIRS = ("node_modules", ".git", "build")
SKIP_EXTENSIONS = (".json", ".js", ".ts")
TYPST_SUFFIX = ".typ"


def is_excluded_dir(name: str) -> bool:
    """Build output, VCS, dependency and leftover sandbox directories."""
    return name in EXCLUDED_DIRS or name.startswith(SANDBOX_PREFIX)


@contextmanager
def sandbox(base_dir: Path | None = None, prefix: str = SANDBOX_PREFIX) -> Iterator[Path]:
    """Create a temporary directory that is removed however the block exits."""
    path = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir))
    log.debug("Created sandbox %s", path)
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        log.debug("Removed sandbox %s", path)


def _copy_rewritten(source: Path, target: Path, path: TreePath) -> None:
    try:
        text = source.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        shutil.copyfile(source, target)
        return
    target.write_text(rewrite_imports(text, path, path), encoding="utf-8")


def copy_sources(
    source_dir: Path, dest_dir: Path, rewrite_from: TreePath | None = None
) -> int:
    """Copy a source directory recursively, skipping excluded entries.

    With `rewrite_from` set to the copied directory's path under pages/,
    Typst sources get their relative imports rewritten for the sandbox.
    """
    if not source_dir.is_dir():
        return 0

    dest_dir.mkdir(parents=True, exist_ok=True)
    copied = 0
    for entry in sorted(source_dir.iterdir()):
        if is_excluded_dir(entry.name):
            continue
        target = dest_dir / entry.name
        path = None if rewrite_from is None else (*rewrite_from, entry.name)
        if entry.is_dir():
            copied += copy_sources(entry, target, path)
        elif entry.is_file() and entry.suffix.lower() not in SKIP_EXTENSIONS:
            if path is not None and entry.suffix == TYPST_SUFFIX:
                _copy_rewritten(entry, target, path)
            else:
                shutil.copyfile(entry, target)
            copied += 1
    return copied


def populate_sandbox(
    sandbox_dir: Path,
    page_path: Sequence[str],
    src_dir: Path,
    pages_dir_name: str = PAGES_DIR_NAME,
) -> Path:
    """Copy the sources a page needs into its sandbox.

    Args:
        sandbox_dir: Empty sandbox directory.
        page_path: Path of the page under pages/.
        src_dir: Source root.
        pages_dir_name: Name of the pages directory inside src_dir.

    Returns:
        The page's working directory inside the sandbox.
    """
    work_dir = sandbox_dir.joinpath(*page_path[:-1])
    work_dir.mkdir(parents=True, exist_ok=True)

    copy_sources(src_dir / pages_dir_name, sandbox_dir, rewrite_from=())

    for entry in sorted(src_dir.iterdir()):
        if not entry.is_dir() or entry.name == pages_dir_name:
            continue
        if is_excluded_dir(entry.name):
            continue
        copy_sources(entry, sandbox_dir / entry.name)

    return work_dir


def remove_stale_sandboxes(root: Path, prefix: str = SANDBOX_PREFIX) -> int:
    """Remove sandboxes left behind by an interrupted build."""
    removed = 0
    for entry in Path(root).iterdir():
        if entry.is_dir() and entry.name.startswith(prefix):
            shutil.rmtree(entry, ignore_errors=True)
            removed += 1
    if removed:
        log.debug("Removed %d stale sandbox(es) in %s", removed, root)
    return removed
