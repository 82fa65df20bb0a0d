"""File trees - directory subtrees held in memory.

A tree is a `Directory` of named children, each either a nested
`Directory` or a `Leaf` holding text (UTF-8) or raw bytes. Paths into a
tree are tuples of names from the root.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

log = logging.getLogger(__name__)

DEFAULT_IGNORE = ("node_modules", ".git")


@dataclass(frozen=True)
class Leaf:
    """File content."""

    content: str | bytes

    @property
    def is_text(self) -> bool:
        return isinstance(self.content, str)


@dataclass(frozen=True)
class Directory:
    """Named children of a directory."""

    children: dict[str, Node] = field(default_factory=dict)

    def __contains__(self, name: str) -> bool:
        return name in self.children

    def __len__(self) -> int:
        return len(self.children)


Node = Leaf | Directory
TreePath = tuple[str, ...]


def _is_ignored(name: str, ignore: Iterable[str]) -> bool:
    return any(name == pattern or name.startswith(pattern) for pattern in ignore)


def _read_file(path: Path) -> str | bytes:
    data = path.read_bytes()
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data


def read_tree(
    root: Path,
    extensions: Iterable[str] | None = None,
    ignore: Iterable[str] = DEFAULT_IGNORE,
) -> Directory:
    """Read a directory subtree into memory.

    Args:
        root: Directory to read.
        extensions: If given, only files with one of these suffixes are kept.
        ignore: Names (or name prefixes) of entries to skip.

    Returns:
        The tree rooted at `root`.

    Raises:
        FileNotFoundError: If root does not exist.
        NotADirectoryError: If root is not a directory.
    """
    root = Path(root)
    if not root.exists():
        raise FileNotFoundError(f"Path does not exist: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Path is not a directory: {root}")

    allowed = set(extensions) if extensions is not None else None
    ignore = tuple(ignore)

    def read_dir(dir_path: Path) -> Directory:
        children: dict[str, Node] = {}
        try:
            entries = sorted(dir_path.iterdir())
        except OSError as e:
            log.warning("Could not read directory %s: %s", dir_path, e)
            return Directory(children)

        for entry in entries:
            if _is_ignored(entry.name, ignore):
                continue
            if entry.is_dir():
                children[entry.name] = read_dir(entry)
            elif entry.is_file():
                if allowed is not None and entry.suffix not in allowed:
                    continue
                try:
                    children[entry.name] = Leaf(_read_file(entry))
                except OSError as e:
                    log.warning("Could not read file %s: %s", entry, e)

        return Directory(children)

    return read_dir(root)


def write_tree(tree: Directory, output: Path, clean: bool = False) -> int:
    """Write a tree to disk and return the number of files written."""
    output = Path(output)
    if clean and output.exists():
        shutil.rmtree(output)
    output.mkdir(parents=True, exist_ok=True)

    written = 0

    def write_dir(node: Directory, dir_path: Path) -> None:
        nonlocal written
        for name, child in node.children.items():
            target = dir_path / name
            if isinstance(child, Directory):
                target.mkdir(parents=True, exist_ok=True)
                write_dir(child, target)
            elif isinstance(child.content, str):
                target.write_text(child.content, encoding="utf-8")
                written += 1
            else:
                target.write_bytes(child.content)
                written += 1

    write_dir(tree, output)
    return written


def walk_tree(tree: Directory) -> Iterator[tuple[TreePath, Node]]:
    """Yield (path, node) for every node, depth first in name order."""

    def walk(node: Directory, prefix: TreePath) -> Iterator[tuple[TreePath, Node]]:
        for name in sorted(node.children):
            child = node.children[name]
            path = (*prefix, name)
            yield path, child
            if isinstance(child, Directory):
                yield from walk(child, path)

    yield from walk(tree, ())


def get_node(tree: Directory, path: Iterable[str]) -> Node | None:
    """Look up the node at `path`, or None if any segment is missing."""
    node: Node = tree
    for segment in path:
        if not isinstance(node, Directory) or segment not in node.children:
            return None
        node = node.children[segment]
    return node


def filter_tree(
    tree: Directory, predicate: Callable[[TreePath, Node], bool]
) -> Directory:
    """Keep nodes matching `predicate`. Directories left empty are dropped."""

    def keep(node: Directory, prefix: TreePath) -> Directory:
        children: dict[str, Node] = {}
        for name, child in node.children.items():
            path = (*prefix, name)
            if not predicate(path, child):
                continue
            if isinstance(child, Directory):
                kept = keep(child, path)
                if kept.children:
                    children[name] = kept
            else:
                children[name] = child
        return Directory(children)

    return keep(tree, ())


def map_tree(tree: Directory, mapper: Callable[[TreePath, Leaf], Leaf]) -> Directory:
    """Transform every leaf, keeping the directory structure."""

    def transform(node: Directory, prefix: TreePath) -> Directory:
        children: dict[str, Node] = {}
        for name, child in node.children.items():
            path = (*prefix, name)
            if isinstance(child, Directory):
                children[name] = transform(child, path)
            else:
                children[name] = mapper(path, child)
        return Directory(children)

    return transform(tree, ())


def count_files(tree: Directory) -> int:
    return sum(1 for _, node in walk_tree(tree) if isinstance(node, Leaf))
