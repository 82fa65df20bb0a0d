"""Shared fixtures for tssg tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tssg.compiler import CompileResult, Compiler
from tssg.tree import Directory, Leaf

LAYOUT = """#let layout(body) = {
  set text(size: 11pt)
  body
}
"""


def make_tree(entries: dict) -> Directory:
    """Build a Directory from nested dicts of name -> content | dict."""
    children = {}
    for name, value in entries.items():
        if isinstance(value, dict):
            children[name] = make_tree(value)
        else:
            children[name] = Leaf(value)
    return Directory(children)


def write_files(root: Path, files: dict[str, str | bytes]) -> None:
    """Write {relative path: content} under root."""
    for rel, content in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")


class FakeCompiler(Compiler):
    """Records compiled documents and writes a stub PDF.

    Documents containing `fail_marker` are reported as failed.
    """

    def __init__(self, version: str | None = "0.12.0", fail_marker: str = "FAIL"):
        self.version = version
        self.fail_marker = fail_marker
        self.calls: list[dict] = []

    def check_installed(self) -> str | None:
        return self.version

    async def compile(self, document, output_path, work_dir, root_dir):
        self.calls.append(
            {
                "document": document,
                "output_path": Path(output_path),
                "work_dir": Path(work_dir),
                "root_dir": Path(root_dir),
                "sandbox_files": sorted(
                    p.relative_to(root_dir).as_posix()
                    for p in Path(root_dir).rglob("*")
                    if p.is_file()
                ),
            }
        )
        if self.fail_marker and self.fail_marker in document:
            return CompileResult(success=False, error="error: unknown variable")

        Path(output_path).parent.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_bytes(b"%PDF-1.7 stub")
        return CompileResult(success=True)

    @property
    def compiled_outputs(self) -> list[Path]:
        return [call["output_path"] for call in self.calls]


@pytest.fixture(autouse=True)
def restore_tssg_logger():
    """The CLI reconfigures the "tssg" logger; keep tests independent."""
    logger = logging.getLogger("tssg")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A small project with a layout, nested pages, a shared util and assets."""
    write_files(
        tmp_path,
        {
            "src/pages/index.typ": "= Welcome\n\nHello.\n",
            "src/pages/about.typ": "About us.\n",
            "src/pages/blog/index.typ": LAYOUT,
            "src/pages/blog/index.css": "body { color: navy; }\n",
            "src/pages/blog/post.typ": (
                '#import "../../util/util.typ": greet\n\n= First Post\n\n#greet()\n'
            ),
            "src/util/util.typ": "#let greet() = [hi]\n",
            "src/assets/logo.png": b"\x89PNG\r\n\x1a\n\x00\xff",
            "src/assets/fonts/site.css": "@font-face {}\n",
        },
    )
    return tmp_path
