"""Tests for per-page compilation sandboxes."""

import pytest

from conftest import write_files
from tssg.sandbox import (
    is_excluded_dir,
    populate_sandbox,
    remove_stale_sandboxes,
    sandbox,
)


def files_under(root):
    return sorted(p.relative_to(root).as_posix() for p in root.rglob("*") if p.is_file())


class TestSandbox:
    def test_removed_after_use(self, tmp_path):
        with sandbox(tmp_path) as path:
            assert path.is_dir()
            assert path.name.startswith("tssg-")
            (path / "file.typ").write_text("x")
        assert not path.exists()

    def test_removed_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with sandbox(tmp_path) as path:
                raise RuntimeError("boom")
        assert not path.exists()


class TestPopulateSandbox:
    @pytest.fixture
    def src(self, tmp_path):
        write_files(
            tmp_path / "src",
            {
                "pages/index.typ": "Home",
                "pages/blog/post.typ": '#import "../../util/util.typ": greet',
                "pages/blog/data.json": "{}",
                "util/util.typ": "#let greet() = [hi]",
                "util/helper.js": "export {}",
                "assets/logo.png": b"\x89PNG",
                "node_modules/pkg/index.typ": "x",
                "build/index.pdf": b"%PDF",
            },
        )
        return tmp_path / "src"

    def test_layout(self, src, tmp_path):
        box = tmp_path / "box"
        box.mkdir()

        work_dir = populate_sandbox(box, ("blog", "post.typ"), src)

        assert work_dir == box / "blog"
        assert files_under(box) == [
            "assets/logo.png",
            "blog/post.typ",
            "index.typ",
            "util/util.typ",
        ]

    def test_page_imports_are_rewritten(self, src, tmp_path):
        box = tmp_path / "box"
        box.mkdir()

        populate_sandbox(box, ("index.typ",), src)

        assert (box / "blog" / "post.typ").read_text() == (
            '#import "../util/util.typ": greet'
        )
        assert (box / "util" / "util.typ").read_text() == "#let greet() = [hi]"

    def test_root_page_work_dir(self, src, tmp_path):
        box = tmp_path / "box"
        box.mkdir()
        assert populate_sandbox(box, ("index.typ",), src) == box


def test_remove_stale_sandboxes(tmp_path):
    (tmp_path / "tssg-abc").mkdir()
    (tmp_path / "tssg-def").mkdir()
    (tmp_path / "keep").mkdir()

    assert remove_stale_sandboxes(tmp_path) == 2
    assert [p.name for p in tmp_path.iterdir()] == ["keep"]


def test_is_excluded_dir():
    assert is_excluded_dir("node_modules")
    assert is_excluded_dir(".git")
    assert is_excluded_dir("build")
    assert is_excluded_dir("tssg-x1y2")
    assert not is_excluded_dir("util")
