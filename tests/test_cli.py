"""Tests for the tssg command line."""

import inspect

import pytest
from typer.testing import CliRunner

import tssg
from conftest import FakeCompiler, write_files
from tssg import __version__
from tssg.cli import app

runner = CliRunner()


@pytest.fixture
def compiler(monkeypatch):
    fake = FakeCompiler()
    monkeypatch.setattr("tssg.build.TypstCompiler", lambda **kwargs: fake)
    return fake


def test_build_module_not_shadowed():
    """Package exports leave `tssg.build` pointing at the module."""
    assert inspect.ismodule(tssg.build)
    assert tssg.build.SiteBuilder is tssg.SiteBuilder
    assert tssg.build.TypstCompiler is not None


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert f"tssg {__version__}" in result.output


def test_build(site, compiler):
    result = runner.invoke(app, ["build", "--root", str(site)])

    assert result.exit_code == 0, result.output
    assert "Built 3 page(s)" in result.output
    assert (site / "build" / "index.pdf").exists()


def test_build_output_option(site, tmp_path, compiler):
    out = tmp_path / "public"
    result = runner.invoke(app, ["build", "--root", str(site), "-o", str(out)])

    assert result.exit_code == 0, result.output
    assert (out / "about" / "index.html").exists()


def test_build_with_failed_page(site, compiler):
    write_files(site, {"src/pages/broken.typ": "#FAIL"})

    result = runner.invoke(app, ["build", "--root", str(site)])

    assert result.exit_code == 1
    assert "Failed to build broken.typ" in result.output


def test_build_without_pages(tmp_path, compiler):
    (tmp_path / "src").mkdir()

    result = runner.invoke(app, ["build", "--root", str(tmp_path)])

    assert result.exit_code == 1
    assert "Pages directory not found" in result.output


def test_build_without_compiler(site, monkeypatch):
    monkeypatch.setattr(
        "tssg.build.TypstCompiler", lambda **kwargs: FakeCompiler(version=None)
    )

    result = runner.invoke(app, ["build", "--root", str(site)])

    assert result.exit_code == 1
    assert "Typst is not installed" in result.output


def test_rebuild_page(site, compiler):
    runner.invoke(app, ["build", "--root", str(site)])
    compiler.calls.clear()

    changed = site / "src" / "util" / "util.typ"
    result = runner.invoke(app, ["rebuild", str(changed), "--root", str(site)])

    assert result.exit_code == 0, result.output
    assert "Built 1 page(s)" in result.output
    assert len(compiler.calls) == 1


def test_rebuild_ignored_file(site, compiler):
    readme = site / "README.md"
    readme.write_text("# Site\n")

    result = runner.invoke(app, ["rebuild", str(readme), "--root", str(site)])

    assert result.exit_code == 0
    assert "Nothing to rebuild" in result.output
