"""Tests for the Typst CLI wrapper, driven by a stand-in executable."""

import asyncio
import os
import stat

import pytest

from tssg.compiler import TypstCompiler
from tssg.exceptions import CompilerNotFoundError

pytestmark = pytest.mark.skipif(os.name != "posix", reason="needs a shell script")

FAKE_TYPST = """#!/bin/sh
if [ "$1" = "--version" ]; then
  echo "typst 0.12.0 (737895d7)"
  exit 0
fi
# compile --root <root> input.typ <output>
if grep -q FAIL input.typ; then
  echo "error: unknown variable: oops" >&2
  exit 1
fi
if grep -q SILENT input.typ; then
  exit 2
fi
if grep -q SLEEP input.typ; then
  exec sleep 5
fi
cp input.typ "$5"
"""


@pytest.fixture
def typst(tmp_path):
    path = tmp_path / "bin" / "typst"
    path.parent.mkdir()
    path.write_text(FAKE_TYPST)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def work_dir(tmp_path):
    path = tmp_path / "sandbox" / "blog"
    path.mkdir(parents=True)
    return path


def compile_document(compiler, document, work_dir):
    output = work_dir.parent.parent / "out" / "blog" / "index.pdf"
    result = asyncio.run(
        compiler.compile(document, output, work_dir, work_dir.parent)
    )
    return result, output


class TestCheckInstalled:
    def test_reports_version(self, typst):
        assert TypstCompiler(typst).check_installed() == "0.12.0"

    def test_missing_executable(self, tmp_path):
        assert TypstCompiler(str(tmp_path / "nope")).check_installed() is None


class TestCompile:
    def test_success(self, typst, work_dir):
        result, output = compile_document(TypstCompiler(typst), "= Hello", work_dir)

        assert result.success
        assert result.error is None
        assert output.read_text() == "= Hello"
        assert not (work_dir / "input.typ").exists()

    def test_failure_reports_stderr(self, typst, work_dir):
        result, output = compile_document(TypstCompiler(typst), "#FAIL", work_dir)

        assert not result.success
        assert "unknown variable" in result.error
        assert not output.exists()
        assert not (work_dir / "input.typ").exists()

    def test_failure_without_output(self, typst, work_dir):
        result, _ = compile_document(TypstCompiler(typst), "SILENT", work_dir)
        assert result.error == "typst exited with code 2"

    def test_timeout_kills_compiler(self, typst, work_dir):
        compiler = TypstCompiler(typst, timeout=0.5)
        result, _ = compile_document(compiler, "SLEEP", work_dir)

        assert not result.success
        assert result.error == "Compilation timed out after 0.5s"

    def test_missing_executable(self, tmp_path, work_dir):
        compiler = TypstCompiler(str(tmp_path / "nope"))
        with pytest.raises(CompilerNotFoundError):
            compile_document(compiler, "= Hello", work_dir)
        assert not (work_dir / "input.typ").exists()
