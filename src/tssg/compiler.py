"""Typst Compiler

Abstract compiler interface and the external `typst` CLI implementation.
"""

from __future__ import annotations

import asyncio
import logging
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import NamedTuple

from tssg.exceptions import CompilerNotFoundError

log = logging.getLogger(__name__)

INPUT_FILE_NAME = "input.typ"
VERSION_RE = re.compile(r"typst\s+([\d.]+)")


class CompileResult(NamedTuple):
    success: bool
    error: str | None = None


class Compiler(ABC):
    """Turns a composed Typst document into a PDF.

    Implementations:
    - TypstCompiler: runs the `typst` executable
    """

    @abstractmethod
    def check_installed(self) -> str | None:
        """Return the compiler version, or None if it cannot be run."""
        pass

    @abstractmethod
    async def compile(
        self, document: str, output_path: Path, work_dir: Path, root_dir: Path
    ) -> CompileResult:
        """Compile a document.

        Args:
            document: Full Typst source.
            output_path: PDF file to produce.
            work_dir: Directory relative imports of the document resolve from.
            root_dir: Root that absolute and upward imports may not leave.

        Returns:
            CompileResult with the compiler diagnostics on failure.

        Raises:
            CompilerNotFoundError: If the compiler cannot be executed.
        """
        pass


class TypstCompiler(Compiler):
    """Compiler backed by the Typst CLI."""

    def __init__(self, executable: str = "typst", timeout: float = 30.0):
        self.executable = executable
        self.timeout = timeout

    def check_installed(self) -> str | None:
        try:
            proc = subprocess.run(
                [self.executable, "--version"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            log.debug("Could not run %s: %s", self.executable, e)
            return None

        if proc.returncode != 0:
            return None

        match = VERSION_RE.search(proc.stdout)
        return match.group(1) if match else proc.stdout.strip() or "unknown"

    async def compile(
        self, document: str, output_path: Path, work_dir: Path, root_dir: Path
    ) -> CompileResult:
        input_path = Path(work_dir) / INPUT_FILE_NAME
        input_path.write_text(document, encoding="utf-8")
        Path(output_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            try:
                process = await asyncio.create_subprocess_exec(
                    self.executable,
                    "compile",
                    "--root",
                    str(root_dir),
                    INPUT_FILE_NAME,
                    str(output_path),
                    cwd=str(work_dir),
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.PIPE,
                )
            except FileNotFoundError as e:
                raise CompilerNotFoundError(self.executable) from e

            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(), timeout=self.timeout
                )
            except asyncio.TimeoutError:
                process.kill()
                await process.wait()
                return CompileResult(
                    success=False,
                    error=f"Compilation timed out after {self.timeout:g}s",
                )

            if process.returncode != 0:
                message = (
                    stderr.decode(errors="replace").strip()
                    or stdout.decode(errors="replace").strip()
                    or f"typst exited with code {process.returncode}"
                )
                return CompileResult(success=False, error=message)

            return CompileResult(success=True)
        finally:
            input_path.unlink(missing_ok=True)
