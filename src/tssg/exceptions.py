"""tssg Exceptions

Custom exceptions for the site builder.
"""

from __future__ import annotations

from pathlib import Path


class TssgError(Exception):
    """Base exception for all tssg errors."""

    pass


class ConfigurationError(TssgError):
    """Raised when the build cannot start. Aborts the whole build."""

    pass


class PagesDirectoryNotFoundError(ConfigurationError):
    """Raised when the source tree has no pages directory."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Pages directory not found: {path}")


class CompilerNotFoundError(ConfigurationError):
    """Raised when the external Typst compiler cannot be executed."""

    def __init__(self, executable: str):
        self.executable = executable
        super().__init__(
            f"Typst is not installed ({executable!r} not found). "
            "Install from https://typst.app/open-source/#download"
        )


class DocumentError(TssgError):
    """Raised when a page cannot be turned into a compilable document."""

    pass


class CompilationError(TssgError):
    """Raised when the compiler reports a failure for a page."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
