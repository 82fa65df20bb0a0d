"""Build domain models"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field


@dataclass(frozen=True)
class Page:
    """A page source: its path under pages/ and its current text."""

    path: tuple[str, ...]
    content: str

    @property
    def name(self) -> str:
        return "/".join(self.path)


class ChangeKind(str, Enum):
    FULL = "full"  # full build
    PAGES = "pages"  # page graph change, affected pages rebuilt
    ASSET = "asset"  # copied verbatim to output/assets
    IGNORED = "ignored"  # not a page-graph change, nothing to do


class PageFailure(BaseModel):
    """A page that failed to build and why."""

    page: str
    message: str

    def __str__(self) -> str:
        return f"Failed to build {self.page}: {self.message}"


class BuildResult(BaseModel):
    """Outcome of a full or incremental build."""

    change: ChangeKind = ChangeKind.FULL
    page_count: int = 0
    asset_count: int = 0
    duration: float = 0.0
    errors: list[PageFailure] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """Whether every page that was attempted built."""
        return not self.errors
