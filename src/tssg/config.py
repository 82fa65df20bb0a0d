"""Configuration parsing for tssg.yaml

Schema:
- src: source directory holding pages/ and assets/
- output: build output directory
- base: public base path the site is served under
- index_page: file name that maps to its directory route
- layout_inheritance: none | fallback | merge
- max_merge_depth: ancestor levels searched in merge mode
- pdf_quality: render scale handed to the viewer
- compiler / compile_timeout: external Typst executable and its time limit
- concurrency: pages compiled together in a full build
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import NamedTuple

import yaml
from pydantic import BaseModel, Field, ValidationError

from tssg.exceptions import ConfigurationError

CONFIG_FILE_NAME = "tssg.yaml"
PAGES_DIR_NAME = "pages"
ASSETS_DIR_NAME = "assets"


class InheritanceMode(str, Enum):
    NONE = "none"
    FALLBACK = "fallback"
    MERGE = "merge"


class SiteConfig(BaseModel):
    """User configuration loaded from tssg.yaml."""

    model_config = {"frozen": True, "extra": "forbid"}

    src: str = Field(default="./src", description="Source directory")
    output: str = Field(default="./build", description="Output directory")
    base: str = Field(default="/", description="Public base path")
    index_page: str = Field(
        default="index.typ", description="File name mapped to its directory route"
    )
    layout_inheritance: InheritanceMode = Field(
        default=InheritanceMode.FALLBACK, description="Layout inheritance policy"
    )
    max_merge_depth: int = Field(
        default=5, ge=0, description="Ancestor levels searched in merge mode"
    )
    pdf_quality: float = Field(default=2.0, gt=0, description="Viewer render scale")
    compiler: str = Field(default="typst", description="Typst executable")
    compile_timeout: float = Field(
        default=30.0, gt=0, description="Seconds before a compilation is killed"
    )
    concurrency: int = Field(
        default=4, ge=1, description="Pages compiled concurrently in a full build"
    )


class BuildConfig(NamedTuple):
    """Resolved paths and settings for one build invocation."""

    root: Path
    src: Path
    output: Path
    site: SiteConfig
    clean: bool = True

    @property
    def pages_dir(self) -> Path:
        """<src>/pages"""
        return self.src / PAGES_DIR_NAME

    @property
    def assets_dir(self) -> Path:
        """<src>/assets"""
        return self.src / ASSETS_DIR_NAME

    @property
    def output_assets_dir(self) -> Path:
        """<output>/assets"""
        return self.output / ASSETS_DIR_NAME

    @property
    def mode(self) -> InheritanceMode:
        return self.site.layout_inheritance


def load_config(root: Path) -> SiteConfig:
    """Load tssg.yaml from the project root.

    A missing file yields the defaults. A file that cannot be parsed or
    validated is a configuration error.
    """
    path = root / CONFIG_FILE_NAME
    if not path.exists():
        return SiteConfig()

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to read {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a mapping")

    try:
        return SiteConfig(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {path}:\n{e}") from e


def resolve_build_config(
    root: Path | str = ".",
    output: Path | str | None = None,
    clean: bool = True,
    site: SiteConfig | None = None,
) -> BuildConfig:
    """Resolve the configuration for a build rooted at `root`.

    Args:
        root: Project root containing tssg.yaml and the source directory.
        output: Output directory override. Defaults to the configured one,
            relative to the root.
        clean: Whether a full build removes the output directory first.
        site: Already loaded site configuration. Loaded from root if None.

    Returns:
        BuildConfig with absolute paths.
    """
    root_path = Path(root).resolve()
    site = site or load_config(root_path)

    output_path = Path(output) if output is not None else root_path / site.output
    return BuildConfig(
        root=root_path,
        src=(root_path / site.src).resolve(),
        output=output_path.resolve(),
        site=site,
        clean=clean,
    )
