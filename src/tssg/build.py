"""Site build orchestration.

A full build compiles every page of `src/pages` to
`<output>/<route>/index.pdf` with an HTML wrapper next to it, copies
`src/assets` to `<output>/assets` and marks the output for static hosting.
An incremental build reacts to a single changed file and rebuilds only what
depends on it.

Each page is built in its own sandbox. A page that fails is reported in the
result and does not stop its siblings; only configuration problems abort
the build.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
import time
from pathlib import Path

from tssg.compiler import Compiler, TypstCompiler
from tssg.compose import compose_document
from tssg.config import BuildConfig, resolve_build_config
from tssg.exceptions import (
    CompilationError,
    CompilerNotFoundError,
    ConfigurationError,
    PagesDirectoryNotFoundError,
)
from tssg.graph import build_dependency_graph, classify_change, find_affected_pages
from tssg.layouts import find_layout, iter_pages
from tssg.models import BuildResult, ChangeKind, Page, PageFailure
from tssg.routes import path_to_route, route_to_build_path
from tssg.sandbox import populate_sandbox, remove_stale_sandboxes, sandbox
from tssg.stylesheets import compose_css, find_stylesheets
from tssg.tree import Directory, count_files, read_tree, write_tree
from tssg.viewer import copy_viewer_assets, page_title, render_viewer

log = logging.getLogger(__name__)

PAGE_EXTENSIONS = (".typ", ".css")
NOJEKYLL = ".nojekyll"


class SiteBuilder:
    """Builds a site described by a BuildConfig.

    Example:
        config = resolve_build_config("my-site")
        result = asyncio.run(SiteBuilder(config).build())
    """

    def __init__(self, config: BuildConfig, compiler: Compiler | None = None):
        """Initialize the builder.

        Args:
            config: Resolved build configuration.
            compiler: Compiler to use. Defaults to the Typst CLI configured in
                tssg.yaml.
        """
        self.config = config
        self.compiler = compiler or TypstCompiler(
            executable=config.site.compiler, timeout=config.site.compile_timeout
        )

    # =========================================================================
    # Setup
    # =========================================================================

    def _check_compiler(self) -> str:
        version = self.compiler.check_installed()
        if version is None:
            raise CompilerNotFoundError(self.config.site.compiler)
        log.info("Using typst %s", version)
        return version

    def _read_pages(self) -> Directory:
        pages_dir = self.config.pages_dir
        if not pages_dir.is_dir():
            raise PagesDirectoryNotFoundError(pages_dir)
        return read_tree(pages_dir, extensions=PAGE_EXTENSIONS)

    def _copy_assets(self) -> int:
        assets_dir = self.config.assets_dir
        if not assets_dir.is_dir():
            return 0
        assets = read_tree(assets_dir)
        write_tree(assets, self.config.output_assets_dir)
        count = count_files(assets)
        log.info("Copied %d asset(s)", count)
        return count

    def _prepare_output(self) -> None:
        output = self.config.output
        if self.config.clean and output.exists():
            shutil.rmtree(output)
        output.mkdir(parents=True, exist_ok=True)
        copy_viewer_assets(self.config.output_assets_dir)

    # =========================================================================
    # Pages
    # =========================================================================

    async def build_page(self, page: Page, pages_tree: Directory) -> str:
        """Compile one page and write its HTML wrapper.

        Args:
            page: Page to build.
            pages_tree: Pages tree the page's layouts and stylesheets are
                resolved from.

        Returns:
            The page's route.

        Raises:
            DocumentError: If the page cannot be composed.
            CompilationError: If the compiler rejects the document.
        """
        site = self.config.site
        mode = self.config.mode

        route = path_to_route(page.path, site.index_page)
        build_path = route_to_build_path(route)

        layout = find_layout(page.path, pages_tree, mode, site.max_merge_depth)
        custom_css = compose_css(
            find_stylesheets(page.path, pages_tree, mode, site.max_merge_depth)
        )
        document = compose_document(layout, page.content, page.path, mode)

        pdf_path = self.config.output / build_path.artifact_rel_path
        with sandbox(base_dir=self.config.root) as sandbox_dir:
            work_dir = populate_sandbox(sandbox_dir, page.path, self.config.src)
            result = await self.compiler.compile(
                document, pdf_path, work_dir, sandbox_dir
            )

        if not result.success:
            raise CompilationError(result.error or "Compilation failed")

        html = render_viewer(
            route,
            page_title(route, page.content),
            base=site.base,
            pdf_quality=site.pdf_quality,
            custom_css=custom_css,
        )
        html_path = self.config.output / build_path.html_rel_path
        html_path.parent.mkdir(parents=True, exist_ok=True)
        html_path.write_text(html, encoding="utf-8")

        return route

    async def _run_page(
        self, page: Page, pages_tree: Directory, verb: str = "Built"
    ) -> PageFailure | None:
        try:
            route = await self.build_page(page, pages_tree)
        except ConfigurationError:
            raise
        except Exception as e:
            failure = PageFailure(page=page.name, message=str(e))
            log.error("%s", failure)
            return failure

        log.info("%s %s", verb, route)
        return None

    # =========================================================================
    # Builds
    # =========================================================================

    async def build(self) -> BuildResult:
        """Build the whole site.

        Returns:
            BuildResult with one failure per page that did not build.

        Raises:
            ConfigurationError: If the compiler or the pages directory is
                missing.
        """
        start = time.monotonic()

        remove_stale_sandboxes(self.config.root)
        self._check_compiler()
        self._prepare_output()

        pages_tree = self._read_pages()
        pages = list(iter_pages(pages_tree))
        log.info("Building %d page(s)", len(pages))

        errors: list[PageFailure] = []
        batch_size = self.config.site.concurrency
        for i in range(0, len(pages), batch_size):
            batch = pages[i : i + batch_size]
            results = await asyncio.gather(
                *(self._run_page(page, pages_tree) for page in batch)
            )
            errors.extend(r for r in results if r is not None)

        asset_count = self._copy_assets()
        (self.config.output / NOJEKYLL).touch()

        return BuildResult(
            change=ChangeKind.FULL,
            page_count=len(pages) - len(errors),
            asset_count=asset_count,
            duration=time.monotonic() - start,
            errors=errors,
        )

    async def build_incremental(self, changed_file: Path | str) -> BuildResult:
        """Rebuild what depends on a single changed file.

        Args:
            changed_file: Path of the file that changed.

        Returns:
            BuildResult whose `change` tells how the file was handled.
        """
        start = time.monotonic()
        changed = Path(changed_file).resolve()
        kind = classify_change(changed, self.config)

        if kind == ChangeKind.ASSET:
            count = self._update_asset(changed)
            return BuildResult(
                change=kind, asset_count=count, duration=time.monotonic() - start
            )

        if kind == ChangeKind.IGNORED:
            log.debug("Ignoring change to %s", changed)
            return BuildResult(change=kind, duration=time.monotonic() - start)

        self._check_compiler()
        pages_tree = self._read_pages()
        graph = build_dependency_graph(
            self.config.src,
            pages_tree,
            self.config.mode,
            self.config.site.max_merge_depth,
        )
        changed_key = changed.relative_to(self.config.src).as_posix()
        affected = find_affected_pages(changed_key, graph, pages_tree)
        log.info("%s affects %d page(s)", changed_key, len(affected))

        self.config.output.mkdir(parents=True, exist_ok=True)
        errors: list[PageFailure] = []
        for page in affected:
            failure = await self._run_page(page, pages_tree, verb="Rebuilt")
            if failure is not None:
                errors.append(failure)

        return BuildResult(
            change=kind,
            page_count=len(affected) - len(errors),
            duration=time.monotonic() - start,
            errors=errors,
        )

    def _update_asset(self, changed: Path) -> int:
        target = self.config.output_assets_dir / changed.relative_to(
            self.config.assets_dir
        )
        if not changed.is_file():
            # Deleted upstream
            target.unlink(missing_ok=True)
            log.info("Removed asset %s", target)
            return 0

        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(changed, target)
        log.info("Copied asset %s", target)
        return 1


async def build(
    root: Path | str = ".",
    output: Path | str | None = None,
    clean: bool = True,
    compiler: Compiler | None = None,
) -> BuildResult:
    """Full build of the site rooted at `root`."""
    config = resolve_build_config(root, output=output, clean=clean)
    return await SiteBuilder(config, compiler).build()


async def build_incremental(
    changed_file: Path | str,
    root: Path | str = ".",
    output: Path | str | None = None,
    compiler: Compiler | None = None,
) -> BuildResult:
    """Incremental build of the site rooted at `root` after one file changed."""
    config = resolve_build_config(root, output=output)
    return await SiteBuilder(config, compiler).build_incremental(changed_file)
