"""tssg CLI

Usage:
    tssg build                       # build ./src into ./build
    tssg build --root site -o dist   # build another project
    tssg rebuild src/pages/a.typ     # rebuild what depends on one file
    tssg --version
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from tssg import __version__
from tssg.build import SiteBuilder
from tssg.config import resolve_build_config
from tssg.exceptions import TssgError
from tssg.models import BuildResult, ChangeKind

console = Console()

app = typer.Typer(
    name="tssg",
    help="Build a static site of PDF pages from Typst sources.",
    no_args_is_help=True,
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the tssg CLI.

    Log levels:
    - Normal: only warnings/errors shown
    - Verbose (-v): INFO level - one line per built page
    - Debug (TSSG_DEBUG=1): DEBUG level - sandboxes, graph, compiler calls
    """
    debug = bool(os.environ.get("TSSG_DEBUG"))
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console,
        show_time=verbose,
        show_path=debug,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger("tssg")
    logger.setLevel(level)
    logger.handlers = [handler]
    logger.propagate = False


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tssg {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "-V",
        "--version",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Typst static site generator."""


def _report(result: BuildResult) -> None:
    for failure in result.errors:
        console.print(f"[red]✗[/red] {escape(str(failure))}")

    if result.change == ChangeKind.IGNORED:
        console.print("[dim]Nothing to rebuild[/dim]")
        return

    summary = (
        f"{result.page_count} page(s), {result.asset_count} asset(s) "
        f"in {result.duration:.2f}s"
    )
    if result.success:
        console.print(f"[green]✓[/green] Built {summary}")
    else:
        console.print(
            f"[red]✗[/red] {len(result.errors)} page(s) failed, built {summary}"
        )
        raise typer.Exit(1)


@app.command()
def build(
    root: Path = typer.Option(
        Path("."), "--root", "-r", help="Project root containing tssg.yaml."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output directory (overrides tssg.yaml)."
    ),
    no_clean: bool = typer.Option(
        False, "--no-clean", help="Keep existing files in the output directory."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Build every page of the site."""
    setup_logging(verbose)
    try:
        config = resolve_build_config(root, output=output, clean=not no_clean)
        result = asyncio.run(SiteBuilder(config).build())
    except TssgError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    _report(result)


@app.command()
def rebuild(
    changed_file: Path = typer.Argument(..., help="File that changed."),
    root: Path = typer.Option(
        Path("."), "--root", "-r", help="Project root containing tssg.yaml."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Output directory (overrides tssg.yaml)."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output."),
) -> None:
    """Rebuild the pages affected by a single changed file."""
    setup_logging(verbose)
    try:
        config = resolve_build_config(root, output=output, clean=False)
        result = asyncio.run(SiteBuilder(config).build_incremental(changed_file))
    except TssgError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    _report(result)


if __name__ == "__main__":
    app()
