"""HTML wrapper pages that reference each compiled PDF."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader

from tssg.routes import ARTIFACT_NAME, route_title
from tssg.scan import find_title

TEMPLATES_DIR = Path(__file__).parent / "templates"
VIEWER_TEMPLATE = "viewer.html.j2"
VIEWER_CSS = "viewer.css"
VIEWER_CSS_OUTPUT = "_viewer.css"


@lru_cache(maxsize=1)
def _get_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=True,
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def normalize_base(base: str) -> str:
    """Public base path with exactly one leading and trailing slash."""
    clean = base.strip("/")
    return f"/{clean}/" if clean else "/"


def page_title(route: str, source: str) -> str:
    """First level-one heading of the page, else the route's last segment."""
    return find_title(source) or route_title(route)


def render_viewer(
    route: str,
    title: str,
    base: str = "/",
    pdf_quality: float = 2.0,
    custom_css: str = "",
) -> str:
    """Render the HTML wrapper of a route.

    Args:
        route: Public route of the page, e.g. "/blog/post/".
        title: Document title. Escaped.
        base: Public base path the site is served under.
        pdf_quality: Render scale exposed to the viewer script.
        custom_css: Inherited page stylesheets. Inserted as is.

    Returns:
        HTML document text.
    """
    template = _get_env().get_template(VIEWER_TEMPLATE)
    return template.render(
        route=route,
        title=title,
        base=normalize_base(base),
        artifact=ARTIFACT_NAME,
        pdf_quality=pdf_quality,
        custom_css=custom_css,
    )


def copy_viewer_assets(output_assets_dir: Path) -> Path:
    """Write the shared viewer stylesheet to the output assets directory."""
    output_assets_dir.mkdir(parents=True, exist_ok=True)
    css = (TEMPLATES_DIR / VIEWER_CSS).read_text(encoding="utf-8")
    target = output_assets_dir / VIEWER_CSS_OUTPUT
    target.write_text(css, encoding="utf-8")
    return target
