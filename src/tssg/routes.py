"""Routes - mapping between page paths, public URLs and build output files."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import PurePosixPath
from typing import NamedTuple

ARTIFACT_NAME = "index.pdf"
HTML_NAME = "index.html"


class BuildPath(NamedTuple):
    """Output locations for a route, relative to the output root."""

    dir: str
    artifact_rel_path: str
    html_rel_path: str


def path_to_route(path: Sequence[str], index_page: str = "index.typ") -> str:
    """Convert a page path to its public route.

    A file named `index_page` maps to its directory; any other file maps to
    its directory plus its name without extension. Routes always end in "/".

    Example:
        >>> path_to_route(["blog", "post.typ"])
        '/blog/post/'
        >>> path_to_route(["index.typ"])
        '/'
    """
    if not path:
        return "/"

    *dirs, filename = path
    if filename != index_page:
        dirs.append(PurePosixPath(filename).stem)

    if not dirs:
        return "/"
    return "/" + "/".join(dirs) + "/"


def route_to_build_path(route: str) -> BuildPath:
    """Convert a route to the artifact and HTML paths it is built to."""
    clean = route.strip("/")
    if not clean:
        return BuildPath(dir="", artifact_rel_path=ARTIFACT_NAME, html_rel_path=HTML_NAME)

    return BuildPath(
        dir=clean,
        artifact_rel_path=f"{clean}/{ARTIFACT_NAME}",
        html_rel_path=f"{clean}/{HTML_NAME}",
    )


def route_title(route: str) -> str:
    """Default page title: last route segment, "Home" for the root."""
    segments = [s for s in route.split("/") if s]
    return segments[-1] if segments else "Home"
