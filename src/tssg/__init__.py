"""tssg - Typst static site generator"""

__version__ = "0.1.0"

# Re-export from build
from tssg.build import SiteBuilder

# Re-export from config
from tssg.config import BuildConfig, InheritanceMode, SiteConfig, load_config
from tssg.config import resolve_build_config

# Re-export from pipeline
from tssg.compose import compose_document
from tssg.graph import build_dependency_graph, find_affected_pages
from tssg.layouts import find_layout
from tssg.routes import path_to_route, route_to_build_path
from tssg.styles import merge_styles

# Re-export from models
from tssg.models import BuildResult, ChangeKind, Page, PageFailure

__all__ = [
    "__version__",
    # build
    "SiteBuilder",
    # config
    "BuildConfig",
    "InheritanceMode",
    "SiteConfig",
    "load_config",
    "resolve_build_config",
    # pipeline
    "compose_document",
    "build_dependency_graph",
    "find_affected_pages",
    "find_layout",
    "path_to_route",
    "route_to_build_path",
    "merge_styles",
    # models
    "BuildResult",
    "ChangeKind",
    "Page",
    "PageFailure",
]
