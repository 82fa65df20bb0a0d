"""Tests for stylesheet inheritance."""

import pytest

from conftest import make_tree
from tssg.config import InheritanceMode
from tssg.stylesheets import StylesheetCandidate, compose_css, find_stylesheets


@pytest.fixture
def tree():
    return make_tree(
        {
            "index.css": "body { margin: 0; }",
            "blog": {"index.css": "h1 { color: red; }", "post.typ": "Post"},
            "docs": {"guide.typ": "Guide"},
        }
    )


def test_fallback_picks_nearest(tree):
    result = find_stylesheets(("blog", "post.typ"), tree)
    assert result.path == ("blog", "index.css")


def test_fallback_walks_up(tree):
    result = find_stylesheets(("docs", "guide.typ"), tree, InheritanceMode.FALLBACK)
    assert result.path == ("index.css",)
    assert result.depth == 1


def test_none_mode_only_own_directory(tree):
    assert find_stylesheets(("docs", "guide.typ"), tree, InheritanceMode.NONE) is None


def test_merge_collects_nearest_first(tree):
    result = find_stylesheets(("blog", "post.typ"), tree, InheritanceMode.MERGE)
    assert [css.path for css in result] == [("blog", "index.css"), ("index.css",)]


def test_compose_css_puts_nearest_last(tree):
    result = find_stylesheets(("blog", "post.typ"), tree, InheritanceMode.MERGE)
    assert compose_css(result) == (
        "/* === index.css === */\nbody { margin: 0; }\n\n"
        "/* === blog/index.css === */\nh1 { color: red; }"
    )


def test_compose_css_single_and_missing():
    single = StylesheetCandidate(path=("index.css",), source="a {}", depth=0)
    assert compose_css(single) == "a {}"
    assert compose_css(None) == ""
    assert compose_css([]) == ""
