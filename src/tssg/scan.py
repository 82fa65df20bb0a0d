"""Best-effort structural scanning of Typst sources.

Nothing here parses Typst. Each helper looks for one construct with
line-oriented pattern matching and returns "absent" (None / empty) when the
construct is not recognized, so callers must tolerate false negatives on
unusual formatting.

Fenced raw blocks (```), `//` line comments and `/* */` comment blocks are
never treated as code: documentation that only displays layout or import
syntax must not be mistaken for the real thing.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

LAYOUT_RE = re.compile(r"^\s*#let\s+layout\s*\(\s*[A-Za-z_][\w-]*\s*\)\s*=")
REFERENCE_RE = re.compile(r'(#(?:import|include)\s+)"([^"]+)"')
HEADING_RE = re.compile(r"^\s*=(?!=)\s+(.+?)\s*(?:<[\w.:-]+>)?\s*$")
SET_RULE_RE = re.compile(r"[ \t]*(#?set\s+([A-Za-z][\w.-]*)\s*\()")

FENCE = "```"


def classify_lines(source: str) -> Iterator[tuple[str, bool]]:
    """Split source into lines (keeping line endings), flagging code lines.

    Yields:
        (line, is_code) pairs. Fence markers, fenced content and comments
        are yielded with is_code False.
    """
    in_fence = False
    in_comment = False

    for line in source.splitlines(keepends=True):
        stripped = line.strip()

        if in_comment:
            close = stripped.find("*/")
            if close != -1:
                in_comment = _opens_comment(stripped[close + 2 :])
            yield line, False
            continue

        if stripped.startswith(FENCE):
            in_fence = not in_fence
            yield line, False
            continue

        if in_fence or stripped.startswith("//"):
            yield line, False
            continue

        if stripped.startswith("/*"):
            in_comment = _opens_comment(stripped)
            yield line, False
            continue

        in_comment = _opens_comment(line)
        yield line, True


def _opens_comment(line: str) -> bool:
    """Whether the line leaves a `/*` block comment open."""
    i = 0
    while i < len(line):
        if line[i] == '"':
            i = _skip_string(line, i)
        elif line.startswith("//", i):
            return False
        elif line.startswith("/*", i):
            end = line.find("*/", i + 2)
            if end == -1:
                return True
            i = end + 2
        else:
            i += 1
    return False


def code_lines(source: str) -> Iterator[str]:
    for line, is_code in classify_lines(source):
        if is_code:
            yield line


def is_layout_source(source: object) -> bool:
    """Whether the text defines a top-level `#let layout(body) = ...`."""
    if not isinstance(source, str):
        return False
    return any(LAYOUT_RE.match(line) for line in code_lines(source))


def find_references(source: str) -> list[str]:
    """Paths named by `#import "..."` and `#include "..."` in code lines."""
    refs: list[str] = []
    for line in code_lines(source):
        refs.extend(m.group(2) for m in REFERENCE_RE.finditer(line))
    return refs


def find_title(source: str) -> str | None:
    """Text of the first level-one heading, if any."""
    for line in code_lines(source):
        match = HEADING_RE.match(line)
        if match:
            return match.group(1)
    return None


def _skip_string(text: str, i: int) -> int:
    """Index just past the string literal starting at text[i] == '"'."""
    i += 1
    while i < len(text):
        if text[i] == "\\":
            i += 2
            continue
        if text[i] == '"':
            return i + 1
        i += 1
    return i


def _skip_line(text: str, i: int) -> int:
    end = text.find("\n", i)
    return len(text) if end == -1 else end


def _skip_comment(text: str, i: int) -> int:
    """Index just past the comment starting at text[i], or i if there is none."""
    if text.startswith("//", i):
        return _skip_line(text, i)
    if text.startswith("/*", i):
        end = text.find("*/", i + 2)
        return len(text) if end == -1 else end + 2
    return i


def _closing(text: str, open_idx: int) -> int | None:
    """Index just past the bracket matching the one at text[open_idx]."""
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack = [pairs[text[open_idx]]]
    i = open_idx + 1

    while i < len(text):
        c = text[i]
        if c == '"':
            i = _skip_string(text, i)
            continue
        skipped = _skip_comment(text, i)
        if skipped != i:
            i = skipped
            continue
        if c in pairs:
            stack.append(pairs[c])
        elif stack and c == stack[-1]:
            stack.pop()
            if not stack:
                return i + 1
        i += 1

    return None


def layout_body(source: str) -> str | None:
    """Text inside the `{ ... }` (or `[ ... ]`) block of the layout definition."""
    offset = 0
    for line, is_code in classify_lines(source):
        match = LAYOUT_RE.match(line) if is_code else None
        if match:
            start = offset + match.end()
            while start < len(source) and source[start].isspace():
                start += 1
            if start >= len(source) or source[start] not in "{[":
                return None
            end = _closing(source, start)
            if end is None:
                return None
            return source[start + 1 : end - 1]
        offset += len(line)
    return None


def extract_set_rules(source: str) -> list[tuple[str, str]]:
    """Set rules written directly in the layout body.

    Rules inside nested blocks (conditionals, content blocks, show rule
    bodies) are ignored. Multi-line argument lists are kept whole.

    Returns:
        (kind, statement) pairs in source order, e.g.
        ("text", "set text(size: 11pt)").
    """
    body = layout_body(source)
    if body is None:
        return []

    rules: list[tuple[str, str]] = []
    depth = 0
    line_start = True
    i = 0

    while i < len(body):
        if line_start and depth == 0:
            match = SET_RULE_RE.match(body, i)
            if match:
                end = _closing(body, match.end() - 1)
                if end is not None:
                    rules.append((match.group(2), body[match.start(1) : end]))
                    i = end
                    line_start = False
                    continue

        c = body[i]
        if c == '"':
            i = _skip_string(body, i)
            line_start = False
            continue
        skipped = _skip_comment(body, i)
        if skipped != i:
            i = skipped
            continue

        if c in "([{":
            depth += 1
        elif c in ")]}":
            depth = max(depth - 1, 0)
        line_start = c == "\n"
        i += 1

    return rules
