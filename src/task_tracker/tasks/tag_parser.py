# src/task_tracker/tasks/tag_parser.py

"""
Inline tag grammar.

A tag is written as "+label" anywhere in free text. Every tag token is
removed from the text together with one space directly in front of it,
so "a +b c" becomes "a c" rather than "a  c".
"""

from __future__ import annotations

import re

from ..errors import EmptyDescription

_TAG_RE = re.compile(r"\+([^ ]+)")


def parse_tags(s: str) -> tuple[list[str], str]:
    """Return (tags in order of appearance, text with the tags removed)."""
    tags: list[str] = []
    parts: list[str] = []
    pos = 0

    for m in _TAG_RE.finditer(s):
        tags.append(m.group(1))
        start = m.start()
        # At most one preceding space goes with the token.
        if start > pos and s[start - 1] == " ":
            start -= 1
        parts.append(s[pos:start])
        pos = m.end()

    parts.append(s[pos:])
    return tags, "".join(parts).strip()


def first_tag(tags: list[str]) -> str:
    # Tasks carry a single tag; extra tags in the input are dropped.
    return tags[0] if tags else ""


def parse_description(s: str) -> tuple[str, str]:
    """Parse task text into (tag, description); the description must not be empty."""
    tags, rest = parse_tags(s)
    if not rest:
        raise EmptyDescription()
    return first_tag(tags), rest
