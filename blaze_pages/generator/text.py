"""Plain-text helpers shared by the transform and the search index."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

WHITESPACE_PATTERN = re.compile(r"\s+")
NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9]+")


def collapse_whitespace(value: str) -> str:
    """Collapse runs of whitespace into single spaces and trim the ends."""
    return WHITESPACE_PATTERN.sub(" ", value).strip()


def strip_tags(html: str) -> str:
    """Return the text content of an HTML fragment with whitespace collapsed."""
    if not html.strip():
        return ""
    soup = BeautifulSoup(html, "html.parser")
    return collapse_whitespace(soup.get_text(" "))


def slugify(value: str, fallback: str = "section") -> str:
    """Convert text into a lowercase hyphen-separated identifier.

    Examples
    --------
    >>> slugify("Getting Started: Install & Run")
    'getting-started-install-run'
    >>> slugify("!!!")
    'section'
    """
    slug = NON_ALNUM_PATTERN.sub("-", value.lower()).strip("-")
    return slug or fallback


def unique_slug(base: str, used: set[str]) -> str:
    """Generate a unique slug, appending numeric suffixes and mutating ``used``."""
    candidate = base
    suffix = 2
    while candidate in used:
        candidate = f"{base}-{suffix}"
        suffix += 1
    used.add(candidate)
    return candidate


def excerpt(text: str, max_length: int) -> str:
    """Return the first ``max_length`` characters, marking truncation with ``...``."""
    if len(text) <= max_length:
        return text
    return f"{text[:max_length].rstrip()}..."


__all__ = [
    "collapse_whitespace",
    "excerpt",
    "slugify",
    "strip_tags",
    "unique_slug",
]
