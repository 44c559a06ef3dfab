"""Assign unique ids to headings and collect the table of contents."""

from __future__ import annotations

import copy
import typing as typ

from .models import Heading
from .text import collapse_whitespace, slugify, unique_slug

if typ.TYPE_CHECKING:
    from bs4 import BeautifulSoup, Tag

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
NAV_DEPTHS = frozenset({2, 3})


def heading_label(tag: Tag) -> str:
    """Return the display text of a heading, ignoring footnote markers."""
    clone = copy.copy(tag)
    for marker in clone.select("sup.footnote-ref"):
        marker.decompose()
    return collapse_whitespace(clone.get_text(" "))


def inject_heading_anchors(soup: BeautifulSoup) -> list[Heading]:
    """Give every heading a unique id and wrap its content in a self-link.

    Parameters
    ----------
    soup : BeautifulSoup
        Parsed document markup, modified in place.

    Returns
    -------
    list[Heading]
        Headings at the navigable depths (2 and 3) in document order.
    """
    used: set[str] = set()
    collected: list[Heading] = []
    for tag in soup.find_all(HEADING_TAGS):
        depth = int(tag.name[1])
        label = heading_label(tag)
        anchor = unique_slug(slugify(label), used)
        tag["id"] = anchor

        link = soup.new_tag(
            "a",
            attrs={
                "class": "anchor-link",
                "href": f"#{anchor}",
                "aria-label": f"Jump to section: {label}",
            },
        )
        for child in list(tag.contents):
            link.append(child.extract())
        tag.append(link)

        if depth in NAV_DEPTHS:
            collected.append(Heading(depth=depth, text=label, id=anchor))
    return collected


__all__ = ["HEADING_TAGS", "NAV_DEPTHS", "heading_label", "inject_heading_anchors"]
