"""Helpers for rewriting links between sibling markdown sources."""

from __future__ import annotations

import posixpath
import typing as typ
from urllib.parse import urlsplit

from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor

from .paths import relative_href

if typ.TYPE_CHECKING:
    from xml.etree.ElementTree import Element

    from bs4 import BeautifulSoup
    from markdown import Markdown

    from .models import SourceDocument
else:  # pragma: no cover - type-checking fallback
    Markdown = typ.Any
    Element = typ.Any
    SourceDocument = typ.Any
    BeautifulSoup = typ.Any

SCHEME_PREFIXES = ("http://", "https://", "mailto:", "tel:", "data:", "javascript:")


class SiblingLinkExtension(Extension):
    """Rewrite links to sibling ``.md`` sources into output-relative URLs.

    Insert this extension into a ``markdown.Markdown`` instance so that
    ``[Setup](../guide/setup.md#install)`` written in ``docs/intro.md`` points
    at the emitted page of ``guide/setup.md`` relative to the page being
    rendered. Links that are external, absolute, fragment-only, or that do
    not resolve to a known source are left untouched.
    """

    def __init__(
        self, document: SourceDocument, siblings: typ.Mapping[str, SourceDocument]
    ) -> None:
        super().__init__()
        self.document = document
        self.siblings = siblings

    def extendMarkdown(self, md: Markdown) -> None:  # type: ignore[override]  # noqa: N802
        """Register the sibling-link treeprocessor on the Markdown instance."""
        processor = SiblingLinkTreeprocessor(md, self.document, self.siblings)
        md.treeprocessors.register(processor, "blaze_sibling_links", 15)


class SiblingLinkTreeprocessor(Treeprocessor):
    """Rewrite anchors whose target is a sibling markdown source."""

    def __init__(
        self,
        md: Markdown,
        document: SourceDocument,
        siblings: typ.Mapping[str, SourceDocument],
    ) -> None:
        super().__init__(md)
        self.document = document
        self.siblings = siblings

    def run(self, root: Element) -> Element:
        """Rewrite sibling anchors in the parsed markdown tree."""
        for element in root.iter("a"):
            rewritten = rewrite_href(element.get("href"), self.document, self.siblings)
            if rewritten is not None:
                element.set("href", rewritten)
        return root


def rewrite_href(
    target: str | None,
    document: SourceDocument,
    siblings: typ.Mapping[str, SourceDocument],
) -> str | None:
    """Return the output-relative URL for a sibling link, or None to keep it.

    Parameters
    ----------
    target : str or None
        The ``href`` as written in the markdown source.
    document : SourceDocument
        The document containing the link.
    siblings : Mapping[str, SourceDocument]
        Every document in the build, keyed by POSIX source path.

    Returns
    -------
    str or None
        The rewritten link, preserving query and fragment, or ``None`` when
        the link is external, absolute, fragment-only, or unresolved.
    """
    if not target or target.startswith(("#", "/", "//")):
        return None
    if target.lower().startswith(SCHEME_PREFIXES) or "://" in target:
        return None

    parsed = urlsplit(target)
    if parsed.scheme or parsed.netloc or not parsed.path.endswith(".md"):
        return None

    source_dir = posixpath.dirname(document.source_path)
    resolved = posixpath.normpath(posixpath.join(source_dir, parsed.path))
    sibling = siblings.get(resolved)
    if sibling is None:
        return None

    url = relative_href(document.output_path, sibling.url_path)
    if parsed.query:
        url = f"{url}?{parsed.query}"
    if parsed.fragment:
        url = f"{url}#{parsed.fragment}"
    return url


def rewrite_sibling_links(
    soup: BeautifulSoup,
    document: SourceDocument,
    siblings: typ.Mapping[str, SourceDocument],
) -> int:
    """Rewrite every ``a[href]`` in ``soup`` that targets a sibling source.

    Anchors written as raw HTML never reach the markdown element tree, so
    this pass runs over the rendered markup. Returns the number of links
    rewritten.
    """
    rewritten = 0
    for anchor in soup.find_all("a", href=True):
        target = rewrite_href(str(anchor["href"]), document, siblings)
        if target is not None:
            anchor["href"] = target
            rewritten += 1
    return rewritten


__all__ = [
    "SiblingLinkExtension",
    "SiblingLinkTreeprocessor",
    "rewrite_href",
    "rewrite_sibling_links",
]
