"""Shared dataclasses used by the document transform pipeline."""

from __future__ import annotations

import dataclasses as dc

from blaze_pages._constants import DEFAULT_ORDER


@dc.dataclass(frozen=True, slots=True)
class SourceDocument:
    """A loaded markdown source before transformation.

    Attributes
    ----------
    source_path : str
        POSIX path relative to the content root (``"guide/setup.md"``).
    slug : str
        Normalized slug; empty for the home page.
    title : str
        Display title.
    description : str
        Meta description; may be empty.
    order : float
        Explicit navigation ordering key (``999`` when absent).
    body : str
        Raw markdown body without frontmatter.
    nav_exclude : bool
        Omit from navigation and the precache manifest.
    search_exclude : bool
        Omit from the search index.
    """

    source_path: str
    slug: str
    title: str
    description: str = ""
    order: float = DEFAULT_ORDER
    body: str = ""
    nav_exclude: bool = False
    search_exclude: bool = False

    @property
    def output_path(self) -> str:
        """Return the site-relative file this document is written to."""
        return f"{self.slug}/index.html" if self.slug else "index.html"

    @property
    def url_path(self) -> str:
        """Return the site-relative URL; empty for the home page."""
        return f"{self.slug}/" if self.slug else ""

    @property
    def is_home(self) -> bool:
        return not self.slug


@dc.dataclass(frozen=True, slots=True)
class Heading:
    """A heading collected for the table of contents."""

    depth: int
    text: str
    id: str


@dc.dataclass(slots=True)
class Footnote:
    """A footnote definition and the reference sites that realized it.

    Attributes
    ----------
    key : str
        Key as written in the source (``[^key]``).
    ordinal : int
        Display number, assigned in order of first reference.
    content : str
        Markdown body of the definition; rendered HTML after rendering.
    references : list[int]
        Reference-site indexes (1-based) in document order.
    """

    key: str
    ordinal: int
    content: str
    references: list[int] = dc.field(default_factory=list)


@dc.dataclass(frozen=True, slots=True)
class Document:
    """A transformed document; immutable once produced."""

    source: SourceDocument
    html: str
    headings: tuple[Heading, ...]
    search_text: str

    @property
    def title(self) -> str:
        return self.source.title

    @property
    def output_path(self) -> str:
        return self.source.output_path

    @property
    def url_path(self) -> str:
        return self.source.url_path


__all__ = ["Document", "Footnote", "Heading", "SourceDocument"]
