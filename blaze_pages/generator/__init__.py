"""Utilities for transforming markdown sources into finished page markup."""

from .footnotes import FootnoteCollector
from .headings import inject_heading_anchors
from .link_rewriter import SiblingLinkExtension, rewrite_href, rewrite_sibling_links
from .media_markup import rewrite_media
from .models import Document, Footnote, Heading, SourceDocument
from .paths import relative_href, site_root
from .renderer import HtmlContentRenderer
from .transform import DocumentTransformer

__all__ = [
    "Document",
    "DocumentTransformer",
    "Footnote",
    "FootnoteCollector",
    "Heading",
    "HtmlContentRenderer",
    "SiblingLinkExtension",
    "SourceDocument",
    "inject_heading_anchors",
    "relative_href",
    "rewrite_href",
    "rewrite_media",
    "rewrite_sibling_links",
    "site_root",
]
