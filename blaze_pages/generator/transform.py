"""Turn one loaded markdown source into a finished :class:`Document`.

The passes run in a fixed order: footnote extraction, markdown rendering with
sibling-link rewriting, footnote re-insertion, a second link pass covering
raw HTML anchors, heading anchors, and media rewriting. The resulting markup is then flattened into the plain-text body
used by the search index.

Example
-------
>>> from pathlib import Path
>>> from blaze_pages.config import load_site_config
>>> from blaze_pages.context import BuildContext
>>> from blaze_pages.loader import load_documents
>>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> sources = load_documents(config.content_dir)  # doctest: +SKIP
>>> transformer = DocumentTransformer(
...     BuildContext(config), sources, config.content_dir
... )  # doctest: +SKIP
>>> transformer.transform(sources[0]).headings  # doctest: +SKIP
(Heading(depth=2, text='Install', id='install'),)
"""

from __future__ import annotations

import typing as typ

import structlog
from bs4 import BeautifulSoup

from .footnotes import FootnoteCollector
from .headings import inject_heading_anchors
from .link_rewriter import SiblingLinkExtension, rewrite_sibling_links
from .media_markup import rewrite_media
from .models import Document, SourceDocument
from .renderer import HtmlContentRenderer
from .text import strip_tags

if typ.TYPE_CHECKING:
    from pathlib import Path

    from blaze_pages.context import BuildContext

log = structlog.get_logger()


class DocumentTransformer:
    """Render sources of one build, resolving links against their siblings."""

    def __init__(
        self,
        context: BuildContext,
        sources: typ.Iterable[SourceDocument],
        content_dir: Path,
        *,
        renderer: HtmlContentRenderer | None = None,
    ) -> None:
        self.context = context
        self.siblings: dict[str, SourceDocument] = {
            source.source_path: source for source in sources
        }
        self.content_dir = content_dir
        self.renderer = renderer or HtmlContentRenderer(context.config.pygments_style)

    def transform(self, source: SourceDocument) -> Document:
        """Return the rendered document for ``source``.

        The same source and sibling index always yield the same markup,
        headings, and search text.
        """
        links = SiblingLinkExtension(source, self.siblings)

        def render(text: str) -> str:
            return self.renderer.markdown(text, [links])

        footnotes = FootnoteCollector()
        body = footnotes.extract(source.body)
        html = footnotes.render(render(body), render)

        soup = BeautifulSoup(html, "html.parser")
        rewrite_sibling_links(soup, source, self.siblings)
        headings = inject_heading_anchors(soup)
        rewrite_media(soup, source, self.context, self.content_dir)
        html = soup.decode(formatter="html5")

        log.debug(
            "document_transformed",
            source=source.source_path,
            headings=len(headings),
            footnotes=len(footnotes.footnotes),
        )
        return Document(
            source=source,
            html=html,
            headings=tuple(headings),
            search_text=strip_tags(html),
        )


__all__ = ["DocumentTransformer"]
