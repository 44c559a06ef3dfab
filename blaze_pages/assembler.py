"""Plan output paths, order navigation, and derive the build-wide manifest.

The assembler runs twice per build. Before any rendering,
:meth:`SiteAssembler.plan` rejects input sets that cannot produce a valid
site. After every document has been transformed, it computes the search
index, the precache manifest, and the version token, and renders the runtime
caching module that embeds them.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import structlog

from ._constants import (
    ASSET_DIGEST_LENGTH,
    ASSETS_DIRNAME,
    HOME_URL,
    NOT_FOUND_PAGE,
)
from .errors import DuplicateOutputPathError, NoSourceDocumentsError
from .generator.text import excerpt
from .hashing import content_digest, manifest_token
from .runtime import CacheManifest
from .search import SearchDocument

if typ.TYPE_CHECKING:
    from jinja2 import Environment

    from .config import SiteConfig
    from .generator.models import Document, SourceDocument

log = structlog.get_logger()

RUNTIME_TEMPLATE = "sw.js.jinja"


@dc.dataclass(frozen=True, slots=True)
class RuntimeModule:
    """The rendered runtime caching module and its content-hashed name."""

    file_name: str
    source: str
    manifest: CacheManifest


class SiteAssembler:
    """Collect transformed documents into site-wide artifacts."""

    def __init__(self, config: SiteConfig, env: Environment) -> None:
        self.config = config
        self.env = env

    def plan(self, sources: typ.Sequence[SourceDocument]) -> list[SourceDocument]:
        """Validate that ``sources`` map to distinct output paths.

        Raises
        ------
        NoSourceDocumentsError
            If ``sources`` is empty.
        DuplicateOutputPathError
            On the first output path claimed by two sources.
        """
        if not sources:
            msg = f"No markdown files found in {self.config.content_dir}"
            raise NoSourceDocumentsError(msg)
        claimed: dict[str, str] = {}
        for source in sources:
            first = claimed.setdefault(source.output_path, source.source_path)
            if first != source.source_path:
                raise DuplicateOutputPathError(
                    source.output_path, first, source.source_path
                )
        return list(sources)

    @staticmethod
    def order(documents: typ.Iterable[Document]) -> list[Document]:
        """Sort by explicit order, then title, then source path."""
        return sorted(
            documents,
            key=lambda doc: (
                doc.source.order,
                doc.title.casefold(),
                doc.title,
                doc.source.source_path,
            ),
        )

    def search_documents(
        self, documents: typ.Iterable[Document]
    ) -> list[SearchDocument]:
        """Return one index entry per document not excluded from search."""
        length = self.config.search.excerpt_length
        return [
            SearchDocument(
                title=doc.title,
                url=doc.url_path or HOME_URL,
                headings=" ".join(heading.text for heading in doc.headings),
                excerpt=excerpt(doc.search_text, length),
                text=doc.search_text,
            )
            for doc in documents
            if not doc.source.search_exclude
        ]

    @staticmethod
    def precache_manifest(
        documents: typ.Iterable[Document], runtime_assets: typ.Iterable[str]
    ) -> list[str]:
        """Return the ordered, de-duplicated list of URLs to precache.

        Parameters
        ----------
        documents : Iterable[Document]
            Transformed documents; home and navigation-excluded ones add no
            entry of their own.
        runtime_assets : Iterable[str]
            File names relative to the assets directory.
        """
        entries = [HOME_URL, NOT_FOUND_PAGE]
        entries.extend(
            doc.url_path
            for doc in documents
            if doc.url_path and not doc.source.nav_exclude
        )
        entries.extend(f"{ASSETS_DIRNAME}/{name}" for name in runtime_assets)
        return list(dict.fromkeys(entries))

    @staticmethod
    def version_token(manifest: typ.Sequence[str]) -> str:
        return manifest_token(manifest)

    def render_runtime(self, manifest: typ.Sequence[str]) -> RuntimeModule:
        """Render the runtime caching module for ``manifest``."""
        cache_manifest = CacheManifest.from_urls(
            manifest, prefix=self.config.cache_prefix
        )
        template = self.env.get_template(RUNTIME_TEMPLATE)
        source = template.render(
            cache_name=cache_manifest.cache_name,
            cache_prefix=cache_manifest.prefix,
            precache=list(cache_manifest.urls),
        )
        digest = content_digest(source)[:ASSET_DIGEST_LENGTH]
        file_name = f"sw.{digest}.js"
        log.info(
            "runtime_rendered",
            file=file_name,
            cache=cache_manifest.cache_name,
            entries=len(cache_manifest.urls),
        )
        return RuntimeModule(file_name=file_name, source=source, manifest=cache_manifest)


__all__ = ["RUNTIME_TEMPLATE", "RuntimeModule", "SiteAssembler"]
