"""High-level orchestration for building a blaze site.

:class:`SiteBuilder` runs the whole pipeline for one :class:`SiteConfig`:
load the markdown sources, reject invalid input sets, transform every
document, write the hashed runtime assets and search index, render the
runtime caching module from the precache manifest, and finally write every
page plus ``404.html`` and ``.nojekyll``.

Example
-------
>>> from pathlib import Path
>>> from blaze_pages.builder import SiteBuilder
>>> from blaze_pages.config import load_site_config
>>> result = SiteBuilder(load_site_config(Path("site.yaml"))).run()  # doctest: +SKIP
>>> result.runtime_file  # doctest: +SKIP
'sw.3f9c1a2b4d.js'
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re
import shutil
import typing as typ
from pathlib import Path

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ._constants import ASSETS_DIRNAME, NOT_FOUND_PAGE
from .assembler import SiteAssembler
from .context import BuildContext
from .generator import DocumentTransformer, HtmlContentRenderer
from .generator.paths import relative_href, site_root
from .loader import load_documents
from .search import encode_index

if typ.TYPE_CHECKING:
    from .config import SiteConfig
    from .generator.models import Document, Heading
    from .media import FfmpegRunner

log = structlog.get_logger()

PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_TEMPLATES_DIR = PACKAGE_DIR / "templates"
DEFAULT_STATIC_DIR = PACKAGE_DIR / "static"
PAGE_TEMPLATE = "page.jinja"
FAVICON = "favicon.svg"
NOT_FOUND_BODY = (
    "<h1>Page not found</h1><p>The page you requested does not exist.</p>"
    '<p><a href="./">Return to home</a></p>'
)

CSS_COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)
CSS_SPACE_PATTERN = re.compile(r"\s+")
CSS_PUNCTUATION_PATTERN = re.compile(r"\s*([{}:;,])\s*")


def minify_css(css: str) -> str:
    """Strip comments and redundant whitespace from a stylesheet.

    Examples
    --------
    >>> minify_css("a { color : red ; } /* note */")
    'a{color:red;}'
    """
    without_comments = CSS_COMMENT_PATTERN.sub("", css)
    collapsed = CSS_SPACE_PATTERN.sub(" ", without_comments)
    return CSS_PUNCTUATION_PATTERN.sub(r"\1", collapsed).strip()


def template_environment(templates_dir: Path | None = None) -> Environment:
    """Return the Jinja environment, preferring overrides in ``templates_dir``."""
    search_path = [str(DEFAULT_TEMPLATES_DIR)]
    if templates_dir is not None:
        search_path.insert(0, str(templates_dir))
    return Environment(
        loader=FileSystemLoader(search_path),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )


@dc.dataclass(frozen=True, slots=True)
class RuntimeAssets:
    """File names, relative to ``assets/``, of the assets every page loads."""

    app_css: str
    app_js: str
    search_worker: str
    search_index: str
    favicon: str = FAVICON

    def names(self) -> list[str]:
        """Return the names in precache order."""
        return [
            self.app_css,
            self.app_js,
            self.search_worker,
            self.search_index,
            self.favicon,
        ]

    def site_paths(self) -> dict[str, str]:
        return {
            field.name: f"{ASSETS_DIRNAME}/{getattr(self, field.name)}"
            for field in dc.fields(self)
        }


@dc.dataclass(slots=True)
class BuildResult:
    """Summary of one build run."""

    output_dir: Path
    pages: int
    runtime_file: str
    assets: RuntimeAssets
    precache: list[str]
    written: list[Path] = dc.field(default_factory=list)
    degraded_media: int = 0


class SiteBuilder:
    """Build the static site described by a :class:`SiteConfig`."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        output_dir: Path | None = None,
        runner: FfmpegRunner | None = None,
        clock: typ.Callable[[], dt.datetime] | None = None,
    ) -> None:
        """Initialize the builder.

        Parameters
        ----------
        config : SiteConfig
            Resolved site configuration.
        output_dir : Path, optional
            Override for ``config.output_dir``.
        runner : FfmpegRunner, optional
            Transcoder wrapper shared with the media pipeline; tests inject a
            stub here.
        clock : Callable[[], datetime], optional
            Source of the "generated at" timestamp printed in page footers.
        """
        self.config = config
        self.output_dir = output_dir or config.output_dir
        self.runner = runner
        self.clock = clock or (lambda: dt.datetime.now(dt.UTC))
        self.env = template_environment(config.templates_dir)
        self.template = self.env.get_template(PAGE_TEMPLATE)
        self.assembler = SiteAssembler(config, self.env)
        self.renderer = HtmlContentRenderer(config.pygments_style)

    def run(self) -> BuildResult:
        """Build the site and return what was written.

        Raises
        ------
        NoSourceDocumentsError
            If the content directory holds no markdown files.
        DuplicateOutputPathError
            If two sources resolve to one output path. Raised before the
            output directory is touched.
        """
        sources = self.assembler.plan(load_documents(self.config.content_dir))

        if self.output_dir.exists():
            shutil.rmtree(self.output_dir)
        context = BuildContext(self.config, output_dir=self.output_dir, runner=self.runner)
        context.assets_dir.mkdir(parents=True, exist_ok=True)

        transformer = DocumentTransformer(
            context, sources, self.config.content_dir, renderer=self.renderer
        )
        documents = [transformer.transform(source) for source in sources]

        assets = self._write_runtime_assets(context, documents)
        precache = self.assembler.precache_manifest(documents, assets.names())
        runtime = self.assembler.render_runtime(precache)
        runtime_path = self.output_dir / runtime.file_name
        runtime_path.write_text(runtime.source, encoding="utf-8")

        written = [
            *(context.assets_dir / asset.relative_path for asset in context.assets.assets),
            context.assets_dir / FAVICON,
            runtime_path,
        ]
        page_context = {
            "assets": assets,
            "runtime_file": runtime.file_name,
            "critical_css": minify_css(self._read_static("critical.css")),
            "generated_at": self.clock().isoformat(),
            "nav": [
                doc for doc in self.assembler.order(documents) if not doc.source.nav_exclude
            ],
        }
        for document in documents:
            written.append(self._write_page(document, **page_context))
        written.append(self._write_not_found(**page_context))

        nojekyll = self.output_dir / ".nojekyll"
        nojekyll.write_text("\n", encoding="utf-8")
        written.append(nojekyll)

        log.info(
            "build_complete",
            pages=len(documents),
            assets=len(context.assets),
            runtime=runtime.file_name,
            cache=runtime.manifest.cache_name,
            media=dict(context.media_status),
            degraded_media=context.degraded_media,
        )
        return BuildResult(
            output_dir=self.output_dir,
            pages=len(documents),
            runtime_file=runtime.file_name,
            assets=assets,
            precache=precache,
            written=written,
            degraded_media=context.degraded_media,
        )

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def _static_path(self, name: str) -> Path:
        if self.config.static_dir is not None:
            override = self.config.static_dir / name
            if override.is_file():
                return override
        return DEFAULT_STATIC_DIR / name

    def _read_static(self, name: str) -> str:
        return self._static_path(name).read_text(encoding="utf-8")

    def _write_runtime_assets(
        self, context: BuildContext, documents: list[Document]
    ) -> RuntimeAssets:
        store = context.assets
        css = "".join(
            (
                minify_css(self._read_static("app.css")),
                minify_css(self.renderer.stylesheet),
            )
        )
        app_css = store.write("app", "css", css)
        app_js = store.write("app", "js", self._read_static("app.js"))
        worker = store.write("search-worker", "js", self._read_static("search-worker.js"))
        index = store.write(
            "search-index",
            "json",
            encode_index(self.assembler.search_documents(documents)),
        )
        shutil.copyfile(self._static_path(FAVICON), context.assets_dir / FAVICON)
        return RuntimeAssets(
            app_css=app_css.relative_path,
            app_js=app_js.relative_path,
            search_worker=worker.relative_path,
            search_index=index.relative_path,
        )

    # ------------------------------------------------------------------
    # Pages
    # ------------------------------------------------------------------

    def _write_page(self, document: Document, **context: typ.Any) -> Path:
        title = document.title
        if not document.source.is_home:
            title = f"{title} | {self.config.site_name}"
        return self._render(
            output_path=document.output_path,
            page_title=title,
            description=document.source.description or self.config.description,
            body=document.html,
            headings=document.headings,
            active=document.source.source_path,
            **context,
        )

    def _write_not_found(self, **context: typ.Any) -> Path:
        return self._render(
            output_path=NOT_FOUND_PAGE,
            page_title="Not Found",
            description="Page not found",
            body=NOT_FOUND_BODY,
            headings=(),
            active=None,
            noindex=True,
            **context,
        )

    def _render(
        self,
        *,
        output_path: str,
        page_title: str,
        description: str,
        body: str,
        headings: typ.Sequence[Heading],
        active: str | None,
        assets: RuntimeAssets,
        nav: list[Document],
        noindex: bool = False,
        **context: typ.Any,
    ) -> Path:
        def href(target: str) -> str:
            return relative_href(output_path, target)

        html = self.template.render(
            site=self.config,
            site_root=site_root(output_path),
            assets=assets.site_paths(),
            href=href,
            page_title=page_title,
            description=description,
            body=body,
            headings=headings,
            nav=[
                {
                    "title": doc.title,
                    "href": href(doc.url_path),
                    "active": doc.source.source_path == active,
                }
                for doc in nav
            ],
            noindex=noindex,
            **context,
        )
        target = self.output_dir / output_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(html, encoding="utf-8")
        return target


__all__ = [
    "BuildResult",
    "RuntimeAssets",
    "SiteBuilder",
    "minify_css",
    "template_environment",
]
