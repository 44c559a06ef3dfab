"""Replace local media references with responsive, hashed markup.

Images become ``<picture>`` elements with AVIF and WebP sources ahead of a
classic fallback ``<img>``. Animated GIFs that were converted to video, and
``<video>`` elements, become ``<video>`` elements pointing at the hashed
renditions. Everything the transcoder could not handle keeps its original
tag and only gains lazy-loading hints.
"""

from __future__ import annotations

import posixpath
import typing as typ
from pathlib import Path
from urllib.parse import unquote, urlsplit

from blaze_pages._constants import ASSETS_DIRNAME
from blaze_pages.media import (
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    ImageFamily,
    ImageOutcome,
    VideoOutcome,
)

from .paths import relative_href

if typ.TYPE_CHECKING:
    from bs4 import BeautifulSoup, Tag

    from blaze_pages.context import BuildContext
    from blaze_pages.media import MediaVariant, MediaVariantSet

    from .models import SourceDocument

MEDIA_EXTENSIONS = IMAGE_EXTENSIONS | VIDEO_EXTENSIONS
IMAGE_ONLY_ATTRIBUTES = frozenset(
    {"src", "alt", "title", "srcset", "sizes", "loading", "decoding"}
)
ANIMATION_FLAGS = ("autoplay", "muted", "loop", "playsinline")


class MediaRewriter:
    """Rewrite the media of one document against the build context."""

    def __init__(
        self,
        soup: BeautifulSoup,
        document: SourceDocument,
        context: BuildContext,
        content_dir: Path,
    ) -> None:
        self.soup = soup
        self.document = document
        self.context = context
        self.content_root = content_dir.resolve()
        self.sizes = context.config.media.sizes

    def run(self) -> None:
        for video in self.soup.find_all("video"):
            self._rewrite_video(video)
        for image in self.soup.find_all("img"):
            if image.find_parent("picture") is None:
                self._rewrite_image(image)
        unwrap_figures(self.soup)

    def resolve(self, src: str | None) -> Path | None:
        """Return the local source file for ``src``, or None when not local."""
        if not src or src.startswith(("/", "#")):
            return None
        parsed = urlsplit(src)
        if parsed.scheme or parsed.netloc or not parsed.path:
            return None
        if posixpath.splitext(parsed.path)[1].lower() not in MEDIA_EXTENSIONS:
            return None
        source_dir = posixpath.dirname(self.document.source_path)
        candidate = (self.content_root / source_dir / unquote(parsed.path)).resolve()
        if not candidate.is_relative_to(self.content_root):
            return None
        return candidate

    def asset_url(self, file_name: str) -> str:
        return relative_href(
            self.document.output_path, f"{ASSETS_DIRNAME}/{file_name}"
        )

    def _srcset(self, variants: typ.Sequence[MediaVariant]) -> str:
        return ", ".join(
            f"{self.asset_url(variant.file_name)} {variant.width}w"
            for variant in variants
        )

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    def _rewrite_image(self, image: Tag) -> None:
        path = self.resolve(image.get("src"))
        outcome = self.context.media(path) if path is not None else None
        if isinstance(outcome, ImageOutcome):
            replacement = self._picture(image, outcome.variants)
        elif isinstance(outcome, VideoOutcome):
            replacement = self._animation(image, outcome)
        else:
            add_loading_hints(image)
            return
        caption = image.get("title") or image.get("alt")
        image.replace_with(self._figure(replacement, caption))

    def _picture(self, image: Tag, variants: MediaVariantSet) -> Tag:
        picture = self.soup.new_tag("picture")
        for family in (ImageFamily.AVIF, ImageFamily.WEBP):
            renditions = variants.family(family)
            if not renditions:
                continue
            picture.append(
                self.soup.new_tag(
                    "source",
                    attrs={
                        "type": renditions[0].mime_type,
                        "srcset": self._srcset(renditions),
                        "sizes": self.sizes,
                    },
                )
            )

        fallback = variants.fallback
        attrs = dict(image.attrs)
        attrs["src"] = self.asset_url(fallback[-1].file_name)
        attrs["srcset"] = self._srcset(fallback)
        attrs["sizes"] = self.sizes
        attrs["width"] = str(variants.width)
        attrs["height"] = str(variants.height)
        attrs.setdefault("loading", "lazy")
        attrs.setdefault("decoding", "async")
        picture.append(self.soup.new_tag("img", attrs=attrs))
        return picture

    def _animation(self, image: Tag, outcome: VideoOutcome) -> Tag:
        attrs = {
            key: value
            for key, value in image.attrs.items()
            if key not in IMAGE_ONLY_ATTRIBUTES
        }
        alt = image.get("alt")
        if alt:
            attrs.setdefault("aria-label", alt)
        return self._video(attrs, outcome, ANIMATION_FLAGS)

    # ------------------------------------------------------------------
    # Videos
    # ------------------------------------------------------------------

    def _rewrite_video(self, video: Tag) -> None:
        src = video.get("src")
        if not src:
            first = video.find("source", src=True)
            src = first.get("src") if first is not None else None
        path = self.resolve(src)
        outcome = self.context.media(path) if path is not None else None
        if not isinstance(outcome, VideoOutcome):
            return

        attrs = {key: value for key, value in video.attrs.items() if key != "src"}
        replacement = self._video(attrs, outcome, ())
        if "autoplay" not in attrs:
            replacement.attrs.setdefault("controls", "")
            replacement.attrs.setdefault("preload", "metadata")
        for child in list(video.contents):
            if getattr(child, "name", None) != "source":
                replacement.append(child.extract())
        video.replace_with(self._figure(replacement, video.get("title")))

    def _video(
        self,
        attrs: dict[str, typ.Any],
        outcome: VideoOutcome,
        flags: typ.Sequence[str],
    ) -> Tag:
        for flag in flags:
            attrs.setdefault(flag, "")
        if outcome.poster:
            attrs["poster"] = self.asset_url(outcome.poster)
        if outcome.width is not None and outcome.height is not None:
            attrs["width"] = str(outcome.width)
            attrs["height"] = str(outcome.height)
        video = self.soup.new_tag("video", attrs=attrs)
        for source in outcome.sources:
            video.append(
                self.soup.new_tag(
                    "source",
                    attrs={
                        "src": self.asset_url(source.file_name),
                        "type": source.mime_type,
                    },
                )
            )
        return video

    def _figure(self, element: Tag, caption: str | None) -> Tag:
        if not caption:
            return element
        figure = self.soup.new_tag("figure", attrs={"class": "media"})
        figure.append(element)
        figcaption = self.soup.new_tag("figcaption")
        figcaption.string = caption
        figure.append(figcaption)
        return figure


def add_loading_hints(image: Tag) -> None:
    """Add lazy-loading hints to an image that keeps its original source."""
    image.attrs.setdefault("loading", "lazy")
    image.attrs.setdefault("decoding", "async")


def unwrap_figures(soup: BeautifulSoup) -> None:
    """Replace each ``<p>`` whose only content is a ``<figure>`` with the figure."""
    for figure in soup.find_all("figure"):
        parent = figure.parent
        if parent is None or parent.name != "p":
            continue
        siblings = [
            child
            for child in parent.contents
            if getattr(child, "name", None) is not None or str(child).strip()
        ]
        if len(siblings) == 1 and siblings[0] is figure:
            parent.replace_with(figure.extract())


def rewrite_media(
    soup: BeautifulSoup,
    document: SourceDocument,
    context: BuildContext,
    content_dir: Path,
) -> None:
    """Rewrite every local media reference in ``soup`` in place.

    Parameters
    ----------
    soup : BeautifulSoup
        Parsed document markup.
    document : SourceDocument
        The document the markup belongs to; media paths resolve against its
        source directory and asset URLs are made relative to its output path.
    context : BuildContext
        Supplies the memoized transcoder and the configured ``sizes`` value.
    content_dir : Path
        Content root. References escaping it are treated as non-local.
    """
    MediaRewriter(soup, document, context, content_dir).run()


__all__ = [
    "MediaRewriter",
    "add_loading_hints",
    "rewrite_media",
    "unwrap_figures",
]
