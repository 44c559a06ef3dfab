"""Convert source media into responsive, content-hashed variants.

The transcoder handles three kinds of input:

* still images, encoded at every variant width into AVIF, WebP, and a
  classic fallback (JPEG when opaque, PNG when transparent);
* animated GIFs, which always get the still fallback from their first frame
  and, when ``ffmpeg`` is available, a muted looping WebM/MP4 pair;
* videos, normalized into the same WebM/MP4 pair plus a poster frame, or
  copied through unchanged when ``ffmpeg`` is missing or fails.

Every produced byte sequence goes through :class:`HashedAssetStore`. Failures
never raise; they are logged and reported through the outcome status.

Example
-------
>>> from pathlib import Path
>>> from blaze_pages.config import MediaConfig
>>> from blaze_pages.hashing import HashedAssetStore
>>> from blaze_pages.media import MediaTranscoder
>>> store = HashedAssetStore(Path("dist/assets"))  # doctest: +SKIP
>>> outcome = MediaTranscoder(MediaConfig(), store).transcode(
...     Path("content/diagram.png")
... )  # doctest: +SKIP
>>> outcome.kind  # doctest: +SKIP
'image'
"""

from __future__ import annotations

import io
import re
import tempfile
import typing as typ
from pathlib import Path

import structlog
from PIL import Image, ImageOps

from blaze_pages._constants import MEDIA_DIRNAME

from .ffmpeg import (
    FfmpegRunner,
    even_width_expression,
    poster_args,
    video_args,
)
from .gif import is_animated_gif
from .models import (
    IMAGE_EXTENSIONS,
    VIDEO_EXTENSIONS,
    VIDEO_MIME_TYPES,
    ImageFamily,
    ImageOutcome,
    MediaOutcome,
    MediaStatus,
    MediaVariant,
    MediaVariantSet,
    PassthroughOutcome,
    VideoOutcome,
    VideoSource,
)

if typ.TYPE_CHECKING:
    from blaze_pages.config import MediaConfig
    from blaze_pages.hashing import HashedAssetStore

log = structlog.get_logger()

_ALPHA_MODES = frozenset({"RGBA", "LA", "PA", "RGBa", "La"})
_DECODE_ERRORS = (OSError, ValueError, Image.DecompressionBombError)
_ENCODE_ERRORS = (KeyError, OSError, ValueError)


def variant_widths(intrinsic: int, candidates: typ.Iterable[int]) -> tuple[int, ...]:
    """Return candidate widths below ``intrinsic`` followed by ``intrinsic``.

    The result is strictly increasing and contains the intrinsic width exactly
    once, so no variant is ever upscaled.

    Examples
    --------
    >>> variant_widths(1000, (320, 640, 960, 1280))
    (320, 640, 960, 1000)
    >>> variant_widths(640, (320, 640, 960))
    (320, 640)
    """
    smaller = sorted({width for width in candidates if 0 < width < intrinsic})
    return (*smaller, intrinsic)


def clamp_even_width(width: int, maximum: int) -> int:
    """Clamp ``width`` to ``maximum`` and round down to an even number."""
    clamped = min(width, maximum)
    return max(2, clamped - clamped % 2)


def _asset_base(source: Path) -> str:
    return re.sub(r"[^a-z0-9]+", "-", source.stem.lower()).strip("-") or "media"


def _has_alpha(image: Image.Image) -> bool:
    return image.mode in _ALPHA_MODES or (
        image.mode == "P" and "transparency" in image.info
    )


class MediaTranscoder:
    """Produce responsive variants for one build's media sources."""

    def __init__(
        self,
        config: MediaConfig,
        store: HashedAssetStore,
        runner: FfmpegRunner | None = None,
        *,
        subdir: str = MEDIA_DIRNAME,
    ) -> None:
        """Initialize the transcoder.

        Parameters
        ----------
        config : MediaConfig
            Variant widths, encoder qualities, and video limits.
        store : HashedAssetStore
            Content-addressed store rooted at the site's assets directory.
        runner : FfmpegRunner, optional
            Transcoder wrapper; defaults to one built from ``config.ffmpeg``.
        subdir : str, optional
            Directory below the store root receiving media files.
        """
        self.config = config
        self.store = store
        self.runner = runner or FfmpegRunner(
            config.ffmpeg, timeout=config.transcode_timeout
        )
        self.subdir = subdir
        self._missing_encoders: set[str] = set()

    def transcode(self, source: Path) -> MediaOutcome:
        """Transcode ``source`` and return the tagged outcome."""
        name = source.as_posix()
        extension = source.suffix.lower()
        if extension not in IMAGE_EXTENSIONS | VIDEO_EXTENSIONS:
            return PassthroughOutcome(name, "unsupported", MediaStatus.FULL)
        try:
            data = source.read_bytes()
        except OSError as exc:
            log.warning("media_missing", source=name, error=str(exc))
            return PassthroughOutcome(name, "missing")

        if extension in VIDEO_EXTENSIONS:
            return self._transcode_video(source, data)
        if extension == ".gif" and is_animated_gif(data):
            return self._transcode_animation(source, data)
        return self._transcode_image(source, data)

    # ------------------------------------------------------------------
    # Still images
    # ------------------------------------------------------------------

    def _transcode_image(
        self, source: Path, data: bytes, *, animated: bool = False
    ) -> ImageOutcome | PassthroughOutcome:
        name = source.as_posix()
        try:
            with Image.open(io.BytesIO(data)) as opened:
                opened.seek(0)
                image = ImageOps.exif_transpose(opened)
                image.load()
        except _DECODE_ERRORS as exc:
            log.warning("media_decode_failed", source=name, error=str(exc))
            return PassthroughOutcome(name, "undecodable")

        alpha = _has_alpha(image)
        image = image.convert("RGBA" if alpha else "RGB")
        fallback_format = "png" if alpha else "jpeg"
        width, height = image.size
        families: dict[ImageFamily, list[MediaVariant]] = {
            family: [] for family in ImageFamily
        }
        base = _asset_base(source)
        for target in variant_widths(width, self.config.widths):
            resized = self._resize(image, target)
            for family, fmt in (
                (ImageFamily.AVIF, "avif"),
                (ImageFamily.WEBP, "webp"),
                (ImageFamily.FALLBACK, fallback_format),
            ):
                variant = self._encode(resized, base, target, fmt, source=name)
                if variant is not None:
                    families[family].append(variant)

        status = MediaStatus.FULL
        if not families[ImageFamily.FALLBACK]:
            log.warning("media_encode_failed", source=name, format=fallback_format)
            return PassthroughOutcome(name, "unencodable")
        if not all(families.values()) or animated:
            status = MediaStatus.DEGRADED
        variants = MediaVariantSet(
            width=width,
            height=height,
            fallback_format=fallback_format,
            families={family: tuple(items) for family, items in families.items()},
        )
        return ImageOutcome(name, variants, status=status, animated=animated)

    @staticmethod
    def _resize(image: Image.Image, width: int) -> Image.Image:
        if width == image.width:
            return image
        height = max(1, round(image.height * width / image.width))
        return image.resize((width, height), Image.Resampling.LANCZOS)

    def _encode(
        self, image: Image.Image, base: str, width: int, fmt: str, *, source: str
    ) -> MediaVariant | None:
        """Encode one variant, returning None when the encoder is missing."""
        if fmt in self._missing_encoders:
            return None
        buffer = io.BytesIO()
        options: dict[str, typ.Any]
        match fmt:
            case "avif":
                options = {"format": "AVIF", "quality": self.config.avif_quality}
            case "webp":
                options = {
                    "format": "WEBP",
                    "quality": self.config.webp_quality,
                    "method": 6,
                }
            case "jpeg":
                options = {
                    "format": "JPEG",
                    "quality": self.config.jpeg_quality,
                    "optimize": True,
                    "progressive": True,
                }
            case _:
                options = {"format": "PNG", "optimize": True}
        try:
            image.save(buffer, **options)
        except _ENCODE_ERRORS as exc:
            self._missing_encoders.add(fmt)
            log.warning(
                "media_encoder_unavailable", format=fmt, source=source, error=str(exc)
            )
            return None
        extension = "jpg" if fmt == "jpeg" else fmt
        asset = self.store.write(
            base, extension, buffer.getvalue(), label=f"w{width}", subdir=self.subdir
        )
        return MediaVariant(width=width, file_name=asset.relative_path, format=fmt)

    # ------------------------------------------------------------------
    # Animations and videos
    # ------------------------------------------------------------------

    def _transcode_animation(self, source: Path, data: bytes) -> MediaOutcome:
        """Return a looping video pair, or the still fallback when unavailable."""
        still = self._transcode_image(source, data, animated=True)
        if isinstance(still, PassthroughOutcome) or not self.runner.available():
            return still

        variants = still.variants
        width = clamp_even_width(variants.width, self.config.max_video_width)
        height = max(2, round(variants.height * width / variants.width / 2) * 2)
        encoded = self._encode_video_pair(source, width)
        if encoded is None:
            return still
        poster = variants.poster_for(width)
        return VideoOutcome(
            source.as_posix(),
            self._store_video_pair(source, f"w{width}", encoded),
            poster=poster.file_name if poster else None,
            width=width,
            height=height,
            animated=True,
        )

    def _transcode_video(self, source: Path, data: bytes) -> VideoOutcome:
        """Return a normalized video pair with poster, or the source copied through.

        Nothing is written to the store until both renditions and the poster
        have been produced.
        """
        if self.runner.available():
            width_expr = even_width_expression(self.config.max_video_width)
            encoded = self._encode_video_pair(source, width_expr)
            poster = self._extract_poster(source, width_expr) if encoded else None
            if encoded is not None and poster is not None:
                poster_data, width, height = poster
                sources = self._store_video_pair(source, "video", encoded)
                poster_asset = self.store.write(
                    _asset_base(source),
                    "jpg",
                    poster_data,
                    label="poster",
                    subdir=self.subdir,
                )
                return VideoOutcome(
                    source.as_posix(),
                    sources,
                    poster=poster_asset.relative_path,
                    width=width,
                    height=height,
                )
        return self._passthrough_video(source, data)

    def _passthrough_video(self, source: Path, data: bytes) -> VideoOutcome:
        extension = source.suffix.lower()
        asset = self.store.write(
            _asset_base(source),
            extension,
            data,
            label="original",
            subdir=self.subdir,
        )
        mime_type = VIDEO_MIME_TYPES[extension]
        log.info(
            "media_video_passthrough", source=source.as_posix(), mime_type=mime_type
        )
        return VideoOutcome(
            source.as_posix(),
            (VideoSource(asset.relative_path, mime_type),),
            status=MediaStatus.DEGRADED,
        )

    def _encode_video_pair(
        self, source: Path, width: int | str
    ) -> list[tuple[str, str, bytes]] | None:
        """Encode WebM/VP9 and MP4/H.264 renditions; None on any failure.

        Returns ``(extension, mime_type, data)`` per rendition without
        touching the store.
        """
        base = _asset_base(source)
        outputs: list[tuple[str, str, bytes]] = []
        with tempfile.TemporaryDirectory(prefix="blaze-transcode-") as tmp:
            for codec, extension, mime_type in (
                ("vp9", "webm", "video/webm"),
                ("h264", "mp4", "video/mp4"),
            ):
                target = Path(tmp) / f"{base}.{extension}"
                result = self.runner.run(
                    video_args(
                        source,
                        target,
                        width=width,
                        fps=self.config.video_fps,
                        codec=codec,
                    )
                )
                if not result.ok or not target.is_file():
                    log.warning(
                        "media_transcode_failed",
                        source=source.as_posix(),
                        codec=codec,
                        diagnostic=result.diagnostic,
                    )
                    return None
                outputs.append((extension, mime_type, target.read_bytes()))
        return outputs

    def _store_video_pair(
        self, source: Path, label: str, encoded: list[tuple[str, str, bytes]]
    ) -> tuple[VideoSource, ...]:
        base = _asset_base(source)
        return tuple(
            VideoSource(
                self.store.write(
                    base, extension, data, label=label, subdir=self.subdir
                ).relative_path,
                mime_type,
            )
            for extension, mime_type, data in encoded
        )

    def _extract_poster(
        self, source: Path, width: int | str
    ) -> tuple[bytes, int, int] | None:
        """Extract a single-frame JPEG poster and report its dimensions."""
        with tempfile.TemporaryDirectory(prefix="blaze-transcode-") as tmp:
            target = Path(tmp) / "poster.jpg"
            result = self.runner.run(poster_args(source, target, width=width))
            if not result.ok or not target.is_file():
                log.warning(
                    "media_poster_failed",
                    source=source.as_posix(),
                    diagnostic=result.diagnostic,
                )
                return None
            data = target.read_bytes()
        try:
            with Image.open(io.BytesIO(data)) as poster:
                poster_width, poster_height = poster.size
        except _DECODE_ERRORS as exc:
            log.warning("media_poster_failed", source=source.as_posix(), error=str(exc))
            return None
        return data, poster_width, poster_height


__all__ = ["MediaTranscoder", "clamp_even_width", "variant_widths"]
