"""Result types produced by the media transcoder.

Every transcode attempt yields exactly one outcome from the tagged union
``ImageOutcome | VideoOutcome | PassthroughOutcome``. Each outcome carries a
:class:`MediaStatus` so markup generation can treat a full transcode, a
degraded fallback, and a failed asset the same way.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".webp", ".gif"})
VIDEO_EXTENSIONS = frozenset({".mp4", ".webm", ".mov", ".m4v"})

VIDEO_MIME_TYPES: dict[str, str] = {
    ".mp4": "video/mp4",
    ".m4v": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
}


class MediaStatus(enum.StrEnum):
    """How completely a media source was transcoded."""

    FULL = "full"
    DEGRADED = "degraded"
    FAILED = "failed"


class ImageFamily(enum.StrEnum):
    """Encoding families emitted for each still image."""

    AVIF = "avif"
    WEBP = "webp"
    FALLBACK = "fallback"


FAMILY_MIME_TYPES: dict[str, str] = {
    "avif": "image/avif",
    "webp": "image/webp",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


@dc.dataclass(frozen=True, slots=True)
class MediaVariant:
    """One encoded rendition of a still image."""

    width: int
    file_name: str
    format: str

    @property
    def mime_type(self) -> str:
        return FAMILY_MIME_TYPES[self.format]


@dc.dataclass(frozen=True, slots=True)
class MediaVariantSet:
    """Variants grouped per encoding family plus the intrinsic size.

    Attributes
    ----------
    width : int
        Intrinsic width of the orientation-normalized source.
    height : int
        Intrinsic height of the orientation-normalized source.
    fallback_format : str
        ``"jpeg"`` for opaque sources, ``"png"`` for sources with alpha.
    families : dict[ImageFamily, tuple[MediaVariant, ...]]
        Variants per family, ordered by strictly increasing width. A family
        whose encoder is unavailable maps to an empty tuple.
    """

    width: int
    height: int
    fallback_format: str
    families: dict[ImageFamily, tuple[MediaVariant, ...]]

    def family(self, family: ImageFamily) -> tuple[MediaVariant, ...]:
        return self.families.get(family, ())

    @property
    def fallback(self) -> tuple[MediaVariant, ...]:
        return self.family(ImageFamily.FALLBACK)

    def poster_for(self, width: int) -> MediaVariant | None:
        """Return the smallest fallback variant at least ``width`` wide."""
        candidates = self.fallback
        if not candidates:
            return None
        for variant in candidates:
            if variant.width >= width:
                return variant
        return candidates[-1]


@dc.dataclass(frozen=True, slots=True)
class VideoSource:
    """One playable video file and the MIME type it satisfies."""

    file_name: str
    mime_type: str


@dc.dataclass(frozen=True, slots=True)
class ImageOutcome:
    """A still image (or an animation reduced to its first frame)."""

    source: str
    variants: MediaVariantSet
    status: MediaStatus = MediaStatus.FULL
    animated: bool = False
    kind: typ.Literal["image"] = "image"


@dc.dataclass(frozen=True, slots=True)
class VideoOutcome:
    """A playable video, either transcoded or passed through unchanged."""

    source: str
    sources: tuple[VideoSource, ...]
    poster: str | None = None
    width: int | None = None
    height: int | None = None
    status: MediaStatus = MediaStatus.FULL
    animated: bool = False
    kind: typ.Literal["video"] = "video"


@dc.dataclass(frozen=True, slots=True)
class PassthroughOutcome:
    """A reference left untouched (unsupported, missing, or undecodable)."""

    source: str
    reason: str
    status: MediaStatus = MediaStatus.FAILED
    kind: typ.Literal["passthrough"] = "passthrough"


MediaOutcome = ImageOutcome | VideoOutcome | PassthroughOutcome


__all__ = [
    "FAMILY_MIME_TYPES",
    "IMAGE_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "VIDEO_MIME_TYPES",
    "ImageFamily",
    "ImageOutcome",
    "MediaOutcome",
    "MediaStatus",
    "MediaVariant",
    "MediaVariantSet",
    "PassthroughOutcome",
    "VideoOutcome",
    "VideoSource",
]
