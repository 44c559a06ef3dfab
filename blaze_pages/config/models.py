"""Typed dataclasses describing blaze site configuration structures."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path

from blaze_pages._constants import DEFAULT_CACHE_PREFIX, SEARCH_EXCERPT_LENGTH

DEFAULT_VARIANT_WIDTHS: tuple[int, ...] = (320, 640, 960, 1280, 1920)


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class MediaConfig:
    """Knobs for the media transcoder."""

    widths: tuple[int, ...] = DEFAULT_VARIANT_WIDTHS
    sizes: str = "(min-width: 960px) 760px, 100vw"
    max_video_width: int = 1280
    video_fps: int = 24
    ffmpeg: str = "ffmpeg"
    transcode_timeout: float = 300.0
    jpeg_quality: int = 82
    webp_quality: int = 78
    avif_quality: int = 60


@dc.dataclass(slots=True)
class SearchConfig:
    """Search index generation settings."""

    excerpt_length: int = SEARCH_EXCERPT_LENGTH


@dc.dataclass(slots=True)
class LoggingConfig:
    """structlog output settings applied by the CLI."""

    level: str = "INFO"
    format: str = "console"


@dc.dataclass(slots=True)
class SiteConfig:
    """A fully resolved site definition sourced from YAML config."""

    content_dir: Path
    output_dir: Path
    site_name: str = "Blaze Docs"
    description: str = "Fast, static documentation."
    language: str = "en"
    cache_prefix: str = DEFAULT_CACHE_PREFIX
    static_dir: Path | None = None
    templates_dir: Path | None = None
    pygments_style: str = "monokai"
    media: MediaConfig = dc.field(default_factory=MediaConfig)
    search: SearchConfig = dc.field(default_factory=SearchConfig)
    logging: LoggingConfig = dc.field(default_factory=LoggingConfig)


__all__ = [
    "DEFAULT_VARIANT_WIDTHS",
    "LoggingConfig",
    "MediaConfig",
    "SearchConfig",
    "SiteConfig",
    "SiteConfigError",
]
