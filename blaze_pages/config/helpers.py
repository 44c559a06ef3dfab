"""Utility helpers shared by the blaze configuration loader."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from .models import (
    DEFAULT_VARIANT_WIDTHS,
    LoggingConfig,
    MediaConfig,
    SearchConfig,
    SiteConfigError,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("console", "json")


def _optional_str(value: object | None) -> str | None:
    """Return a stripped string value or None when empty."""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _resolve_path(value: object | None, base_dir: Path, default: str) -> Path:
    """Resolve ``value`` against ``base_dir`` unless it is already absolute."""
    text = _optional_str(value) or default
    path = Path(text).expanduser()
    if path.is_absolute():
        return path
    return base_dir / path


def _resolve_optional_path(value: object | None, base_dir: Path) -> Path | None:
    text = _optional_str(value)
    if text is None:
        return None
    return _resolve_path(text, base_dir, text)


def _normalize_widths(value: object | None) -> tuple[int, ...]:
    """Return a strictly increasing tuple of positive candidate widths."""
    if value is None:
        return DEFAULT_VARIANT_WIDTHS
    if not isinstance(value, list | tuple):
        msg = "media.widths must be a list of integers."
        raise SiteConfigError(msg)
    widths: set[int] = set()
    for entry in value:
        try:
            width = int(entry)
        except (TypeError, ValueError) as exc:
            msg = f"Invalid media width: {entry!r}"
            raise SiteConfigError(msg) from exc
        if width <= 0:
            msg = f"Media widths must be positive, got {width}."
            raise SiteConfigError(msg)
        widths.add(width)
    if not widths:
        msg = "media.widths must not be empty."
        raise SiteConfigError(msg)
    return tuple(sorted(widths))


def _section(value: object | None, name: str) -> typ.Mapping[str, typ.Any] | None:
    """Return ``value`` when it is a mapping section, rejecting other shapes."""
    if value is None:
        return None
    if not isinstance(value, dict):
        msg = f"The '{name}' section must be a mapping."
        raise SiteConfigError(msg)
    return value


def _coerce_int(
    payload: typ.Mapping[str, typ.Any], key: str, default: int, section: str
) -> int:
    value = payload.get(key, default)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        msg = f"{section}.{key} must be an integer, got {value!r}."
        raise SiteConfigError(msg) from exc


def _coerce_float(
    payload: typ.Mapping[str, typ.Any], key: str, default: float, section: str
) -> float:
    value = payload.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        msg = f"{section}.{key} must be a number, got {value!r}."
        raise SiteConfigError(msg) from exc


def _build_media_config(value: object | None) -> MediaConfig:
    """Build a MediaConfig from the ``media`` mapping, applying defaults."""
    base = MediaConfig()
    payload = _section(value, "media")
    if not payload:
        return base
    max_video_width = _coerce_int(
        payload, "max_video_width", base.max_video_width, "media"
    )
    if max_video_width < 2:
        msg = "media.max_video_width must be at least 2."
        raise SiteConfigError(msg)
    return MediaConfig(
        widths=_normalize_widths(payload.get("widths")),
        sizes=_optional_str(payload.get("sizes")) or base.sizes,
        max_video_width=max_video_width,
        video_fps=_coerce_int(payload, "video_fps", base.video_fps, "media"),
        ffmpeg=_optional_str(payload.get("ffmpeg")) or base.ffmpeg,
        transcode_timeout=_coerce_float(
            payload, "transcode_timeout", base.transcode_timeout, "media"
        ),
        jpeg_quality=_coerce_int(payload, "jpeg_quality", base.jpeg_quality, "media"),
        webp_quality=_coerce_int(payload, "webp_quality", base.webp_quality, "media"),
        avif_quality=_coerce_int(payload, "avif_quality", base.avif_quality, "media"),
    )


def _build_search_config(value: object | None) -> SearchConfig:
    base = SearchConfig()
    payload = _section(value, "search")
    if not payload:
        return base
    excerpt_length = _coerce_int(
        payload, "excerpt_length", base.excerpt_length, "search"
    )
    if excerpt_length <= 0:
        msg = "search.excerpt_length must be positive."
        raise SiteConfigError(msg)
    return SearchConfig(excerpt_length=excerpt_length)


def _build_logging_config(value: object | None) -> LoggingConfig:
    base = LoggingConfig()
    payload = _section(value, "logging")
    if not payload:
        return base
    level = str(payload.get("level", base.level)).upper()
    fmt = str(payload.get("format", base.format)).lower()
    if level not in LOG_LEVELS:
        msg = f"Unknown log level '{level}'. Expected one of {', '.join(LOG_LEVELS)}."
        raise SiteConfigError(msg)
    if fmt not in LOG_FORMATS:
        msg = f"Unknown log format '{fmt}'. Expected one of {', '.join(LOG_FORMATS)}."
        raise SiteConfigError(msg)
    return LoggingConfig(level=level, format=fmt)


__all__ = [
    "LOG_FORMATS",
    "LOG_LEVELS",
    "_build_logging_config",
    "_build_media_config",
    "_build_search_config",
    "_normalize_widths",
    "_optional_str",
    "_resolve_optional_path",
    "_resolve_path",
]
