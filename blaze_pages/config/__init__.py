"""Load and validate site configuration YAML for blaze builds.

This subpackage parses the project's ``site.yaml`` file, applies defaults for
the media, search, and logging sections, resolves directories relative to the
configuration file, and produces strongly typed dataclasses
(:class:`SiteConfig`, :class:`MediaConfig`, etc.) that the builder consumes.
The primary entry point is :func:`load_site_config`.

Examples
--------
>>> from pathlib import Path
>>> from blaze_pages.config import load_site_config
>>> site = load_site_config(Path("site.yaml"))  # doctest: +SKIP
>>> site.media.widths  # doctest: +SKIP
(320, 640, 960, 1280, 1920)
"""

from .loader import build_site_config, load_site_config
from .models import (
    DEFAULT_VARIANT_WIDTHS,
    LoggingConfig,
    MediaConfig,
    SearchConfig,
    SiteConfig,
    SiteConfigError,
)

__all__ = [
    "DEFAULT_VARIANT_WIDTHS",
    "LoggingConfig",
    "MediaConfig",
    "SearchConfig",
    "SiteConfig",
    "SiteConfigError",
    "build_site_config",
    "load_site_config",
]
