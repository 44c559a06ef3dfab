"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from blaze_pages._constants import DEFAULT_CACHE_PREFIX

from .helpers import (
    _build_logging_config,
    _build_media_config,
    _build_search_config,
    _optional_str,
    _resolve_optional_path,
    _resolve_path,
)
from .models import SiteConfig, SiteConfigError


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing a blaze site.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``site.yaml``). Relative directories inside the file are resolved
        against the directory that contains it.

    Returns
    -------
    SiteConfig
        Parsed site configuration with media, search, and logging sections
        filled from defaults where absent.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If the file is not valid YAML, a section is not a mapping, or a field
        holds an invalid value (for example, a malformed cache prefix or a
        non-numeric media width).

    Examples
    --------
    >>> from pathlib import Path
    >>> from blaze_pages.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
    >>> config.output_dir.name  # doctest: +SKIP
    'dist'
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        try:
            loaded = loader.load(handle) or {}
        except YAMLError as exc:
            msg = f"Configuration file '{path}' is not valid YAML: {exc}"
            raise SiteConfigError(msg) from exc
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)
    return build_site_config(raw, base_dir=path.resolve().parent)


def build_site_config(raw: typ.Mapping[str, typ.Any], *, base_dir: Path) -> SiteConfig:
    """Build a SiteConfig from an already parsed mapping."""
    site = raw.get("site", {}) or {}
    if not isinstance(site, dict):
        msg = "The 'site' section must be a mapping."
        raise SiteConfigError(msg)

    cache_prefix = _optional_str(site.get("cache_prefix")) or DEFAULT_CACHE_PREFIX
    if not cache_prefix.replace("-", "").replace("_", "").isalnum():
        msg = f"Invalid cache_prefix '{cache_prefix}'; use letters, digits, '-' or '_'."
        raise SiteConfigError(msg)

    defaults = SiteConfig(content_dir=base_dir, output_dir=base_dir)
    return SiteConfig(
        content_dir=_resolve_path(raw.get("content_dir"), base_dir, "content"),
        output_dir=_resolve_path(raw.get("output_dir"), base_dir, "dist"),
        site_name=_optional_str(site.get("name")) or defaults.site_name,
        description=_optional_str(site.get("description")) or defaults.description,
        language=_optional_str(site.get("language")) or defaults.language,
        cache_prefix=cache_prefix,
        static_dir=_resolve_optional_path(raw.get("static_dir"), base_dir),
        templates_dir=_resolve_optional_path(raw.get("templates_dir"), base_dir),
        pygments_style=_optional_str(raw.get("pygments_style"))
        or defaults.pygments_style,
        media=_build_media_config(raw.get("media")),
        search=_build_search_config(raw.get("search")),
        logging=_build_logging_config(raw.get("logging")),
    )


__all__ = ["build_site_config", "load_site_config"]
