"""POSIX helpers for computing links between emitted pages."""

from __future__ import annotations

import posixpath


def relative_href(from_output_path: str, to_site_path: str) -> str:
    """Return a link from the page at ``from_output_path`` to ``to_site_path``.

    Both arguments are site-relative POSIX paths. An empty target means the
    site root. Directory targets (trailing slash) keep their trailing slash.

    Examples
    --------
    >>> relative_href("guide/index.html", "api/")
    '../api/'
    >>> relative_href("index.html", "")
    '.'
    >>> relative_href("guide/index.html", "assets/app.css")
    '../assets/app.css'
    """
    from_dir = posixpath.dirname(from_output_path) or "."
    target = to_site_path or "."
    relative = posixpath.relpath(target, from_dir)
    if to_site_path.endswith("/") and not relative.endswith("/"):
        relative += "/"
    return relative


def site_root(output_path: str) -> str:
    """Return the relative prefix leading from ``output_path`` to the site root.

    Examples
    --------
    >>> site_root("index.html")
    './'
    >>> site_root("guide/setup/index.html")
    '../../'
    """
    from_dir = posixpath.dirname(output_path) or "."
    relative = posixpath.relpath(".", from_dir)
    if relative == ".":
        return "./"
    return relative if relative.endswith("/") else f"{relative}/"


def resolve_relative(from_output_path: str, href: str) -> str:
    """Resolve ``href`` as written on ``from_output_path`` to a site path."""
    from_dir = posixpath.dirname(from_output_path)
    joined = posixpath.normpath(posixpath.join(from_dir, href))
    if href.endswith("/") and joined != ".":
        joined += "/"
    return "" if joined == "." else joined


__all__ = ["relative_href", "resolve_relative", "site_root"]
