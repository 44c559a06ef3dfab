"""Read markdown sources and their frontmatter from the content directory."""

from __future__ import annotations

import math
import re
import typing as typ

import structlog
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import DEFAULT_ORDER
from .errors import FrontmatterError
from .generator.models import SourceDocument
from .generator.text import collapse_whitespace

if typ.TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()

FRONTMATTER_PATTERN = re.compile(
    r"\A---[ \t]*\r?\n(.*?)(?:^---[ \t]*$\r?\n?)", re.DOTALL | re.MULTILINE
)
SLUG_SEGMENT_PATTERN = re.compile(r"[^a-z0-9-]")


def split_frontmatter(text: str) -> tuple[str, str]:
    """Return ``(frontmatter, body)``; the frontmatter is empty when absent."""
    match = FRONTMATTER_PATTERN.match(text)
    if match is None:
        return "", text
    return match.group(1), text[match.end() :]


def parse_frontmatter(raw: str, source_path: str) -> dict[str, typ.Any]:
    """Parse a frontmatter block into a mapping."""
    if not raw.strip():
        return {}
    parser = YAML(typ="safe")
    parser.version = (1, 2)
    try:
        data = parser.load(raw)
    except YAMLError as exc:
        raise FrontmatterError(source_path, str(exc)) from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise FrontmatterError(source_path, "expected a mapping")
    return data


def normalize_slug(value: str) -> str:
    """Normalize a slug into lowercase ``[a-z0-9-]`` path segments.

    Examples
    --------
    >>> normalize_slug("/Guide/Getting Started!/")
    'guide/getting-started'
    """
    normalized = re.sub(r"\s+", "-", value.replace("\\", "/").strip("/")).lower()
    segments = (SLUG_SEGMENT_PATTERN.sub("", part) for part in normalized.split("/"))
    return "/".join(part for part in segments if part)


def resolve_slug(source_path: str, explicit: object = None) -> str:
    """Return the slug for ``source_path``; empty means the home page.

    Examples
    --------
    >>> resolve_slug("index.md")
    ''
    >>> resolve_slug("guide/index.md")
    'guide'
    >>> resolve_slug("guide/Setup.md")
    'guide/setup'
    >>> resolve_slug("notes.md", "index")
    ''
    """
    if isinstance(explicit, str) and explicit.strip():
        normalized = normalize_slug(explicit)
        return "" if normalized == "index" else normalized
    if source_path == "index.md":
        return ""
    stem = re.sub(r"\.md$", "", source_path, flags=re.IGNORECASE)
    if stem.endswith("/index"):
        stem = stem[: -len("/index")]
    return normalize_slug(stem)


def title_from_slug(slug: str) -> str:
    """Derive a display title from the last slug segment."""
    last = (slug or "index").rsplit("/", 1)[-1]
    return " ".join(word[:1].upper() + word[1:] for word in last.split("-") if word)


def _clean_text(value: object) -> str:
    return collapse_whitespace(value) if isinstance(value, str) else ""


def _order(value: object) -> float:
    if isinstance(value, bool):
        return DEFAULT_ORDER
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return DEFAULT_ORDER
    if not math.isfinite(number):
        return DEFAULT_ORDER
    return int(number) if number.is_integer() else number


def load_document(path: Path, content_dir: Path) -> SourceDocument:
    """Load one markdown file into a :class:`SourceDocument`."""
    source_path = path.relative_to(content_dir).as_posix()
    raw_frontmatter, body = split_frontmatter(path.read_text(encoding="utf-8"))
    meta = parse_frontmatter(raw_frontmatter, source_path)
    slug = resolve_slug(source_path, meta.get("slug"))
    return SourceDocument(
        source_path=source_path,
        slug=slug,
        title=_clean_text(meta.get("title")) or title_from_slug(slug),
        description=_clean_text(meta.get("description")),
        order=_order(meta.get("order")),
        body=body.strip(),
        nav_exclude=bool(meta.get("nav_exclude", False)),
        search_exclude=bool(meta.get("search_exclude", False)),
    )


def load_documents(content_dir: Path) -> list[SourceDocument]:
    """Load every ``*.md`` file below ``content_dir`` in sorted path order.

    Parameters
    ----------
    content_dir : Path
        Root of the markdown sources.

    Returns
    -------
    list[SourceDocument]
        One document per file. Output path conflicts are not checked here;
        :meth:`SiteAssembler.plan` rejects them before any rendering.

    Raises
    ------
    FileNotFoundError
        If ``content_dir`` does not exist.
    FrontmatterError
        If a file's frontmatter is not a YAML mapping.
    """
    if not content_dir.is_dir():
        msg = f"Content directory '{content_dir}' not found."
        raise FileNotFoundError(msg)
    paths = sorted(
        (path for path in content_dir.rglob("*.md") if path.is_file()),
        key=lambda path: path.relative_to(content_dir).as_posix(),
    )
    documents = [load_document(path, content_dir) for path in paths]
    log.info("documents_loaded", count=len(documents), content_dir=str(content_dir))
    return documents


__all__ = [
    "load_document",
    "load_documents",
    "normalize_slug",
    "parse_frontmatter",
    "resolve_slug",
    "split_frontmatter",
    "title_from_slug",
]
