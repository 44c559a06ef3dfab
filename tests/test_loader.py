"""Tests for loading markdown sources and their frontmatter."""

from __future__ import annotations

import typing as typ

import pytest

from blaze_pages.errors import FrontmatterError
from blaze_pages.loader import (
    load_documents,
    normalize_slug,
    resolve_slug,
    split_frontmatter,
    title_from_slug,
)

if typ.TYPE_CHECKING:
    from pathlib import Path


def _write(root: Path, relative: str, text: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def test_split_frontmatter() -> None:
    meta, body = split_frontmatter("---\ntitle: Hi\n---\n# Body\n")
    assert meta == "title: Hi\n"
    assert body == "# Body\n"
    assert split_frontmatter("# No meta\n") == ("", "# No meta\n")


@pytest.mark.parametrize(
    ("source_path", "explicit", "expected"),
    [
        ("index.md", None, ""),
        ("guide/index.md", None, "guide"),
        ("guide/Getting Started.md", None, "guide/getting-started"),
        ("notes.md", "/Custom/Path/", "custom/path"),
        ("notes.md", "index", ""),
        ("notes.md", "   ", "notes"),
    ],
)
def test_resolve_slug(source_path: str, explicit: str | None, expected: str) -> None:
    assert resolve_slug(source_path, explicit) == expected


def test_normalize_slug_drops_empty_segments() -> None:
    assert normalize_slug("a//b/!!/c") == "a/b/c"


def test_title_from_slug() -> None:
    assert title_from_slug("guide/getting-started") == "Getting Started"
    assert title_from_slug("") == "Index"


def test_load_documents_reads_frontmatter(content_dir: Path) -> None:
    _write(
        content_dir,
        "guide/setup.md",
        "---\n"
        "title: Setup   guide\n"
        "description: How to install.\n"
        "order: 2.0\n"
        "nav_exclude: true\n"
        "search_exclude: yes\n"
        "---\n\n"
        "## Install\n",
    )
    _write(content_dir, "index.md", "# Welcome\n")

    documents = load_documents(content_dir)

    assert [doc.source_path for doc in documents] == ["guide/setup.md", "index.md"]
    setup, home = documents
    assert setup.slug == "guide/setup"
    assert setup.title == "Setup guide"
    assert setup.description == "How to install."
    assert setup.order == 2
    assert isinstance(setup.order, int)
    assert setup.nav_exclude is True
    # YAML 1.2 reads "yes" as a plain string, which is still truthy.
    assert setup.search_exclude is True
    assert setup.body == "## Install"
    assert setup.output_path == "guide/setup/index.html"
    assert setup.url_path == "guide/setup/"
    assert home.is_home
    assert home.title == "Index"
    assert home.output_path == "index.html"


@pytest.mark.parametrize("order", ["soon", ".nan", ".inf", "true"])
def test_unusable_order_sorts_last(content_dir: Path, order: str) -> None:
    _write(content_dir, "page.md", f"---\norder: {order}\n---\nBody\n")
    (document,) = load_documents(content_dir)
    assert document.order == 999


def test_non_mapping_frontmatter_is_fatal(content_dir: Path) -> None:
    _write(content_dir, "bad.md", "---\n- a\n- b\n---\nBody\n")
    with pytest.raises(FrontmatterError) as excinfo:
        load_documents(content_dir)
    assert excinfo.value.source_path == "bad.md"


def test_malformed_frontmatter_is_fatal(content_dir: Path) -> None:
    _write(content_dir, "bad.md", "---\ntitle: [unclosed\n---\nBody\n")
    with pytest.raises(FrontmatterError):
        load_documents(content_dir)


def test_missing_content_dir(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_documents(tmp_path / "nope")
