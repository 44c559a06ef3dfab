"""Tests for footnote extraction and rendering."""

from __future__ import annotations

from bs4 import BeautifulSoup

from blaze_pages.generator import FootnoteCollector, HtmlContentRenderer


def _render(markdown: str) -> BeautifulSoup:
    renderer = HtmlContentRenderer()
    collector = FootnoteCollector()
    body = collector.extract(markdown)
    html = collector.render(renderer.markdown(body), renderer.markdown)
    return BeautifulSoup(html, "html.parser")


def test_reference_count_matches_backlinks() -> None:
    soup = _render(
        "First[^src] and again[^src].\n\nThird[^src].\n\n[^src]: The source."
    )
    markers = soup.select("sup.footnote-ref a")
    assert [marker.get_text() for marker in markers] == ["1", "1", "1"]
    entry = soup.select_one("section.footnotes li#fn-src")
    assert entry is not None
    assert len(entry.select("a.footnote-backref")) == 3
    assert [a["href"] for a in entry.select("a.footnote-backref")] == [
        "#fnref-src",
        "#fnref-src-2",
        "#fnref-src-3",
    ]


def test_unreferenced_definition_is_dropped() -> None:
    soup = _render("Claim[^a].\n\n[^a]: Used.\n[^b]: Never cited.")
    assert soup.select_one("#fn-a") is not None
    assert soup.select_one("#fn-b") is None
    assert "Never cited" not in soup.get_text()


def test_no_references_means_no_section() -> None:
    soup = _render("Plain text.\n\n[^a]: Orphan.")
    assert soup.select_one("section.footnotes") is None


def test_ordinals_follow_first_reference() -> None:
    soup = _render("B[^b] then A[^a].\n\n[^a]: Alpha.\n[^b]: Beta.")
    items = soup.select("section.footnotes li")
    assert [item["id"] for item in items] == ["fn-b", "fn-a"]
    assert [item["value"] for item in items] == ["1", "2"]


def test_unknown_reference_stays_literal() -> None:
    soup = _render("See [^missing] here.")
    assert "[^missing]" in soup.get_text()
    assert soup.select_one("sup.footnote-ref") is None


def test_code_is_left_alone() -> None:
    markdown = (
        "Inline `x[^a]` text[^a].\n\n"
        "```\n[^a]: not a definition\ncode[^a]\n```\n\n"
        "[^a]: Real note."
    )
    soup = _render(markdown)
    assert len(soup.select("sup.footnote-ref")) == 1
    code_text = " ".join(code.get_text() for code in soup.find_all("code"))
    assert "x[^a]" in code_text
    assert "[^a]: not a definition" in code_text


def test_multiline_definition_is_rendered_as_markdown() -> None:
    markdown = (
        "Claim[^long].\n\n"
        "[^long]: First line with *emphasis*.\n"
        "    continued here.\n\n"
        "    Second paragraph.\n"
    )
    soup = _render(markdown)
    entry = soup.select_one("#fn-long")
    assert entry is not None
    assert entry.find("em") is not None
    assert "Second paragraph." in entry.get_text()
    # The back-link sits inside the last paragraph of the definition.
    assert entry.find_all("p")[-1].select_one("a.footnote-backref") is not None
