"""Tests for the full per-document transform."""

from __future__ import annotations

import typing as typ

from bs4 import BeautifulSoup

from blaze_pages.generator import DocumentTransformer, Heading, SourceDocument

if typ.TYPE_CHECKING:
    from pathlib import Path

    from blaze_pages.context import BuildContext

SETUP_BODY = """\
Intro paragraph with a note[^n].

## Overview

See the [API](../api.md#auth) and [home](../index.md).

## Overview

![Diagram](diagram.png "Pipeline")

```python
print("hi")
```

[^n]: A footnote.
"""


def _sources() -> list[SourceDocument]:
    return [
        SourceDocument(source_path="index.md", slug="", title="Home", body="# Home"),
        SourceDocument(source_path="api.md", slug="api", title="API", body="## Auth"),
        SourceDocument(
            source_path="guide/setup.md",
            slug="guide/setup",
            title="Setup",
            body=SETUP_BODY,
        ),
    ]


def test_transform_runs_every_pass(
    build_context: BuildContext,
    content_dir: Path,
    png_factory: typ.Callable[..., Path],
) -> None:
    png_factory(content_dir / "guide" / "diagram.png", (640, 480))
    sources = _sources()
    transformer = DocumentTransformer(build_context, sources, content_dir)

    document = transformer.transform(sources[2])
    soup = BeautifulSoup(document.html, "html.parser")

    assert document.headings == (
        Heading(depth=2, text="Overview", id="overview"),
        Heading(depth=2, text="Overview", id="overview-2"),
    )
    hrefs = [a["href"] for a in soup.select("p > a:not(.footnote-backref)")]
    assert hrefs == ["../../api/#auth", "../.."]
    assert soup.select_one("section.footnotes li#fn-n") is not None
    figure = soup.select_one("figure.media")
    assert figure is not None
    assert figure.figcaption.get_text() == "Pipeline"
    assert soup.select_one('div.codehilite[data-language="python"]') is not None
    assert "<" not in document.search_text
    assert "Intro paragraph with a note" in document.search_text


def test_transform_is_deterministic(
    build_context: BuildContext, content_dir: Path
) -> None:
    sources = _sources()
    transformer = DocumentTransformer(build_context, sources, content_dir)

    first = transformer.transform(sources[1])
    second = transformer.transform(sources[1])

    assert first == second
    assert first.headings == (Heading(depth=2, text="Auth", id="auth"),)


def test_empty_body_renders_empty_document(
    build_context: BuildContext, content_dir: Path
) -> None:
    source = SourceDocument(source_path="blank.md", slug="blank", title="Blank")
    document = DocumentTransformer(build_context, [source], content_dir).transform(source)

    assert document.html == ""
    assert document.headings == ()
    assert document.search_text == ""
