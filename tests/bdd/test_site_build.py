"""Behaviour tests for building a site from a content directory.

The scenarios in ``site_build.feature`` write a temporary content tree, run
``SiteBuilder`` with a transcoder stub that reports ``ffmpeg`` as missing, and
inspect the emitted pages and precache manifest with BeautifulSoup.

Usage
-----
Run ``pytest tests/bdd/test_site_build.py -v`` after installing the test
extra. No external binaries or network access are required.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from blaze_pages.builder import BuildResult, SiteBuilder
from blaze_pages.media import is_animated_gif

if typ.TYPE_CHECKING:
    from conftest import StubRunner

    from blaze_pages.config import SiteConfig

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "site_build.feature"
scenarios(FEATURE_FILE)

POSITIONS = {"first": 0, "second": 1}


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {"pages": {}, "files": {}}


def _pages(state: dict[str, object]) -> dict[str, str]:
    return typ.cast("dict[str, str]", state["pages"])


@given(parsers.parse('a content directory with a page titled "{title}"'))
def given_titled_page(scenario_state: dict[str, object], title: str) -> None:
    _pages(scenario_state)["setup.md"] = f"---\ntitle: {title}\n---\n"
    scenario_state["page"] = "setup.md"


@given(parsers.parse('the page has two sections headed "{heading}"'))
def given_repeated_sections(scenario_state: dict[str, object], heading: str) -> None:
    page = typ.cast("str", scenario_state["page"])
    for index in range(2):
        _pages(scenario_state)[page] += f"\n## {heading}\n\nPart {index + 1}.\n"


@given("a content directory with a home page and one navigable page")
def given_home_and_page(scenario_state: dict[str, object]) -> None:
    pages = _pages(scenario_state)
    pages["index.md"] = "---\ntitle: Home\n---\nWelcome.\n"
    pages["guide.md"] = "---\ntitle: Guide\n---\n## Start\n"


@given("a content directory with a page embedding a three-frame GIF")
def given_gif_page(
    scenario_state: dict[str, object], gif_factory: typ.Callable[..., bytes]
) -> None:
    _pages(scenario_state)["index.md"] = "# Demo\n\n![Demo loop](demo.gif)\n"
    files = typ.cast("dict[str, bytes]", scenario_state["files"])
    files["demo.gif"] = gif_factory(frames=3)


@when("I build the site without a transcoder")
def when_build(
    scenario_state: dict[str, object],
    site_config: SiteConfig,
    content_dir: Path,
    missing_runner: StubRunner,
) -> None:
    for relative, text in _pages(scenario_state).items():
        (content_dir / relative).write_text(text, encoding="utf-8")
    for relative, data in typ.cast("dict[str, bytes]", scenario_state["files"]).items():
        (content_dir / relative).write_bytes(data)
    scenario_state["content_dir"] = content_dir
    scenario_state["result"] = SiteBuilder(site_config, runner=missing_runner).run()  # type: ignore[arg-type]


def _result(state: dict[str, object]) -> BuildResult:
    return typ.cast("BuildResult", state["result"])


@then(parsers.parse('the {position} "{text}" heading has the id "{anchor}"'))
def then_heading_id(
    scenario_state: dict[str, object], position: str, text: str, anchor: str
) -> None:
    result = _result(scenario_state)
    html = (result.output_dir / "setup" / "index.html").read_text(encoding="utf-8")
    main = BeautifulSoup(html, "html.parser").find("main")
    assert main is not None
    headings = [h for h in main.find_all("h2") if h.get_text(strip=True) == text]
    assert len(headings) == 2, f"expected two '{text}' headings, got {len(headings)}"
    assert headings[POSITIONS[position]]["id"] == anchor


@then(
    "the precache manifest holds the home page, the 404 page, that page and every runtime asset"
)
def then_manifest_contents(scenario_state: dict[str, object]) -> None:
    result = _result(scenario_state)
    assets = [f"assets/{name}" for name in result.assets.names()]
    assert set(result.precache) == {"./", "404.html", "guide/", *assets}


@then("the precache manifest has no duplicates")
def then_manifest_unique(scenario_state: dict[str, object]) -> None:
    precache = _result(scenario_state).precache
    assert len(precache) == len(set(precache)), f"duplicates in {precache!r}"


@then("the GIF is detected as animated")
def then_gif_animated(scenario_state: dict[str, object]) -> None:
    content_dir = typ.cast("Path", scenario_state["content_dir"])
    assert is_animated_gif((content_dir / "demo.gif").read_bytes())


@then("the page shows a still picture instead of a video")
def then_still_picture(scenario_state: dict[str, object]) -> None:
    result = _result(scenario_state)
    html = (result.output_dir / "index.html").read_text(encoding="utf-8")
    main = BeautifulSoup(html, "html.parser").find("main")
    assert main is not None
    assert main.find("video") is None
    image = main.select_one("figure.media picture img")
    assert image is not None
    assert image["alt"] == "Demo loop"
    assert image["src"].startswith("assets/media/demo.")
    assert result.degraded_media == 1
