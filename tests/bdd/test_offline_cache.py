"""Behaviour tests for the offline caching runtime.

The scenarios in ``offline_cache.feature`` install successive builds of the
runtime into one in-memory cache storage and toggle the fake network to
check cache replacement, offline navigation, and atomic installs.
"""

from __future__ import annotations

import asyncio
import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from blaze_pages.runtime import (
    CacheManifest,
    InstallError,
    MemoryCacheStorage,
    OfflineCacheRuntime,
    Request,
)

if typ.TYPE_CHECKING:
    from conftest import FakeNetwork

FEATURE_FILE = Path(__file__).resolve().parents[2] / "features" / "offline_cache.feature"
scenarios(FEATURE_FILE)

SCOPE = "https://docs.example.com/"
PREVIOUS_BUILD = ["./", "404.html", "guide/", "assets/app.0123456789.css"]
NEW_BUILD = ["./", "404.html", "guide/", "assets/app.abcdefabcd.css"]


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {"storage": MemoryCacheStorage()}


def _runtime(
    state: dict[str, object], network: FakeNetwork, urls: list[str]
) -> OfflineCacheRuntime:
    storage = typ.cast("MemoryCacheStorage", state["storage"])
    return OfflineCacheRuntime(CacheManifest.from_urls(urls), storage, network, SCOPE)


@given("a runtime for the previous build is installed")
def given_previous(scenario_state: dict[str, object], network: FakeNetwork) -> None:
    runtime = _runtime(scenario_state, network, PREVIOUS_BUILD)
    asyncio.run(runtime.install())
    scenario_state["runtime"] = runtime


@given(parsers.parse('the network rejects "{path}"'))
def given_rejection(network: FakeNetwork, path: str) -> None:
    network.status[SCOPE + path] = 500


@when("a runtime for a new build is installed")
def when_new_build(scenario_state: dict[str, object], network: FakeNetwork) -> None:
    runtime = _runtime(scenario_state, network, NEW_BUILD)
    scenario_state["runtime"] = runtime
    try:
        asyncio.run(runtime.install())
    except InstallError as exc:
        scenario_state["error"] = exc


@when("the network goes offline")
def when_offline(network: FakeNetwork) -> None:
    network.offline = True


@then("only the new build's cache remains")
def then_single_cache(scenario_state: dict[str, object]) -> None:
    storage = typ.cast("MemoryCacheStorage", scenario_state["storage"])
    runtime = typ.cast("OfflineCacheRuntime", scenario_state["runtime"])
    assert list(storage.caches) == [runtime.cache_name]


@then(parsers.parse('navigating to "{path}" is answered from the cache'))
def then_cached_navigation(scenario_state: dict[str, object], path: str) -> None:
    runtime = typ.cast("OfflineCacheRuntime", scenario_state["runtime"])
    response = asyncio.run(runtime.handle_fetch(Request(path, mode="navigate")))
    assert response is not None
    assert response.body == f"v1:{SCOPE}{path}".encode()


@then("installation fails and no cache exists")
def then_failed_install(scenario_state: dict[str, object]) -> None:
    storage = typ.cast("MemoryCacheStorage", scenario_state["storage"])
    assert isinstance(scenario_state.get("error"), InstallError)
    assert storage.caches == {}
