"""Reference model of the offline caching runtime.

The emitted ``sw.<hash>.js`` implements this state machine for browsers.
:class:`OfflineCacheRuntime` implements the same protocol over an injected
cache storage and an async ``fetch`` so the behaviour can be exercised
without a browser:

install
    Fetch every manifest URL (resolved against the scope) and store the
    responses under ``<prefix>-<token>``. Any failure aborts the install and
    leaves no cache behind. A successful install skips waiting.
activate
    Delete every ``<prefix>-*`` cache except the current one, then claim
    clients.
fetch
    Navigation requests are network-first; sub-resources are
    stale-while-revalidate. Requests that are not same-origin, in-scope GETs
    are not handled and return ``None``.
"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import enum
import typing as typ
from urllib.parse import urljoin, urlsplit

import structlog

from blaze_pages._constants import (
    DEFAULT_CACHE_PREFIX,
    RELOAD_FLAG_KEY,
    SKIP_WAITING_MESSAGE,
)
from blaze_pages.hashing import manifest_token

log = structlog.get_logger()


class NetworkError(ConnectionError):
    """Raised by a fetch callable when the network is unreachable."""


class OfflineFetchError(RuntimeError):
    """Raised when neither the network nor the cache can answer a request."""


class InstallError(RuntimeError):
    """Raised when precaching fails; the runtime becomes redundant."""


@dc.dataclass(frozen=True, slots=True)
class Request:
    url: str
    method: str = "GET"
    mode: str = "no-cors"

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"


@dc.dataclass(frozen=True, slots=True)
class Response:
    url: str
    status: int = 200
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


Fetch = typ.Callable[[Request], typ.Awaitable[Response]]


class Cache(typ.Protocol):
    async def match(self, url: str) -> Response | None: ...

    async def put(self, url: str, response: Response) -> None: ...


class CacheStorage(typ.Protocol):
    async def open(self, name: str) -> Cache: ...

    async def keys(self) -> list[str]: ...

    async def delete(self, name: str) -> bool: ...


class MemoryCache:
    """A single named cache held in memory."""

    def __init__(self) -> None:
        self.entries: dict[str, Response] = {}

    async def match(self, url: str) -> Response | None:
        return self.entries.get(url)

    async def put(self, url: str, response: Response) -> None:
        self.entries[url] = response


class MemoryCacheStorage:
    """In-memory ``CacheStorage`` keyed by cache name, in creation order."""

    def __init__(self) -> None:
        self.caches: dict[str, MemoryCache] = {}

    async def open(self, name: str) -> MemoryCache:
        return self.caches.setdefault(name, MemoryCache())

    async def keys(self) -> list[str]:
        return list(self.caches)

    async def delete(self, name: str) -> bool:
        return self.caches.pop(name, None) is not None


@dc.dataclass(frozen=True, slots=True)
class CacheManifest:
    """The precache list and version token baked into one runtime build.

    Attributes
    ----------
    urls : tuple[str, ...]
        Site-relative URLs to precache, in manifest order.
    token : str
        Version token derived from ``urls``.
    prefix : str
        Cache-name prefix shared by every build of the site.
    """

    urls: tuple[str, ...]
    token: str
    prefix: str = DEFAULT_CACHE_PREFIX

    @classmethod
    def from_urls(
        cls, urls: typ.Iterable[str], prefix: str = DEFAULT_CACHE_PREFIX
    ) -> CacheManifest:
        ordered = tuple(urls)
        return cls(urls=ordered, token=manifest_token(ordered), prefix=prefix)

    @property
    def cache_name(self) -> str:
        return f"{self.prefix}-{self.token}"

    def owns(self, cache_name: str) -> bool:
        """Return True when ``cache_name`` belongs to this site."""
        return cache_name.startswith(f"{self.prefix}-")


class RuntimeState(enum.StrEnum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class OfflineCacheRuntime:
    """One deployed instance of the caching runtime."""

    def __init__(
        self,
        manifest: CacheManifest,
        storage: CacheStorage,
        fetch: Fetch,
        scope: str,
    ) -> None:
        self.manifest = manifest
        self.storage = storage
        self.fetch = fetch
        self.scope = scope if scope.endswith("/") else f"{scope}/"
        self.state = RuntimeState.PARSED
        self.skip_waiting_requested = False
        self.controls_clients = False
        self._background: set[asyncio.Task[None]] = set()

    @property
    def cache_name(self) -> str:
        return self.manifest.cache_name

    def resolve(self, url: str) -> str:
        return urljoin(self.scope, url)

    def in_scope(self, request: Request) -> bool:
        """Return True for same-origin GET requests under the scope path."""
        if request.method.upper() != "GET":
            return False
        target = urlsplit(self.resolve(request.url))
        scope = urlsplit(self.scope)
        return (target.scheme, target.netloc) == (
            scope.scheme,
            scope.netloc,
        ) and target.path.startswith(scope.path)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def install(self) -> None:
        """Precache every manifest URL, atomically, then skip waiting.

        Raises
        ------
        InstallError
            If any manifest URL cannot be fetched or answers with a non-OK
            status. Nothing is written to the cache and the runtime
            becomes redundant.
        """
        self.state = RuntimeState.INSTALLING
        fetched: list[tuple[str, Response]] = []
        for entry in self.manifest.urls:
            url = self.resolve(entry)
            try:
                response = await self.fetch(Request(url))
            except OSError as exc:
                self._abort_install(url, str(exc))
                msg = f"Precache failed for {url}: {exc}"
                raise InstallError(msg) from exc
            if not response.ok:
                self._abort_install(url, f"status {response.status}")
                msg = f"Precache failed for {url}: status {response.status}"
                raise InstallError(msg)
            fetched.append((url, response))

        cache = await self.storage.open(self.cache_name)
        for url, response in fetched:
            await cache.put(url, response)
        self.state = RuntimeState.INSTALLED
        log.info("runtime_installed", cache=self.cache_name, entries=len(fetched))
        await self.skip_waiting()

    def _abort_install(self, url: str, reason: str) -> None:
        self.state = RuntimeState.REDUNDANT
        log.warning("runtime_install_failed", url=url, reason=reason)

    async def skip_waiting(self) -> None:
        """Activate as soon as installation has finished."""
        self.skip_waiting_requested = True
        if self.state is RuntimeState.INSTALLED:
            await self.activate()

    async def activate(self) -> None:
        """Delete caches from earlier builds and take control of clients."""
        self.state = RuntimeState.ACTIVATING
        stale = [
            name
            for name in await self.storage.keys()
            if self.manifest.owns(name) and name != self.cache_name
        ]
        for name in stale:
            await self.storage.delete(name)
        self.controls_clients = True
        self.state = RuntimeState.ACTIVATED
        log.info("runtime_activated", cache=self.cache_name, deleted=stale)

    async def handle_message(self, message: typ.Mapping[str, object]) -> None:
        if message.get("type") == SKIP_WAITING_MESSAGE:
            await self.skip_waiting()

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    async def handle_fetch(self, request: Request) -> Response | None:
        """Answer ``request`` or return ``None`` to let it pass through.

        Raises
        ------
        OfflineFetchError
            If neither the network nor the current cache can answer.
        """
        if not self.in_scope(request):
            return None
        if request.is_navigation:
            return await self._network_first(request)
        return await self._stale_while_revalidate(request)

    async def _network_first(self, request: Request) -> Response:
        url = self.resolve(request.url)
        request = dc.replace(request, url=url)
        cache = await self.storage.open(self.cache_name)
        try:
            response = await self.fetch(request)
        except OSError as exc:
            cached = await cache.match(url)
            if cached is not None:
                return cached
            msg = f"Offline and no cached page for {url}"
            raise OfflineFetchError(msg) from exc
        if response.ok:
            await cache.put(url, response)
        return response

    async def _stale_while_revalidate(self, request: Request) -> Response:
        url = self.resolve(request.url)
        request = dc.replace(request, url=url)
        cache = await self.storage.open(self.cache_name)
        cached = await cache.match(url)
        if cached is not None:
            task = asyncio.create_task(self._revalidate(request, url, cache))
            self._background.add(task)
            task.add_done_callback(self._background.discard)
            return cached
        try:
            response = await self.fetch(request)
        except OSError as exc:
            msg = f"Request failed and no cache available for {url}"
            raise OfflineFetchError(msg) from exc
        if response.ok:
            await cache.put(url, response)
        return response

    async def _revalidate(self, request: Request, url: str, cache: Cache) -> None:
        try:
            response = await self.fetch(request)
        except OSError as exc:
            log.debug("runtime_revalidate_failed", url=url, error=str(exc))
            return
        if response.ok:
            await cache.put(url, response)

    async def drain(self) -> None:
        """Wait for background revalidation to finish."""
        if self._background:
            await asyncio.gather(*self._background)


class ReloadGuard:
    """Reload a page only the first time a new controller takes over.

    ``session`` stands in for the page's session storage; the flag survives
    the reload it triggers, so the next controller change is ignored.
    """

    def __init__(
        self,
        reload: typ.Callable[[], None],
        session: typ.MutableMapping[str, str] | None = None,
    ) -> None:
        self.reload = reload
        self.session = {} if session is None else session

    def on_controller_change(self) -> bool:
        """Return True when the change triggered a reload."""
        if self.session.get(RELOAD_FLAG_KEY) == "1":
            return False
        self.session[RELOAD_FLAG_KEY] = "1"
        self.reload()
        return True


__all__ = [
    "Cache",
    "CacheManifest",
    "CacheStorage",
    "Fetch",
    "InstallError",
    "MemoryCache",
    "MemoryCacheStorage",
    "NetworkError",
    "OfflineCacheRuntime",
    "OfflineFetchError",
    "ReloadGuard",
    "Request",
    "Response",
    "RuntimeState",
]
