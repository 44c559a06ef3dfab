"""Page-side search controller: readiness, request ids, and debouncing.

:class:`SearchClient` owns the three rules the page must follow when talking
to the worker:

* at most one initialization is in flight, shared by every caller, and it
  fails with :class:`SearchUnavailableError` once the readiness timeout
  elapses;
* each dispatched query gets a fresh request id, and any reply carrying an
  older id is dropped without touching the view;
* queries shorter than the minimum normalized length close the results
  panel and never reach the worker.
"""

from __future__ import annotations

import asyncio
import typing as typ

import structlog

from blaze_pages._constants import (
    SEARCH_DEBOUNCE_SECONDS,
    SEARCH_MIN_QUERY_LENGTH,
    SEARCH_READY_TIMEOUT,
)

from .engine import normalize
from .protocol import Init, Query, Ready, Results

if typ.TYPE_CHECKING:
    from .protocol import Message, SearchDocument, SearchResult

log = structlog.get_logger()

UNAVAILABLE_MESSAGE = "Search is unavailable."
NO_MATCHES_MESSAGE = "No matches."


class SearchUnavailableError(RuntimeError):
    """Raised when the index cannot be loaded or the worker never becomes ready."""


class SearchView(typ.Protocol):
    """The results panel the client renders into."""

    def show_results(self, results: list[SearchResult]) -> None: ...

    def show_message(self, message: str) -> None: ...

    def close(self) -> None: ...


class WorkerPort(typ.Protocol):
    """The messaging surface of a search worker."""

    def post(self, message: Message) -> None: ...

    def add_listener(self, listener: typ.Callable[[Message], None]) -> None: ...


IndexLoader = typ.Callable[[], typ.Awaitable[list["SearchDocument"]]]


class SearchClient:
    """Drive a search worker on behalf of a results view."""

    def __init__(
        self,
        worker: WorkerPort,
        load_index: IndexLoader,
        view: SearchView,
        *,
        timeout: float = SEARCH_READY_TIMEOUT,
    ) -> None:
        self.worker = worker
        self.load_index = load_index
        self.view = view
        self.timeout = timeout
        self.latest_id = 0
        self.ready = False
        self._docs: list[SearchDocument] | None = None
        self._ready_event = asyncio.Event()
        self._init: asyncio.Future[None] | None = None
        worker.add_listener(self.on_message)

    async def ensure_ready(self) -> None:
        """Initialize the worker once, sharing the attempt between callers.

        Raises
        ------
        SearchUnavailableError
            If loading the index fails or the worker does not reply ``ready``
            within ``timeout`` seconds. A later call starts a fresh attempt.
        """
        if self.ready:
            return
        if self._init is None:
            self._init = asyncio.ensure_future(self._initialize())
            self._init.add_done_callback(self._clear_init)
        await asyncio.shield(self._init)

    def _clear_init(self, _future: asyncio.Future[None]) -> None:
        self._init = None

    async def _initialize(self) -> None:
        if self._docs is None:
            try:
                self._docs = await self.load_index()
            except (OSError, ValueError) as exc:
                msg = f"Search index failed to load: {exc}"
                raise SearchUnavailableError(msg) from exc
        self._ready_event.clear()
        self.worker.post(Init(docs=self._docs))
        try:
            await asyncio.wait_for(self._ready_event.wait(), self.timeout)
        except TimeoutError as exc:
            msg = "Search worker timeout"
            raise SearchUnavailableError(msg) from exc
        self.ready = True

    async def submit(self, text: str) -> int | None:
        """Dispatch ``text`` as the latest query and return its request id.

        Returns ``None`` when the query was too short (the view is closed) or
        when search is unavailable (the view shows the unavailable message).
        """
        query = text.strip()
        if len(normalize(query)) < SEARCH_MIN_QUERY_LENGTH:
            self.view.close()
            return None
        try:
            await self.ensure_ready()
        except SearchUnavailableError as exc:
            log.warning("search_unavailable", error=str(exc))
            self.view.show_message(UNAVAILABLE_MESSAGE)
            return None
        self.latest_id += 1
        self.worker.post(Query(id=self.latest_id, query=query))
        return self.latest_id

    def on_message(self, message: Message) -> None:
        """Handle a worker reply, ignoring results superseded by a newer query."""
        if isinstance(message, Ready):
            self._ready_event.set()
            return
        if not isinstance(message, Results):
            return
        if message.id != self.latest_id:
            log.debug("search_reply_dropped", id=message.id, latest=self.latest_id)
            return
        if not message.results:
            self.view.show_message(NO_MATCHES_MESSAGE)
            return
        self.view.show_results(list(message.results))


class Debouncer:
    """Coalesce rapid calls so only the last one runs after ``delay`` seconds."""

    def __init__(
        self,
        callback: typ.Callable[..., typ.Awaitable[object]],
        delay: float = SEARCH_DEBOUNCE_SECONDS,
    ) -> None:
        self.callback = callback
        self.delay = delay
        self._pending: asyncio.Task[None] | None = None

    def __call__(self, *args: object) -> asyncio.Task[None]:
        self.cancel()
        self._pending = asyncio.create_task(self._fire(args))
        return self._pending

    async def _fire(self, args: tuple[object, ...]) -> None:
        await asyncio.sleep(self.delay)
        await self.callback(*args)

    @property
    def pending(self) -> asyncio.Task[None] | None:
        return self._pending

    def cancel(self) -> None:
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None


__all__ = [
    "NO_MATCHES_MESSAGE",
    "UNAVAILABLE_MESSAGE",
    "Debouncer",
    "SearchClient",
    "SearchUnavailableError",
    "SearchView",
    "WorkerPort",
]
