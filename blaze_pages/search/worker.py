"""Asyncio model of the search worker's message loop."""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

import msgspec
import structlog

from .engine import SearchEngine
from .protocol import Init, Query, Ready, Results, decode

if typ.TYPE_CHECKING:
    from .protocol import Message

log = structlog.get_logger()

Listener = typ.Callable[["Message"], None]


class SearchWorker:
    """Index documents on ``init`` and answer each ``query`` with ``results``.

    Messages are posted into an inbox and handled strictly in arrival order
    by a single task, mirroring the browser worker's event loop. Replies are
    delivered to every registered listener.
    """

    def __init__(self, engine: SearchEngine | None = None) -> None:
        self.engine = engine or SearchEngine()
        self.inbox: asyncio.Queue[Message | bytes | str] = asyncio.Queue()
        self._listeners: list[Listener] = []
        self._task: asyncio.Task[None] | None = None

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def post(self, message: Message | bytes | str) -> None:
        """Queue a message; raw JSON payloads are decoded when handled."""
        self.inbox.put_nowait(message)

    def handle(self, message: Message) -> Message | None:
        """Return the reply for ``message``, or None when it needs none."""
        if isinstance(message, Init):
            self.engine.index(message.docs)
            log.debug("search_indexed", documents=len(self.engine))
            return Ready()
        if isinstance(message, Query):
            results = self.engine.search(message.query)
            return Results(id=message.id, results=results or [])
        return None

    async def run(self) -> None:
        while True:
            payload = await self.inbox.get()
            try:
                message = decode(payload) if isinstance(payload, bytes | str) else payload
                reply = self.handle(message)
            except msgspec.DecodeError as exc:
                log.warning("search_message_rejected", error=str(exc))
                reply = None
            finally:
                self.inbox.task_done()
            if reply is not None:
                for listener in list(self._listeners):
                    listener(reply)

    def start(self) -> asyncio.Task[None]:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="search-worker")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None


__all__ = ["SearchWorker"]
