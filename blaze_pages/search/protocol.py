"""Wire types shared by the search index, the worker, and its callers.

Every message is a ``msgspec`` struct tagged on the ``type`` field, so the
JSON emitted here is exactly what the browser worker posts and receives::

    {"type": "init", "docs": [...]}
    {"type": "ready"}
    {"type": "query", "id": 3, "query": "cache"}
    {"type": "results", "id": 3, "results": [...]}
"""

from __future__ import annotations

import typing as typ

import msgspec
import msgspec.json


class SearchDocument(msgspec.Struct, frozen=True):
    """One entry of the emitted search index."""

    title: str
    url: str
    headings: str = ""
    excerpt: str = ""
    text: str = ""


class SearchResult(msgspec.Struct, frozen=True):
    """A scored match returned to the page."""

    title: str
    url: str
    snippet: str
    score: int


class Init(msgspec.Struct, tag="init", tag_field="type", frozen=True):
    docs: list[SearchDocument] = msgspec.field(default_factory=list)


class Ready(msgspec.Struct, tag="ready", tag_field="type", frozen=True):
    pass


class Query(msgspec.Struct, tag="query", tag_field="type", frozen=True):
    id: int
    query: str


class Results(msgspec.Struct, tag="results", tag_field="type", frozen=True):
    id: int
    results: list[SearchResult] = msgspec.field(default_factory=list)


Message = typ.Union[Init, Ready, Query, Results]

_message_decoder = msgspec.json.Decoder(Message)
_index_decoder = msgspec.json.Decoder(list[SearchDocument])


def encode(message: Message) -> bytes:
    """Serialize a protocol message to JSON bytes."""
    return msgspec.json.encode(message)


def decode(data: bytes | str) -> Message:
    """Parse JSON bytes into the tagged protocol message they describe.

    Raises
    ------
    msgspec.ValidationError
        If the payload has an unknown ``type`` or malformed fields.
    """
    return _message_decoder.decode(data)


def encode_index(documents: typ.Iterable[SearchDocument]) -> bytes:
    """Serialize the search index as a JSON array."""
    return msgspec.json.encode(list(documents))


def decode_index(data: bytes | str) -> list[SearchDocument]:
    return _index_decoder.decode(data)


__all__ = [
    "Init",
    "Message",
    "Query",
    "Ready",
    "Results",
    "SearchDocument",
    "SearchResult",
    "decode",
    "decode_index",
    "encode",
    "encode_index",
]
