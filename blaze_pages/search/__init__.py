"""Client-side search: index wire types, scoring engine, worker, and client."""

from .client import Debouncer, SearchClient, SearchUnavailableError, SearchView
from .engine import SearchEngine, normalize
from .protocol import (
    Init,
    Message,
    Query,
    Ready,
    Results,
    SearchDocument,
    SearchResult,
    decode,
    decode_index,
    encode,
    encode_index,
)
from .worker import SearchWorker

__all__ = [
    "Debouncer",
    "Init",
    "Message",
    "Query",
    "Ready",
    "Results",
    "SearchClient",
    "SearchDocument",
    "SearchEngine",
    "SearchResult",
    "SearchUnavailableError",
    "SearchView",
    "SearchWorker",
    "decode",
    "decode_index",
    "encode",
    "encode_index",
    "normalize",
]
