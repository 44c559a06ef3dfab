"""Reference models of the browser runtime protocols."""

from .offline import (
    CacheManifest,
    InstallError,
    MemoryCacheStorage,
    NetworkError,
    OfflineCacheRuntime,
    OfflineFetchError,
    ReloadGuard,
    Request,
    Response,
    RuntimeState,
)

__all__ = [
    "CacheManifest",
    "InstallError",
    "MemoryCacheStorage",
    "NetworkError",
    "OfflineCacheRuntime",
    "OfflineFetchError",
    "ReloadGuard",
    "Request",
    "Response",
    "RuntimeState",
]
