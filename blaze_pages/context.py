"""Per-build mutable state passed explicitly to every pipeline stage.

The build has exactly two pieces of shared mutable state: the per-source media
memo and the set of generated asset names held by the hashed store. Both live
on :class:`BuildContext` instead of module globals, and both are guarded by
locks so media for distinct sources may be processed in parallel.
"""

from __future__ import annotations

import collections
import threading
import typing as typ
from concurrent import futures

import structlog

from ._constants import ASSETS_DIRNAME
from .hashing import HashedAssetStore
from .media import MediaStatus, MediaTranscoder

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import SiteConfig
    from .media import FfmpegRunner, MediaOutcome

log = structlog.get_logger()


class BuildContext:
    """State shared by the stages of one build run."""

    def __init__(
        self,
        config: SiteConfig,
        *,
        output_dir: Path | None = None,
        runner: FfmpegRunner | None = None,
    ) -> None:
        self.config = config
        self.output_dir = output_dir or config.output_dir
        self.assets_dir = self.output_dir / ASSETS_DIRNAME
        self.assets = HashedAssetStore(self.assets_dir)
        self.transcoder = MediaTranscoder(config.media, self.assets, runner)
        self._media: dict[Path, futures.Future[MediaOutcome]] = {}
        self._media_lock = threading.Lock()
        self.media_status: collections.Counter[str] = collections.Counter()

    def media(self, source: Path) -> MediaOutcome:
        """Return the transcoded outcome for ``source``, processing it at most once.

        The first caller for a source transcodes it; concurrent callers for
        the same source wait for that result instead of transcoding again.
        """
        key = source.resolve()
        with self._media_lock:
            pending = self._media.get(key)
            owner = pending is None
            if pending is None:
                pending = self._media[key] = futures.Future()
        if not owner:
            return pending.result()

        try:
            outcome = self.transcoder.transcode(source)
        except Exception as exc:
            pending.set_exception(exc)
            raise
        with self._media_lock:
            self.media_status[outcome.status] += 1
        pending.set_result(outcome)
        return outcome

    @property
    def degraded_media(self) -> int:
        """Count media sources that finished in a degraded or failed state."""
        return (
            self.media_status[MediaStatus.DEGRADED]
            + self.media_status[MediaStatus.FAILED]
        )


__all__ = ["BuildContext"]
