"""Thin wrapper around the optional ``ffmpeg`` binary.

Availability is probed once per build and cached. Every invocation captures
its output; failures are reported as :class:`ProcessResult` values with a
truncated diagnostic instead of raising, so a missing or broken transcoder
only ever degrades the asset being processed.
"""

from __future__ import annotations

import dataclasses as dc
import shutil
import subprocess
import threading
import typing as typ

import structlog

if typ.TYPE_CHECKING:
    from pathlib import Path

log = structlog.get_logger()

DIAGNOSTIC_LIMIT = 500

# Flags shared by every invocation so unchanged inputs hash identically.
DETERMINISTIC_FLAGS: tuple[str, ...] = (
    "-map_metadata",
    "-1",
    "-fflags",
    "+bitexact",
    "-flags:v",
    "+bitexact",
    "-threads",
    "1",
)


@dc.dataclass(frozen=True, slots=True)
class ProcessResult:
    """Outcome of one transcoder invocation."""

    ok: bool
    diagnostic: str = ""


def _truncate(text: str, limit: int = DIAGNOSTIC_LIMIT) -> str:
    text = text.strip()
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]


class FfmpegRunner:
    """Probe for and invoke ``ffmpeg`` with build-scoped caching."""

    def __init__(self, executable: str = "ffmpeg", *, timeout: float = 300.0) -> None:
        self.executable = executable
        self.timeout = timeout
        self._available: bool | None = None
        self._results: dict[tuple[str, ...], ProcessResult] = {}
        self._lock = threading.Lock()

    def available(self) -> bool:
        """Return True when the binary exists and answers ``-version``."""
        with self._lock:
            if self._available is None:
                self._available = self._probe()
                if not self._available:
                    log.warning(
                        "transcoder_unavailable",
                        executable=self.executable,
                        detail="video variants disabled for this build",
                    )
            return self._available

    def _probe(self) -> bool:
        resolved = shutil.which(self.executable)
        if not resolved:
            return False
        try:
            subprocess.run(  # noqa: S603
                [resolved, "-hide_banner", "-version"],
                check=True,
                capture_output=True,
                text=True,
                timeout=30,
            )
        except (OSError, subprocess.SubprocessError):
            return False
        self.executable = resolved
        return True

    def run(self, args: typ.Sequence[str]) -> ProcessResult:
        """Invoke the transcoder with ``args`` and capture the outcome."""
        key = tuple(args)
        with self._lock:
            cached = self._results.get(key)
        if cached is not None:
            return cached
        command = [self.executable, "-hide_banner", "-loglevel", "error", "-y", *args]
        try:
            subprocess.run(  # noqa: S603
                command,
                check=True,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
            result = ProcessResult(ok=True)
        except subprocess.CalledProcessError as exc:
            result = ProcessResult(
                ok=False, diagnostic=_truncate(exc.stderr or f"exit {exc.returncode}")
            )
        except subprocess.TimeoutExpired:
            result = ProcessResult(
                ok=False, diagnostic=f"timed out after {self.timeout:g}s"
            )
        except OSError as exc:
            result = ProcessResult(ok=False, diagnostic=_truncate(str(exc)))
        with self._lock:
            self._results[key] = result
        return result


def even_width_expression(max_width: int) -> str:
    """Return a scale expression clamping the input width to an even value."""
    return f"'trunc(min(iw,{max_width})/2)*2'"


def video_args(
    source: Path, target: Path, *, width: int | str, fps: int, codec: str
) -> list[str]:
    """Return the argument vector for a muted, fixed-rate, scaled encode.

    ``width`` is either a concrete even pixel width or a scale expression
    from :func:`even_width_expression`.
    """
    scale = f"scale={width}:-2:flags=lanczos"
    common = ["-i", str(source), "-an", "-r", str(fps), "-vf", scale]
    if codec == "vp9":
        codec_args = ["-c:v", "libvpx-vp9", "-b:v", "0", "-crf", "36", "-row-mt", "0"]
    elif codec == "h264":
        codec_args = [
            "-c:v",
            "libx264",
            "-crf",
            "26",
            "-preset",
            "slow",
            "-pix_fmt",
            "yuv420p",
            "-movflags",
            "+faststart",
        ]
    else:
        msg = f"Unsupported codec target '{codec}'."
        raise ValueError(msg)
    return [*common, *codec_args, *DETERMINISTIC_FLAGS, str(target)]


def poster_args(source: Path, target: Path, *, width: int | str) -> list[str]:
    """Return the argument vector extracting one scaled frame as JPEG."""
    return [
        "-i",
        str(source),
        "-frames:v",
        "1",
        "-vf",
        f"scale={width}:-2:flags=lanczos",
        "-q:v",
        "3",
        *DETERMINISTIC_FLAGS,
        str(target),
    ]


__all__ = [
    "DETERMINISTIC_FLAGS",
    "FfmpegRunner",
    "ProcessResult",
    "even_width_expression",
    "poster_args",
    "video_args",
]
