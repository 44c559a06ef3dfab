"""Shared fixtures for blaze_pages tests.

Media fixtures are generated on the fly with Pillow so no binary files live
in the repository. ``StubRunner`` stands in for ``FfmpegRunner``: it records
every argument vector and writes a small payload to the requested target, so
video paths can be exercised without the real binary. ``ManualWorker``,
``RecordingView``, and ``FakeNetwork`` play the browser side of the search
and offline caching protocols.
"""

from __future__ import annotations

import asyncio
import io
import typing as typ
from pathlib import Path

import pytest
from PIL import Image

from blaze_pages.config import MediaConfig, SiteConfig
from blaze_pages.context import BuildContext
from blaze_pages.hashing import HashedAssetStore
from blaze_pages.media import ProcessResult
from blaze_pages.runtime import NetworkError, Response
from blaze_pages.search import Init, Query, Ready

if typ.TYPE_CHECKING:
    from blaze_pages.runtime import Request
    from blaze_pages.search import Message, SearchResult


class StubRunner:
    """In-memory replacement for ``FfmpegRunner``."""

    def __init__(self, *, available: bool = True, fail_on: str | None = None) -> None:
        self._available = available
        self.fail_on = fail_on
        self.calls: list[list[str]] = []

    def available(self) -> bool:
        return self._available

    def run(self, args: typ.Sequence[str]) -> ProcessResult:
        self.calls.append(list(args))
        if self.fail_on is not None and self.fail_on in args:
            return ProcessResult(ok=False, diagnostic=f"{self.fail_on} failed")
        target = Path(args[-1])
        if target.suffix == ".jpg":
            buffer = io.BytesIO()
            Image.new("RGB", (320, 180), "navy").save(buffer, format="JPEG")
            target.write_bytes(buffer.getvalue())
        else:
            target.write_bytes(f"{target.suffix}:{args[1]}".encode())
        return ProcessResult(ok=True)


def write_png(
    path: Path, size: tuple[int, int] = (800, 600), *, alpha: bool = False
) -> Path:
    """Write a solid-colour PNG, optionally with a transparent channel."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if alpha:
        image = Image.new("RGBA", size, (200, 40, 40, 128))
    else:
        image = Image.new("RGB", size, (200, 40, 40))
    image.save(path, format="PNG")
    return path


def gif_bytes(frames: int = 3, size: tuple[int, int] = (120, 90)) -> bytes:
    """Return an encoded GIF with ``frames`` distinct frames."""
    palette = ("red", "green", "blue", "yellow", "purple", "orange")
    images = [
        Image.new("RGB", size, palette[index % len(palette)])
        for index in range(frames)
    ]
    buffer = io.BytesIO()
    if frames == 1:
        images[0].save(buffer, format="GIF")
    else:
        images[0].save(
            buffer,
            format="GIF",
            save_all=True,
            append_images=images[1:],
            duration=100,
            loop=0,
        )
    return buffer.getvalue()


@pytest.fixture
def stub_runner() -> StubRunner:
    return StubRunner()


@pytest.fixture
def missing_runner() -> StubRunner:
    return StubRunner(available=False)


@pytest.fixture
def media_config() -> MediaConfig:
    return MediaConfig()


@pytest.fixture
def asset_store(tmp_path: Path) -> HashedAssetStore:
    return HashedAssetStore(tmp_path / "dist" / "assets")


@pytest.fixture
def content_dir(tmp_path: Path) -> Path:
    path = tmp_path / "content"
    path.mkdir()
    return path


@pytest.fixture
def site_config(tmp_path: Path, content_dir: Path) -> SiteConfig:
    return SiteConfig(content_dir=content_dir, output_dir=tmp_path / "dist")


@pytest.fixture
def build_context(site_config: SiteConfig, missing_runner: StubRunner) -> BuildContext:
    """Return a build context whose transcoder has no ffmpeg."""
    return BuildContext(site_config, runner=missing_runner)  # type: ignore[arg-type]


@pytest.fixture
def png_factory() -> typ.Callable[..., Path]:
    """Return the PNG writer so tests can place images beside their markdown."""
    return write_png


@pytest.fixture
def gif_factory() -> typ.Callable[..., bytes]:
    return gif_bytes


@pytest.fixture
def runner_factory() -> typ.Callable[..., StubRunner]:
    return StubRunner


class RecordingView:
    """Search results panel that records what it was asked to show."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def show_results(self, results: list[SearchResult]) -> None:
        self.events.append(("results", [result.title for result in results]))

    def show_message(self, message: str) -> None:
        self.events.append(("message", message))

    def close(self) -> None:
        self.events.append(("close", None))


class ManualWorker:
    """Search worker stand-in whose replies are delivered by the test."""

    def __init__(self, *, auto_ready: bool = True) -> None:
        self.auto_ready = auto_ready
        self.posted: list[Message] = []
        self.listeners: list[typ.Callable[[Message], None]] = []

    def add_listener(self, listener: typ.Callable[[Message], None]) -> None:
        self.listeners.append(listener)

    def post(self, message: Message) -> None:
        self.posted.append(message)
        if self.auto_ready and isinstance(message, Init):
            asyncio.get_running_loop().call_soon(self.reply, Ready())

    def reply(self, message: Message) -> None:
        for listener in self.listeners:
            listener(message)

    def queries(self) -> list[Query]:
        return [message for message in self.posted if isinstance(message, Query)]


class FakeNetwork:
    """Async fetch stand-in that can go offline or fail individual URLs."""

    def __init__(self) -> None:
        self.offline = False
        self.status: dict[str, int] = {}
        self.version = "v1"
        self.calls: list[str] = []

    async def __call__(self, request: Request) -> Response:
        self.calls.append(request.url)
        if self.offline:
            raise NetworkError("offline")
        status = self.status.get(request.url, 200)
        return Response(request.url, status, f"{self.version}:{request.url}".encode())


@pytest.fixture
def search_view() -> RecordingView:
    return RecordingView()


@pytest.fixture
def worker_factory() -> typ.Callable[..., ManualWorker]:
    return ManualWorker


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()
