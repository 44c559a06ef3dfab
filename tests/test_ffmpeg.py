"""Tests for the ffmpeg wrapper and its argument builders."""

from __future__ import annotations

import subprocess
import typing as typ
from pathlib import Path

import pytest

from blaze_pages.media import FfmpegRunner
from blaze_pages.media.ffmpeg import (
    DETERMINISTIC_FLAGS,
    even_width_expression,
    poster_args,
    video_args,
)

if typ.TYPE_CHECKING:
    from pytest_mock import MockerFixture


def test_video_args_are_muted_and_deterministic() -> None:
    args = video_args(Path("in.gif"), Path("out.webm"), width=640, fps=24, codec="vp9")

    assert args[:2] == ["-i", "in.gif"]
    assert "-an" in args
    assert args[args.index("-vf") + 1] == "scale=640:-2:flags=lanczos"
    assert args[args.index("-c:v") + 1] == "libvpx-vp9"
    assert tuple(args[-len(DETERMINISTIC_FLAGS) - 1 : -1]) == DETERMINISTIC_FLAGS
    assert args[-1] == "out.webm"


def test_h264_args_use_faststart() -> None:
    width = even_width_expression(1280)
    args = video_args(Path("in.mov"), Path("out.mp4"), width=width, fps=24, codec="h264")

    assert width == "'trunc(min(iw,1280)/2)*2'"
    assert args[args.index("-pix_fmt") + 1] == "yuv420p"
    assert "+faststart" in args


def test_unknown_codec_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unsupported codec"):
        video_args(Path("a"), Path("b"), width=2, fps=1, codec="theora")


def test_poster_args_take_one_frame() -> None:
    args = poster_args(Path("in.mp4"), Path("poster.jpg"), width=320)
    assert args[args.index("-frames:v") + 1] == "1"
    assert args[-1] == "poster.jpg"


def test_missing_binary_is_unavailable(mocker: MockerFixture) -> None:
    which = mocker.patch("blaze_pages.media.ffmpeg.shutil.which", return_value=None)
    runner = FfmpegRunner("ffmpeg-does-not-exist")

    assert not runner.available()
    assert not runner.available()
    which.assert_called_once_with("ffmpeg-does-not-exist")


def test_failed_run_reports_truncated_diagnostic(mocker: MockerFixture) -> None:
    error = subprocess.CalledProcessError(1, ["ffmpeg"], stderr="x" * 2_000)
    run = mocker.patch("blaze_pages.media.ffmpeg.subprocess.run", side_effect=error)
    runner = FfmpegRunner()

    first = runner.run(["-i", "in.gif", "out.webm"])
    second = runner.run(["-i", "in.gif", "out.webm"])

    assert not first.ok
    assert first.diagnostic.startswith("...")
    assert len(first.diagnostic) == 503
    assert second is first
    run.assert_called_once()


def test_timeout_is_reported(mocker: MockerFixture) -> None:
    mocker.patch(
        "blaze_pages.media.ffmpeg.subprocess.run",
        side_effect=subprocess.TimeoutExpired(["ffmpeg"], 5),
    )
    result = FfmpegRunner(timeout=5).run(["-i", "slow.mov", "out.mp4"])
    assert result.diagnostic == "timed out after 5s"
