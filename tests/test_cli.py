"""Tests for the ``blaze`` command-line entry points."""

from __future__ import annotations

import json
import typing as typ

import pytest
import structlog

from blaze_pages import cli
from blaze_pages.config import LoggingConfig
from blaze_pages.errors import NoSourceDocumentsError

if typ.TYPE_CHECKING:
    from pathlib import Path

    from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def reset_logging() -> typ.Iterator[None]:
    """Drop the CLI's structlog configuration after each test."""
    yield
    structlog.reset_defaults()


def _site(tmp_path: Path, *, log_format: str = "json") -> Path:
    content = tmp_path / "content"
    content.mkdir()
    (content / "index.md").write_text("# Home\n\nHello.\n", encoding="utf-8")
    config = tmp_path / "site.yaml"
    config.write_text(
        f"site:\n  name: CLI Docs\nlogging:\n  format: {log_format}\n",
        encoding="utf-8",
    )
    return config


def test_build_prints_written_paths(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("shutil.which", lambda _name: None)

    cli.build(config=_site(tmp_path))

    out = capsys.readouterr().out.splitlines()
    assert "wrote dist/index.html" in out
    assert "wrote dist/404.html" in out
    assert (tmp_path / "dist" / ".nojekyll").is_file()


def test_build_output_dir_override(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr("shutil.which", lambda _name: None)
    target = tmp_path / "elsewhere"

    cli.build(config=_site(tmp_path), output_dir=target)

    assert (target / "index.html").is_file()
    assert not (tmp_path / "dist").exists()


def test_invalid_config_exits(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "site.yaml"
    config.write_text("logging:\n  level: loud\n", encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=config)

    assert excinfo.value.code == 1
    assert "config_invalid" in capsys.readouterr().err


def test_missing_config_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        cli.build(config=tmp_path / "absent.yaml")


def test_build_failure_is_logged(
    tmp_path: Path, mocker: MockerFixture, capsys: pytest.CaptureFixture[str]
) -> None:
    builder = mocker.patch.object(cli, "SiteBuilder")
    builder.return_value.run.side_effect = NoSourceDocumentsError("nothing to build")

    with pytest.raises(SystemExit) as excinfo:
        cli.build(config=_site(tmp_path))

    assert excinfo.value.code == 1
    event = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert event["event"] == "build_failed"
    assert event["error"] == "nothing to build"
    assert event["level"] == "error"


def test_budgets_pass_after_build(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setattr("shutil.which", lambda _name: None)
    config = _site(tmp_path)
    cli.build(config=config)
    capsys.readouterr()

    cli.budgets(config=config)

    out = capsys.readouterr().out.splitlines()
    assert out[-1] == "All performance budgets passed."
    assert any(line.startswith("OK   Service worker") for line in out)


def test_budgets_fail_on_missing_assets(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    dist = tmp_path / "dist"
    (dist / "assets").mkdir(parents=True)

    with pytest.raises(SystemExit) as excinfo:
        cli.budgets(config=tmp_path / "absent.yaml", dist=dist)

    assert excinfo.value.code == 1
    assert "budget_failed" in capsys.readouterr().err


def test_budgets_without_dist(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        cli.budgets(config=tmp_path / "absent.yaml", dist=tmp_path / "nope")


def test_log_level_override(capsys: pytest.CaptureFixture[str]) -> None:
    cli.configure_logging(LoggingConfig(level="ERROR", format="json"), "debug")
    structlog.get_logger().debug("probe")
    assert json.loads(capsys.readouterr().err)["event"] == "probe"


@pytest.mark.parametrize(
    "text",
    [
        "media:\n  max_video_width: wide\n",
        "media: [320, 640]\n",
        "site: {name: 'unclosed\n",
    ],
)
@pytest.mark.parametrize("command", ["build", "budgets"])
def test_malformed_config_is_logged_not_raised(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], text: str, command: str
) -> None:
    config = tmp_path / "site.yaml"
    config.write_text(text, encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        getattr(cli, command)(config=config)

    assert excinfo.value.code == 1
    assert "config_invalid" in capsys.readouterr().err
