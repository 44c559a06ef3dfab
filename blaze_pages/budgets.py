"""Check an emitted site against its performance budgets."""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from ._constants import ASSETS_DIRNAME
from .media import is_animated_gif

if typ.TYPE_CHECKING:
    from pathlib import Path

MAX_TOTAL_JS_BYTES = 48_000
MAX_HTML_BYTES = 70_000
MAX_ANIMATED_GIF_BYTES = 500_000


@dc.dataclass(frozen=True, slots=True)
class Budget:
    """A size limit for the single file matching ``pattern``.

    ``root`` budgets match files at the top of the dist directory instead of
    inside ``assets/``.
    """

    label: str
    pattern: re.Pattern[str]
    max_bytes: int
    root: bool = False


DEFAULT_BUDGETS: tuple[Budget, ...] = (
    Budget("Main CSS", re.compile(r"^app\.[a-f0-9]{10}\.css$"), 20_000),
    Budget("Main JS", re.compile(r"^app\.[a-f0-9]{10}\.js$"), 18_000),
    Budget("Search worker", re.compile(r"^search-worker\.[a-f0-9]{10}\.js$"), 12_000),
    Budget("Search index", re.compile(r"^search-index\.[a-f0-9]{10}\.json$"), 120_000),
    Budget("Service worker", re.compile(r"^sw\.[a-f0-9]{10}\.js$"), 14_000, root=True),
)


@dc.dataclass(slots=True)
class BudgetReport:
    """Per-budget status lines plus every failure found."""

    lines: list[str] = dc.field(default_factory=list)
    failures: list[str] = dc.field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def add(self, label: str, size: int, max_bytes: int) -> None:
        status = "OK" if size <= max_bytes else "FAIL"
        self.lines.append(f"{status:<4} {label:<14} {size:>7} / {max_bytes}")
        if size > max_bytes:
            self.failures.append(f"{label}: {size} > {max_bytes} bytes")


def _files(directory: Path) -> list[Path]:
    return sorted(path for path in directory.iterdir() if path.is_file())


def check_budgets(
    dist_dir: Path, budgets: typ.Sequence[Budget] = DEFAULT_BUDGETS
) -> BudgetReport:
    """Measure ``dist_dir`` against ``budgets`` and the site-wide limits.

    Parameters
    ----------
    dist_dir : Path
        Root of an emitted site.
    budgets : Sequence[Budget], optional
        Single-file budgets; defaults to :data:`DEFAULT_BUDGETS`.

    Returns
    -------
    BudgetReport
        One line per budget plus the total-JS line, and a failure for every
        missing file, exceeded budget, oversized page, or large animated GIF.

    Raises
    ------
    FileNotFoundError
        If ``dist_dir`` or its ``assets`` directory is missing.
    """
    assets_dir = dist_dir / ASSETS_DIRNAME
    for required in (dist_dir, assets_dir):
        if not required.is_dir():
            msg = f"{required} directory not found. Run `blaze build` first."
            raise FileNotFoundError(msg)

    asset_files = _files(assets_dir)
    root_files = _files(dist_dir)
    report = BudgetReport()

    for budget in budgets:
        candidates = root_files if budget.root else asset_files
        matched = next(
            (path for path in candidates if budget.pattern.match(path.name)), None
        )
        if matched is None:
            report.failures.append(f"{budget.label}: file not found")
            continue
        report.add(budget.label, matched.stat().st_size, budget.max_bytes)

    total_js = sum(
        path.stat().st_size
        for path in (*asset_files, *root_files)
        if path.suffix == ".js"
    )
    report.add("Total JS", total_js, MAX_TOTAL_JS_BYTES)

    for page in sorted(dist_dir.rglob("*.html")):
        size = page.stat().st_size
        if size > MAX_HTML_BYTES:
            relative = page.relative_to(dist_dir).as_posix()
            report.failures.append(f"{relative}: {size} > {MAX_HTML_BYTES} bytes")

    for gif in sorted(dist_dir.rglob("*.gif")):
        size = gif.stat().st_size
        if size > MAX_ANIMATED_GIF_BYTES and is_animated_gif(gif.read_bytes()):
            relative = gif.relative_to(dist_dir).as_posix()
            report.failures.append(
                f"{relative}: animated GIF {size} > {MAX_ANIMATED_GIF_BYTES} bytes;"
                " ship it as video"
            )
    return report


__all__ = [
    "DEFAULT_BUDGETS",
    "MAX_ANIMATED_GIF_BYTES",
    "MAX_HTML_BYTES",
    "MAX_TOTAL_JS_BYTES",
    "Budget",
    "BudgetReport",
    "check_budgets",
]
