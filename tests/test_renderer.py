"""Tests for markdown rendering and code-block language labels."""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from blaze_pages.generator import HtmlContentRenderer


def _languages(markdown: str) -> list[str]:
    html = HtmlContentRenderer().markdown(markdown)
    soup = BeautifulSoup(html, "html.parser")
    return [str(block["data-language"]) for block in soup.select("div.codehilite")]


def test_tilde_fences_keep_labels_aligned() -> None:
    """A ``~~~`` block takes its own label instead of shifting later ones."""
    markdown = (
        "~~~toml\nname = 'demo'\n~~~\n\n"
        "```python\nprint('hi')\n```\n\n"
        "```\nplain\n```\n"
    )

    assert _languages(markdown) == ["toml", "python", "text"]


def test_backticks_inside_a_tilde_block_do_not_close_it() -> None:
    markdown = "~~~markdown\n```rust\nfn main() {}\n```\n~~~\n\n```bash\nls\n```\n"

    assert _languages(markdown) == ["markdown", "bash"]


@pytest.mark.parametrize(
    ("markdown", "expected"),
    [
        ("  ```python\n  x = 1\n  ```\n", ["python"]),
        ("```rust,no_run\nfn main() {}\n```\n", ["rust"]),
    ],
)
def test_fence_normalization(markdown: str, expected: list[str]) -> None:
    assert _languages(markdown) == expected


def test_blank_input_renders_nothing() -> None:
    assert HtmlContentRenderer().markdown("   \n") == ""
