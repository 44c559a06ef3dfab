r"""Footnote extraction and re-insertion around markdown rendering.

Footnotes are handled in two halves. :meth:`FootnoteCollector.extract` runs on
the raw markdown before rendering: it removes every ``[^key]: text``
definition, then replaces each reference to a defined key with a placeholder
token that survives markdown conversion untouched. After rendering,
:meth:`FootnoteCollector.render` swaps the tokens for numbered markers and
appends a footnotes section listing each realized definition with one
back-link per reference site.

Example
-------
>>> collector = FootnoteCollector()
>>> body = collector.extract("Claim[^a].\n\n[^a]: Source.")
>>> body.strip()
'Claim⟦fn:1:1⟧.'
>>> [note.key for note in collector.footnotes]
['a']
"""

from __future__ import annotations

import re
import typing as typ

from .models import Footnote
from .text import slugify, unique_slug

FENCE_OPEN_PATTERN = re.compile(r"^ {0,3}(`{3,}|~{3,})")
DEFINITION_PATTERN = re.compile(r"^ {0,3}\[\^([^\]\s]+)\]:[ \t]?(.*)$")
CONTINUATION_PATTERN = re.compile(r"^(?: {2,}|\t)(.*)$")
REFERENCE_PATTERN = re.compile(r"\[\^([^\]\s]+)\](?!:)")
INLINE_CODE_PATTERN = re.compile(r"(`+).+?\1")
TOKEN_PATTERN = re.compile(r"⟦fn:(\d+):(\d+)⟧")


def _placeholder(ordinal: int, index: int) -> str:
    return f"⟦fn:{ordinal}:{index}⟧"


def _closes_fence(line: str, fence: str) -> bool:
    marker = re.escape(fence[0])
    return re.match(rf"^ {{0,3}}{marker}{{{len(fence)},}}\s*$", line) is not None


class FootnoteCollector:
    """Collect footnotes for one document and render them back into HTML."""

    def __init__(self) -> None:
        self.definitions: dict[str, str] = {}
        self._notes: dict[str, Footnote] = {}

    @property
    def footnotes(self) -> list[Footnote]:
        """Return referenced footnotes ordered by display ordinal."""
        return sorted(self._notes.values(), key=lambda note: note.ordinal)

    def extract(self, markdown: str) -> str:
        """Remove definitions and tokenize references outside fenced code.

        Parameters
        ----------
        markdown : str
            Raw markdown body.

        Returns
        -------
        str
            Markdown without footnote definitions, with every reference to a
            defined key replaced by a placeholder token. References to
            unknown keys are left as literal text.
        """
        kept = self._strip_definitions(markdown.splitlines())
        output: list[str] = []
        for line, in_fence in kept:
            output.append(line if in_fence else self._tokenize_line(line))
        return "\n".join(output)

    def _strip_definitions(self, lines: list[str]) -> list[tuple[str, bool]]:
        kept: list[tuple[str, bool]] = []
        fence: str | None = None
        index = 0
        while index < len(lines):
            line = lines[index]
            if fence is not None:
                kept.append((line, True))
                if _closes_fence(line, fence):
                    fence = None
                index += 1
                continue
            opening = FENCE_OPEN_PATTERN.match(line)
            if opening:
                fence = opening.group(1)
                kept.append((line, True))
                index += 1
                continue
            definition = DEFINITION_PATTERN.match(line)
            if definition is None:
                kept.append((line, False))
                index += 1
                continue
            key, first_line = definition.groups()
            content, index = self._read_definition(lines, index + 1, first_line)
            self.definitions.setdefault(key, content)
        return kept

    @staticmethod
    def _read_definition(
        lines: list[str], index: int, first_line: str
    ) -> tuple[str, int]:
        """Consume indented continuation lines, tolerating inner blank lines."""
        content = [first_line]
        while index < len(lines):
            line = lines[index]
            continuation = CONTINUATION_PATTERN.match(line)
            if continuation and line.strip():
                content.append(continuation.group(1))
                index += 1
                continue
            if line.strip():
                break
            lookahead = index
            while lookahead < len(lines) and not lines[lookahead].strip():
                lookahead += 1
            if lookahead < len(lines) and CONTINUATION_PATTERN.match(lines[lookahead]):
                content.extend("" for _ in range(lookahead - index))
                index = lookahead
                continue
            break
        return "\n".join(content).strip(), index

    def _tokenize_line(self, line: str) -> str:
        """Replace references outside inline code spans with placeholders."""
        pieces: list[str] = []
        cursor = 0
        for code in INLINE_CODE_PATTERN.finditer(line):
            pieces.append(REFERENCE_PATTERN.sub(self._replace, line[cursor : code.start()]))
            pieces.append(code.group(0))
            cursor = code.end()
        pieces.append(REFERENCE_PATTERN.sub(self._replace, line[cursor:]))
        return "".join(pieces)

    def _replace(self, match: re.Match[str]) -> str:
        key = match.group(1)
        if key not in self.definitions:
            return match.group(0)
        note = self._notes.get(key)
        if note is None:
            note = Footnote(
                key=key, ordinal=len(self._notes) + 1, content=self.definitions[key]
            )
            self._notes[key] = note
        index = len(note.references) + 1
        note.references.append(index)
        return _placeholder(note.ordinal, index)

    def render(self, html: str, render_markdown: typ.Callable[[str], str]) -> str:
        """Replace placeholders with markers and append the footnotes section.

        Parameters
        ----------
        html : str
            Rendered document HTML containing placeholder tokens.
        render_markdown : Callable[[str], str]
            Converts a definition's markdown into HTML.

        Returns
        -------
        str
            HTML with numbered reference markers and, when at least one
            footnote was realized, a trailing ``section.footnotes``.
        """
        by_ordinal = {note.ordinal: note for note in self._notes.values()}
        anchors = self._assign_anchors()
        realized: dict[int, list[int]] = {}

        def _marker(match: re.Match[str]) -> str:
            ordinal, index = int(match.group(1)), int(match.group(2))
            if ordinal not in by_ordinal:
                return match.group(0)
            realized.setdefault(ordinal, []).append(index)
            anchor = anchors[ordinal]
            return (
                f'<sup class="footnote-ref" id="{_reference_id(anchor, index)}">'
                f'<a href="#fn-{anchor}">{ordinal}</a></sup>'
            )

        html = TOKEN_PATTERN.sub(_marker, html)
        if not realized:
            return html

        items: list[str] = []
        for ordinal in sorted(realized):
            note = by_ordinal[ordinal]
            anchor = anchors[ordinal]
            note.content = render_markdown(note.content)
            backrefs = " ".join(
                _backref(anchor, index) for index in sorted(realized[ordinal])
            )
            items.append(
                f'<li id="fn-{anchor}" value="{ordinal}">'
                f"{_append_inline(note.content, backrefs)}</li>"
            )
        section = (
            '<section class="footnotes" role="doc-endnotes">\n<hr>\n<ol>\n'
            + "\n".join(items)
            + "\n</ol>\n</section>"
        )
        return f"{html.rstrip()}\n{section}\n"

    def _assign_anchors(self) -> dict[int, str]:
        used: set[str] = set()
        anchors: dict[int, str] = {}
        for note in self.footnotes:
            anchors[note.ordinal] = unique_slug(
                slugify(note.key, fallback=str(note.ordinal)), used
            )
        return anchors


def _reference_id(anchor: str, index: int) -> str:
    return f"fnref-{anchor}" if index == 1 else f"fnref-{anchor}-{index}"


def _backref(anchor: str, index: int) -> str:
    label = f"Back to reference {index}"
    glyph = "↩" if index == 1 else f"↩<sup>{index}</sup>"
    return (
        f'<a href="#{_reference_id(anchor, index)}" class="footnote-backref" '
        f'aria-label="{label}">{glyph}</a>'
    )


def _append_inline(content: str, suffix: str) -> str:
    """Place ``suffix`` inside the final paragraph of ``content`` when present."""
    stripped = content.rstrip()
    if stripped.endswith("</p>"):
        return f"{stripped[:-4]} {suffix}</p>"
    return f"{stripped} {suffix}"


__all__ = ["TOKEN_PATTERN", "FootnoteCollector"]
