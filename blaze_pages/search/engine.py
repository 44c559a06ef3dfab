"""Term-scoring search over the emitted index."""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from blaze_pages._constants import (
    SEARCH_BODY_SCORE,
    SEARCH_MIN_QUERY_LENGTH,
    SEARCH_RESULT_LIMIT,
    SEARCH_TITLE_SCORE,
)

from .protocol import SearchResult

if typ.TYPE_CHECKING:
    from .protocol import SearchDocument

NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9]+")


def normalize(text: str) -> str:
    """Lowercase ``text`` and collapse non-alphanumeric runs to single spaces.

    Examples
    --------
    >>> normalize("Reverse-Proxy  Setup!")
    'reverse proxy setup'
    """
    return NON_ALNUM_PATTERN.sub(" ", text.lower()).strip()


@dc.dataclass(frozen=True, slots=True)
class IndexedDocument:
    title: str
    url: str
    snippet: str
    normalized_title: str
    body: str


class SearchEngine:
    """Score documents against whitespace-separated query terms.

    Each term found in the normalized title adds the title score; otherwise a
    term found in the combined title, headings, and text adds the body score.
    Queries shorter than the minimum normalized length return ``None`` so the
    caller can close the results panel instead of showing an empty list.
    """

    def __init__(
        self,
        documents: typ.Iterable[SearchDocument] = (),
        *,
        limit: int = SEARCH_RESULT_LIMIT,
    ) -> None:
        self.limit = limit
        self._documents: list[IndexedDocument] = []
        self.index(documents)

    def index(self, documents: typ.Iterable[SearchDocument]) -> None:
        """Replace the indexed set with ``documents``."""
        self._documents = [
            IndexedDocument(
                title=doc.title,
                url=doc.url,
                snippet=doc.excerpt,
                normalized_title=normalize(doc.title),
                body=normalize(f"{doc.title} {doc.headings} {doc.text}"),
            )
            for doc in documents
        ]

    def __len__(self) -> int:
        return len(self._documents)

    def search(self, query: str) -> list[SearchResult] | None:
        """Return up to ``limit`` ranked results, or ``None`` for short queries."""
        cleaned = normalize(query)
        if len(cleaned) < SEARCH_MIN_QUERY_LENGTH:
            return None
        terms = cleaned.split()
        scored: list[SearchResult] = []
        for doc in self._documents:
            score = 0
            for term in terms:
                if term in doc.normalized_title:
                    score += SEARCH_TITLE_SCORE
                elif term in doc.body:
                    score += SEARCH_BODY_SCORE
            if score > 0:
                scored.append(
                    SearchResult(
                        title=doc.title, url=doc.url, snippet=doc.snippet, score=score
                    )
                )
        scored.sort(key=lambda result: (-result.score, result.title))
        return scored[: self.limit]


__all__ = ["IndexedDocument", "SearchEngine", "normalize"]
