"""Documentation search: exact, fuzzy and semantic strategies plus hybrid merging.

Scores are plain floats in roughly [0, 1] per strategy:

- exact: 0.9 context match, 0.8 heading match, 0.6 content match
- fuzzy: normalized Levenshtein similarity, kept above 0.6
- semantic: cosine similarity, kept above 0.3

The default "semantic" mode is a hybrid that runs exact and semantic
search and sums the scores of chunks found by both.
"""

import logging
from collections.abc import Iterator

from wcmatch import glob

from docs_mcp.embeddings import Embedder, cosine_similarity
from docs_mcp.indexer.context import generate_searchable_text
from docs_mcp.indexer.models import (
    SEARCH_MODES,
    DocChunk,
    DocIndex,
    SearchFilters,
    SearchResult,
)

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10

CONTEXT_MATCH_SCORE = 0.9
HEADING_MATCH_SCORE = 0.8
CONTENT_MATCH_SCORE = 0.6

FUZZY_THRESHOLD = 0.6
SEMANTIC_THRESHOLD = 0.3

# Patterns match the whole relative path; "**" spans directories
GLOB_FLAGS = glob.GLOBSTAR | glob.BRACE


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between two strings (insert, delete, substitute)."""
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Normalized similarity: 1 - distance / longest length."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein_distance(a, b) / longest


def matches_filters(chunk: DocChunk, filters: SearchFilters | None) -> bool:
    """Check file pattern and category filters for a chunk."""
    if filters is None:
        return True

    if filters.file_pattern:
        if not glob.globmatch(chunk.file, filters.file_pattern, flags=GLOB_FLAGS):
            return False

    if filters.category:
        context = chunk.context.lower()
        if not any(category.lower() in context for category in filters.category):
            return False

    return True


class SearchEngine:
    """Runs searches against a DocIndex."""

    def __init__(self, embedder: Embedder | None = None):
        """
        Args:
            embedder: Provider used to vectorize queries; None disables semantic search
        """
        self.embedder = embedder

    def search(
        self,
        index: DocIndex,
        query: str,
        mode: str = "semantic",
        filters: SearchFilters | None = None,
        limit: int = DEFAULT_LIMIT,
    ) -> list[SearchResult]:
        """
        Search the index and return results sorted by descending score.

        Args:
            index: Index to search
            query: Free-text query
            mode: "exact", "fuzzy" or "semantic" (hybrid, the default)
            filters: Optional file pattern / category filters
            limit: Maximum number of results

        Raises:
            ValueError: If mode is not a known search mode
        """
        if mode not in SEARCH_MODES:
            raise ValueError(f"Unknown search mode '{mode}', expected one of {SEARCH_MODES}")

        if mode == "exact":
            results = self.keyword_search(index, query, filters)
        elif mode == "fuzzy":
            results = self.fuzzy_search(index, query, filters)
        else:
            results = self.hybrid_search(index, query, filters)

        results.sort(key=lambda r: r.score, reverse=True)
        return results[:limit]

    def _filtered_chunks(
        self, index: DocIndex, filters: SearchFilters | None
    ) -> Iterator[DocChunk]:
        for chunk in index.iter_chunks():
            if matches_filters(chunk, filters):
                yield chunk

    def keyword_search(
        self, index: DocIndex, query: str, filters: SearchFilters | None = None
    ) -> list[SearchResult]:
        """Case-insensitive substring search, scored by the best matching field."""
        query_lower = query.lower()
        results: list[SearchResult] = []

        for chunk in self._filtered_chunks(index, filters):
            if query_lower in chunk.context.lower():
                results.append(SearchResult(chunk, CONTEXT_MATCH_SCORE, "context match"))
            elif any(query_lower in heading.lower() for heading in chunk.hierarchy):
                results.append(SearchResult(chunk, HEADING_MATCH_SCORE, "heading match"))
            elif query_lower in generate_searchable_text(chunk):
                results.append(SearchResult(chunk, CONTENT_MATCH_SCORE, "content match"))

        return results

    def fuzzy_search(
        self, index: DocIndex, query: str, filters: SearchFilters | None = None
    ) -> list[SearchResult]:
        """Typo-tolerant search against headings and context words."""
        query_lower = query.lower()
        results: list[SearchResult] = []

        for chunk in self._filtered_chunks(index, filters):
            candidates = [h.lower() for h in chunk.hierarchy] + chunk.context.lower().split()
            best = max((similarity(query_lower, c) for c in candidates), default=0.0)
            if best > FUZZY_THRESHOLD:
                results.append(SearchResult(chunk, best, "fuzzy match"))

        return results

    def semantic_search(
        self, index: DocIndex, query: str, filters: SearchFilters | None = None
    ) -> list[SearchResult]:
        """Cosine similarity between the query vector and stored chunk embeddings."""
        if self.embedder is None:
            return []
        query_vector = self.embedder.embed(query)
        if query_vector is None or len(query_vector) == 0:
            logger.debug("No query embedding available, skipping semantic search")
            return []

        results: list[SearchResult] = []
        for chunk in self._filtered_chunks(index, filters):
            embedding = index.embeddings.get(chunk.id)
            if embedding is None:
                continue
            score = cosine_similarity(query_vector, embedding)
            if score > SEMANTIC_THRESHOLD:
                results.append(SearchResult(chunk, score, "semantic similarity"))

        return results

    def hybrid_search(
        self, index: DocIndex, query: str, filters: SearchFilters | None = None
    ) -> list[SearchResult]:
        """Merge keyword and semantic results, summing scores of chunks found by both."""
        merged: dict[str, SearchResult] = {
            result.chunk.id: result for result in self.keyword_search(index, query, filters)
        }

        for result in self.semantic_search(index, query, filters):
            existing = merged.get(result.chunk.id)
            if existing is None:
                merged[result.chunk.id] = result
            else:
                existing.score += result.score
                existing.match_reason = f"{existing.match_reason} + {result.match_reason}"

        return list(merged.values())
