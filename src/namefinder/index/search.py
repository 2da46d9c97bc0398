"""Wildcard and semantic search over the index."""

from __future__ import annotations

import logging
import math
from typing import Iterator, List

from namefinder.embedding.lookup import EmbeddingLookup, resolve_name
from namefinder.embedding.similarity import cosine_similarity
from namefinder.index.storage import SQLiteIndexStore
from namefinder.models import IndexedEntry, SearchResult
from namefinder.utils.glob import compile_wildcard

LOGGER = logging.getLogger(__name__)

DEFAULT_TOP_K = 5


class WildcardSearcher:
    """Filters indexed names through a compiled wildcard pattern."""

    def __init__(self, store: SQLiteIndexStore) -> None:
        self.store = store

    def search(self, pattern: str) -> Iterator[IndexedEntry]:
        """Yield entries whose name matches ``pattern``.

        The pattern is compiled before the store is read, so a PatternError
        is raised by this call rather than on iteration.
        """
        matcher = compile_wildcard(pattern)
        return (entry for entry in self.store.all_entries() if matcher.matches(entry.name))


class Searcher:
    """Ranks indexed file names by embedding similarity to a query token."""

    def __init__(self, lookup: EmbeddingLookup, store: SQLiteIndexStore) -> None:
        self.lookup = lookup
        self.store = store

    def rank(self, query: str, *, top_k: int = DEFAULT_TOP_K) -> List[SearchResult]:
        """Return up to ``top_k`` files most similar to ``query``, best first.

        Entries without a vector, or whose similarity is NaN, are left out.
        Equal scores keep index order.
        """
        if top_k <= 0:
            return []

        query_vector = self.lookup.lookup(query)
        if query_vector is None:
            LOGGER.warning("No embedding for query %r", query)
            return []

        candidates: List[SearchResult] = []
        missing = 0
        for entry in self.store.non_directory_entries():
            vector = resolve_name(self.lookup, entry.name)
            if vector is None:
                missing += 1
                continue
            similarity = cosine_similarity(vector, query_vector)
            if math.isnan(similarity):
                LOGGER.debug("Incomparable similarity for %s", entry.path)
                continue
            candidates.append(
                SearchResult(id=entry.id, name=entry.name, path=entry.path, similarity=similarity)
            )

        if missing:
            LOGGER.debug("%d entries have no embedding and were not ranked", missing)

        candidates.sort(key=lambda candidate: candidate.similarity, reverse=True)
        return candidates[:top_k]
