"""
Hybrid glossary search.

Combines exact term matching with embedding similarity. Exact matching
always runs first and its results never depend on the semantic branch;
any failure of the embedding provider or the vector index degrades the
search to exact-only results.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from term_cluster_ai.glossary.matcher import TermMatcher
from term_cluster_ai.glossary.models import GlossaryMatch, MatchMethod
from term_cluster_ai.scope import SearchScope, entry_in_scope

if TYPE_CHECKING:
    from term_cluster_ai.database import Database, GlossaryEntry
    from term_cluster_ai.embeddings.base import EmbeddingProvider
    from term_cluster_ai.vector_index import VectorIndex

DEFAULT_MIN_SIMILARITY = 0.75
SEMANTIC_CANDIDATE_LIMIT = 10

# Semantic-only matches below this are dropped by find_relevant
RELEVANCE_THRESHOLD = 0.8


class HybridGlossaryMatcher:
    """
    Find glossary entries applicable to a source text.

    Example:
        matcher = HybridGlossaryMatcher(db, embedder, DuckDBVectorIndex(db))
        matches = await matcher.search(
            "Our cloud server is down", SearchScope(project_id="P1")
        )
    """

    def __init__(
        self,
        db: Database,
        embedder: EmbeddingProvider | None = None,
        index: VectorIndex | None = None,
        *,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        candidate_limit: int = SEMANTIC_CANDIDATE_LIMIT,
        semantic_timeout: float | None = None,
    ):
        """
        Initialize the matcher.

        Args:
            db: Database holding the glossary entries.
            embedder: Embedding provider, or None to run exact matching only.
            index: Vector index used for semantic candidates.
            min_similarity: Default similarity floor for semantic candidates.
            candidate_limit: Maximum semantic candidates per search.
            semantic_timeout: Seconds allowed for the semantic branch.
        """
        self.db = db
        self.embedder = embedder
        self.index = index
        self.min_similarity = min_similarity
        self.candidate_limit = candidate_limit
        self.semantic_timeout = semantic_timeout
        self.term_matcher = TermMatcher()

    @property
    def semantic_enabled(self) -> bool:
        return self.embedder is not None and self.index is not None

    async def search(
        self,
        source_text: str,
        scope: SearchScope | None = None,
        *,
        min_similarity: float | None = None,
        use_semantic_search: bool = True,
    ) -> list[GlossaryMatch]:
        """
        Search the glossary for terms applicable to a text.

        Args:
            source_text: Text to analyse.
            scope: Project and locale restriction.
            min_similarity: Similarity floor for semantic candidates.
            use_semantic_search: Whether to query embeddings at all.

        Returns:
            Exact and hybrid matches first, then semantic matches, each tier
            by descending similarity. At most one match per entry.
        """
        if not source_text or not source_text.strip():
            return []

        candidates = self.db.get_glossary_entries(scope)
        exact = self.term_matcher.find_matches(source_text, candidates)

        semantic: list[GlossaryMatch] = []
        if use_semantic_search and self.semantic_enabled:
            floor = self.min_similarity if min_similarity is None else min_similarity
            known = {entry.id: entry for entry in candidates}
            semantic = await self._semantic_matches(source_text, scope, floor, known)

        return _rank(_merge(exact, semantic))

    async def find_relevant(
        self, source_text: str, scope: SearchScope | None = None
    ) -> list[GlossaryMatch]:
        """
        Matches suitable for enforcement during translation.

        Semantic search is always on; semantic-only matches must reach
        RELEVANCE_THRESHOLD, exact and hybrid matches are always kept.
        """
        matches = await self.search(source_text, scope, use_semantic_search=True)
        return [m for m in matches if not m.is_semantic_only or m.similarity >= RELEVANCE_THRESHOLD]

    async def _semantic_matches(
        self,
        source_text: str,
        scope: SearchScope | None,
        min_similarity: float,
        known: dict[str, GlossaryEntry],
    ) -> list[GlossaryMatch]:
        try:
            if self.semantic_timeout:
                neighbors = await asyncio.wait_for(
                    self._nearest(source_text, scope, min_similarity),
                    timeout=self.semantic_timeout,
                )
            else:
                neighbors = await self._nearest(source_text, scope, min_similarity)
        except Exception as e:
            self.db.log(
                "WARNING",
                "glossary_search",
                "Semantic search failed, using exact matches only",
                context={
                    "error_type": type(e).__name__,
                    "error": str(e),
                    "project_id": scope.project_id if scope else None,
                },
            )
            return []

        matches = []
        for neighbor in neighbors:
            entry = known.get(neighbor.id) or self.db.get_glossary_entry(neighbor.id)
            if entry is None or not entry_in_scope(entry, scope):
                continue
            similarity = min(max(neighbor.similarity, 0.0), 1.0)
            matches.append(GlossaryMatch.from_entry(entry, similarity, MatchMethod.SEMANTIC))
        return matches

    async def _nearest(self, source_text: str, scope: SearchScope | None, min_similarity: float):
        assert self.embedder is not None and self.index is not None
        vector = await self.embedder.embed(source_text)
        return await self.index.nearest_glossary_entries(
            vector, scope, self.candidate_limit, min_similarity
        )


def _merge(exact: list[GlossaryMatch], semantic: list[GlossaryMatch]) -> list[GlossaryMatch]:
    """Fold semantic candidates into the exact matches, one record per entry."""
    arena = list(exact)
    position = {match.entry_id: i for i, match in enumerate(arena)}
    for match in semantic:
        i = position.get(match.entry_id)
        if i is None:
            position[match.entry_id] = len(arena)
            arena.append(match)
        elif arena[i].match_method == MatchMethod.EXACT:
            # keeps similarity 1.0
            arena[i].match_method = MatchMethod.HYBRID
    return arena


def _rank(matches: list[GlossaryMatch]) -> list[GlossaryMatch]:
    return sorted(matches, key=lambda m: (m.is_semantic_only, -m.similarity))
