"""
Tests for glossary/search.py: hybrid glossary search.
"""

import pytest
from conftest import (
    FailingEmbeddingProvider,
    FailingVectorIndex,
    SlowEmbeddingProvider,
    StubEmbeddingProvider,
    StubVectorIndex,
    at_similarity,
)

from term_cluster_ai.glossary.models import MatchMethod
from term_cluster_ai.glossary.search import RELEVANCE_THRESHOLD, HybridGlossaryMatcher
from term_cluster_ai.scope import SearchScope
from term_cluster_ai.vector_index import DuckDBVectorIndex, Neighbor

QUERY = [1.0, 0.0]


class BrokenEmbeddingProvider(StubEmbeddingProvider):
    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        raise ConnectionError("socket reset")


def assert_ranked(matches):
    """No semantic match before an exact/hybrid one; similarity non-increasing per tier."""
    tiers = [m.match_method == MatchMethod.SEMANTIC for m in matches]
    assert tiers == sorted(tiers)
    for tier in (False, True):
        sims = [m.similarity for m in matches if (m.match_method == MatchMethod.SEMANTIC) == tier]
        assert sims == sorted(sims, reverse=True)


# ---------------------------------------------------------------------------
# Exact matching through the search entry point
# ---------------------------------------------------------------------------


class TestExactSearch:
    async def test_cloud_server_example(self, db, add_entry):
        add_entry("server")
        add_entry("cloud server", project_id="P1")
        matcher = HybridGlossaryMatcher(db)

        matches = await matcher.search("Our cloud server is down", SearchScope(project_id="P1"))

        assert sorted(m.source_term for m in matches) == ["cloud server", "server"]
        assert all(m.similarity == 1.0 for m in matches)
        assert all(m.match_method == MatchMethod.EXACT for m in matches)

    async def test_other_project_entries_excluded(self, db, add_entry):
        add_entry("server", project_id="P2")
        matcher = HybridGlossaryMatcher(db)
        assert await matcher.search("server", SearchScope(project_id="P1")) == []

    async def test_locale_scope(self, db, add_entry):
        add_entry("server", source_locale="en-GB", target_locale="fr")
        add_entry("server", target_term="Server", source_locale="en", target_locale="de")
        matcher = HybridGlossaryMatcher(db)

        matches = await matcher.search(
            "server", SearchScope(source_locale="en", target_locale="fr-FR")
        )

        assert [m.target_locale for m in matches] == ["fr"]

    @pytest.mark.parametrize("text", ["", "  ", "\n"])
    async def test_blank_text(self, db, add_entry, text):
        add_entry("server")
        index = StubVectorIndex()
        embedder = StubEmbeddingProvider()
        matcher = HybridGlossaryMatcher(db, embedder, index)

        assert await matcher.search(text) == []
        assert embedder.calls == []
        assert index.entry_queries == []

    async def test_semantic_disabled_skips_provider(self, db, add_entry):
        add_entry("server")
        embedder = StubEmbeddingProvider()
        matcher = HybridGlossaryMatcher(db, embedder, StubVectorIndex())

        matches = await matcher.search("server", use_semantic_search=False)

        assert [m.source_term for m in matches] == ["server"]
        assert embedder.calls == []


# ---------------------------------------------------------------------------
# Semantic failures degrade to exact-only results
# ---------------------------------------------------------------------------


class TestDegradation:
    async def test_provider_failure_keeps_exact(self, db, add_entry):
        add_entry("server")
        matcher = HybridGlossaryMatcher(db, FailingEmbeddingProvider(), StubVectorIndex())

        matches = await matcher.search("The server is down")

        assert [m.source_term for m in matches] == ["server"]
        assert matches[0].similarity == 1.0
        logs = db.get_logs(stage="glossary_search", level="WARNING")
        assert len(logs) == 1
        assert logs[0]["context"]["error_type"] == "ProviderError"

    async def test_index_failure_keeps_exact(self, db, add_entry):
        add_entry("server")
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), FailingVectorIndex())

        matches = await matcher.search("server")

        assert [m.match_method for m in matches] == [MatchMethod.EXACT]
        assert db.get_logs(stage="glossary_search")[0]["context"]["error_type"] == (
            "VectorIndexError"
        )

    async def test_timeout_keeps_exact(self, db, add_entry):
        add_entry("server")
        matcher = HybridGlossaryMatcher(
            db, SlowEmbeddingProvider(), StubVectorIndex(), semantic_timeout=0.05
        )

        matches = await matcher.search("server")

        assert [m.source_term for m in matches] == ["server"]
        assert db.get_logs(stage="glossary_search", level="WARNING")

    async def test_unexpected_error_keeps_exact(self, db, add_entry):
        add_entry("server")
        matcher = HybridGlossaryMatcher(db, BrokenEmbeddingProvider(), StubVectorIndex())

        matches = await matcher.search("The server is down")

        assert [m.source_term for m in matches] == ["server"]
        assert matches[0].match_method == MatchMethod.EXACT
        logs = db.get_logs(stage="glossary_search", level="WARNING")
        assert len(logs) == 1
        assert logs[0]["context"]["error_type"] == "ConnectionError"
        assert logs[0]["context"]["error"] == "socket reset"


# ---------------------------------------------------------------------------
# Merge and ranking
# ---------------------------------------------------------------------------


class TestMerge:
    async def test_hybrid_dedupe(self, db, add_entry):
        server = add_entry("server")
        index = StubVectorIndex(entries=[Neighbor(server.id, 0.92)])
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), index)

        matches = await matcher.search("The server is down")

        assert len(matches) == 1
        assert matches[0].entry_id == server.id
        assert matches[0].match_method == MatchMethod.HYBRID
        assert matches[0].similarity == 1.0

    async def test_semantic_only_match_appended(self, db, add_entry):
        add_entry("server")
        host = add_entry("host machine")
        index = StubVectorIndex(entries=[Neighbor(host.id, 0.81)])
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), index)

        matches = await matcher.search("The server is down")

        assert [(m.source_term, m.match_method) for m in matches] == [
            ("server", MatchMethod.EXACT),
            ("host machine", MatchMethod.SEMANTIC),
        ]
        assert matches[1].similarity == pytest.approx(0.81)

    async def test_ordering(self, db, add_entry):
        exact_a = add_entry("server")
        exact_b = add_entry("database")
        sem_low = add_entry("host")
        sem_high = add_entry("backend")
        index = StubVectorIndex(
            entries=[
                Neighbor(sem_low.id, 0.76),
                Neighbor(exact_b.id, 0.95),
                Neighbor(sem_high.id, 0.9),
            ]
        )
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), index)

        matches = await matcher.search("server and database")

        assert_ranked(matches)
        assert {m.entry_id for m in matches[:2]} == {exact_a.id, exact_b.id}
        assert [m.entry_id for m in matches[2:]] == [sem_high.id, sem_low.id]
        assert {m.entry_id: m.match_method for m in matches}[exact_b.id] == MatchMethod.HYBRID

    async def test_min_similarity_and_candidate_cap(self, db, add_entry):
        entries = [add_entry(f"term{i}") for i in range(15)]
        index = StubVectorIndex(
            entries=[Neighbor(e.id, 0.99 - i * 0.01) for i, e in enumerate(entries)]
        )
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), index)

        matches = await matcher.search("unrelated text", min_similarity=0.5)

        assert len(matches) == 10
        assert index.entry_queries[0][2:] == (10, 0.5)

    async def test_neighbor_out_of_scope_dropped(self, db, add_entry):
        other = add_entry("elsewhere", project_id="P2")
        index = StubVectorIndex(entries=[Neighbor(other.id, 0.99)])
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), index)

        assert await matcher.search("text", SearchScope(project_id="P1")) == []


# ---------------------------------------------------------------------------
# find_relevant
# ---------------------------------------------------------------------------


class TestFindRelevant:
    async def test_filters_weak_semantic_matches(self, db, add_entry):
        add_entry("server")
        weak = add_entry("host")
        strong = add_entry("backend")
        border = add_entry("node")
        index = StubVectorIndex(
            entries=[
                Neighbor(weak.id, 0.78),
                Neighbor(strong.id, 0.9),
                Neighbor(border.id, RELEVANCE_THRESHOLD),
            ]
        )
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), index)

        full = await matcher.search("server")
        relevant = await matcher.find_relevant("server")

        assert {m.source_term for m in full} == {"server", "host", "backend", "node"}
        assert [m.source_term for m in relevant] == ["server", "backend", "node"]
        assert all(
            m.match_method != MatchMethod.SEMANTIC or m.similarity >= 0.8 for m in relevant
        )

    async def test_forces_semantic_search(self, db, add_entry):
        strong = add_entry("backend")
        index = StubVectorIndex(entries=[Neighbor(strong.id, 0.95)])
        matcher = HybridGlossaryMatcher(db, StubEmbeddingProvider(), index)

        relevant = await matcher.find_relevant("server")

        assert [m.entry_id for m in relevant] == [strong.id]

    async def test_keeps_all_exact_matches(self, db, add_entry):
        add_entry("server")
        add_entry("cloud server")
        matcher = HybridGlossaryMatcher(db, FailingEmbeddingProvider(), StubVectorIndex())

        relevant = await matcher.find_relevant("cloud server")

        assert sorted(m.source_term for m in relevant) == ["cloud server", "server"]


# ---------------------------------------------------------------------------
# End to end with the DuckDB vector index
# ---------------------------------------------------------------------------


class TestWithDuckDBIndex:
    async def test_hybrid_and_semantic(self, db, add_entry):
        server = add_entry("server", embedding=at_similarity(1.0))
        host = add_entry("host", embedding=at_similarity(0.85))
        add_entry("printer", embedding=at_similarity(0.3))
        embedder = StubEmbeddingProvider({"the server is down": QUERY})
        matcher = HybridGlossaryMatcher(db, embedder, DuckDBVectorIndex(db))

        matches = await matcher.search("The server is down")

        assert [(m.entry_id, m.match_method) for m in matches] == [
            (server.id, MatchMethod.HYBRID),
            (host.id, MatchMethod.SEMANTIC),
        ]
        assert matches[0].similarity == 1.0
        assert matches[1].similarity == pytest.approx(0.85)

    async def test_vector_query_respects_scope(self, db, add_entry):
        add_entry("host", project_id="P2", embedding=at_similarity(0.95))
        add_entry("machine", source_locale="de", embedding=at_similarity(0.95))
        visible = add_entry("backend", project_id="P1", embedding=at_similarity(0.9))
        embedder = StubEmbeddingProvider({"query text": QUERY})
        matcher = HybridGlossaryMatcher(db, embedder, DuckDBVectorIndex(db))

        matches = await matcher.search(
            "query text", SearchScope(project_id="P1", source_locale="en")
        )

        assert [m.entry_id for m in matches] == [visible.id]

    async def test_entries_of_other_dimension_ignored(self, db, add_entry):
        add_entry("legacy", embedding=[1.0, 0.0, 0.0])
        embedder = StubEmbeddingProvider({"legacy term": QUERY})
        matcher = HybridGlossaryMatcher(db, embedder, DuckDBVectorIndex(db))

        assert await matcher.search("legacy term") == []
        assert not db.get_logs(stage="glossary_search", level="WARNING")
