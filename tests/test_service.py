"""
Tests for clustering/service.py: on-demand and batch clustering.
"""

import pytest
from conftest import (
    FailingEmbeddingProvider,
    FailingSummarizer,
    StubEmbeddingProvider,
    StubSummarizer,
)

from term_cluster_ai.clustering import (
    ClusteringService,
    ClusterSummarizer,
    DocumentClusteringEngine,
    DocumentEmbeddingService,
)
from term_cluster_ai.errors import InputError, NotFoundError, ProcessingError
from term_cluster_ai.vector_index import DuckDBVectorIndex

CONTRACT = [1.0, 0.0]
RECIPE = [0.0, 1.0]


def build_service(db, embedder=None, summarizer=None, auto_summarize=True):
    embedder = embedder or StubEmbeddingProvider(
        {"contract terms": CONTRACT, "more contract terms": CONTRACT, "flour and eggs": RECIPE}
    )
    return ClusteringService(
        db,
        DocumentEmbeddingService(db, embedder),
        DocumentClusteringEngine(db, DuckDBVectorIndex(db)),
        ClusterSummarizer(db, summarizer if summarizer is not None else StubSummarizer()),
        auto_summarize=auto_summarize,
    )


# ---------------------------------------------------------------------------
# cluster_document
# ---------------------------------------------------------------------------


class TestClusterDocument:
    async def test_embeds_assigns_and_summarizes(self, db, add_document):
        doc = add_document("contract.docx", segments=["contract terms"])
        service = build_service(db)

        result = await service.cluster_document(doc.id)

        stored = db.get_document(doc.id)
        assert result.embedding_generated is True
        assert result.cluster_id == stored.cluster_id
        assert result.summary_updated is True
        assert stored.embedding == CONTRACT
        assert stored.cluster_summary.startswith("Summary: Document: contract.docx")

    async def test_similar_documents_share_cluster(self, db, add_document):
        first = add_document("a", segments=["contract terms"])
        second = add_document("b", segments=["more contract terms"])
        other = add_document("c", segments=["flour and eggs"])
        service = build_service(db)

        a = await service.cluster_document(first.id)
        b = await service.cluster_document(second.id)
        c = await service.cluster_document(other.id)

        assert a.cluster_id == b.cluster_id
        assert c.cluster_id != a.cluster_id

    async def test_no_content_is_input_error(self, db, add_document):
        doc = add_document("empty.docx")
        service = build_service(db)

        with pytest.raises(InputError) as exc_info:
            await service.cluster_document(doc.id)

        assert not isinstance(exc_info.value, ProcessingError)
        assert db.get_document(doc.id).cluster_id is None

    async def test_provider_failure_is_processing_error(self, db, add_document):
        doc = add_document("doc", segments=["contract terms"])
        service = build_service(db, embedder=FailingEmbeddingProvider())

        with pytest.raises(ProcessingError):
            await service.cluster_document(doc.id)

        stored = db.get_document(doc.id)
        assert stored.cluster_id is None
        assert stored.embedding is None
        assert db.get_logs(stage="document_embed", level="ERROR")

    async def test_summary_failure_does_not_fail_assignment(self, db, add_document):
        doc = add_document("doc", segments=["contract terms"])
        service = build_service(db, summarizer=FailingSummarizer())

        result = await service.cluster_document(doc.id)

        assert result.cluster_id is not None
        assert db.get_document(doc.id).cluster_id == result.cluster_id
        assert result.summary_updated is False
        assert "summarizer unavailable" in result.summary_error
        assert db.get_logs(stage="cluster_summary", level="WARNING")

    async def test_auto_summarize_off(self, db, add_document):
        doc = add_document("doc", segments=["contract terms"])
        service = build_service(db, auto_summarize=False)

        result = await service.cluster_document(doc.id)

        assert result.summary_updated is False
        assert db.get_document(doc.id).cluster_summary is None

    async def test_existing_embedding_reused(self, db, add_document):
        doc = add_document("doc", segments=["contract terms"], embedding=RECIPE)
        embedder = StubEmbeddingProvider()
        service = build_service(db, embedder=embedder)

        result = await service.cluster_document(doc.id)

        assert result.embedding_generated is False
        assert embedder.calls == []

    async def test_unknown_document(self, db):
        with pytest.raises(NotFoundError):
            await build_service(db).cluster_document("missing")


# ---------------------------------------------------------------------------
# cluster_project
# ---------------------------------------------------------------------------


class TestClusterProject:
    async def test_batch(self, db, add_document):
        a = add_document("a", segments=["contract terms"])
        b = add_document("b", segments=["more contract terms"])
        c = add_document("c", segments=["flour and eggs"])
        empty = add_document("empty")
        add_document("elsewhere", project_id="P2", segments=["contract terms"])
        summarizer = StubSummarizer()
        service = build_service(db, summarizer=summarizer)

        results = await service.cluster_project("P1")

        assert set(results) == {a.id, b.id, c.id, empty.id}
        assert results[a.id] == results[b.id]
        assert results[c.id] not in (None, results[a.id])
        assert results[empty.id] is None
        # one refresh per touched cluster
        assert len(summarizer.calls) == 2

    async def test_skips_clustered_documents(self, db, add_document):
        a = add_document("a", segments=["contract terms"])
        service = build_service(db)
        await service.cluster_document(a.id)

        assert await service.cluster_project("P1") == {}

    async def test_embedding_failure_skipped(self, db, add_document):
        a = add_document("a", segments=["contract terms"])
        service = build_service(db, embedder=FailingEmbeddingProvider())

        assert await service.cluster_project("P1") == {a.id: None}


# ---------------------------------------------------------------------------
# regenerate_summary
# ---------------------------------------------------------------------------


class TestRegenerateSummary:
    async def test_regenerate(self, db, add_document):
        doc = add_document("doc", segments=["contract terms"])
        service = build_service(db, auto_summarize=False)
        result = await service.cluster_document(doc.id)

        summary = await service.regenerate_summary(result.cluster_id)

        assert db.get_document(doc.id).cluster_summary == summary

    async def test_failure_is_processing_error(self, db, add_document):
        doc = add_document("doc", segments=["contract terms"])
        db.set_document_cluster([doc.id], "cluster_x")
        service = build_service(db, summarizer=FailingSummarizer())

        with pytest.raises(ProcessingError):
            await service.regenerate_summary("cluster_x")

    async def test_unknown_cluster(self, db):
        with pytest.raises(NotFoundError):
            await build_service(db).regenerate_summary("cluster_none")
