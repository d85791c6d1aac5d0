"""
Shared fixtures: a real DuckDB file per test and deterministic stubs for
the embedding, vector index and summarization capabilities.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Sequence

import pytest

from term_cluster_ai.clustering.summarizer import Summarizer
from term_cluster_ai.database import Database, Document, GlossaryEntry
from term_cluster_ai.embeddings.base import EmbeddingProvider
from term_cluster_ai.errors import ProviderError, VectorIndexError
from term_cluster_ai.scope import SearchScope
from term_cluster_ai.vector_index import Neighbor, VectorIndex


def unit(angle_degrees: float) -> list[float]:
    """2-D unit vector; cosine to [1, 0] is cos(angle)."""
    rad = math.radians(angle_degrees)
    return [math.cos(rad), math.sin(rad)]


def at_similarity(similarity: float) -> list[float]:
    """2-D unit vector whose cosine similarity to [1, 0] is `similarity`."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity * similarity))]


# ---------------------------------------------------------------------------
# Stubs
# ---------------------------------------------------------------------------


class StubEmbeddingProvider(EmbeddingProvider):
    """Looks texts up in a table; unknown texts get `default`."""

    def __init__(self, table: dict[str, list[float]] | None = None, default=None):
        self.table = {k.lower(): v for k, v in (table or {}).items()}
        self.default = default if default is not None else [0.0, 1.0]
        self.calls: list[list[str]] = []

    @property
    def name(self) -> str:
        return "stub"

    @property
    def model(self) -> str:
        return "stub-model"

    @property
    def dimensions(self) -> int:
        return len(self.default)

    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [list(self.table.get(t.lower(), self.default)) for t in texts]


class FailingEmbeddingProvider(StubEmbeddingProvider):
    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        raise ProviderError("embedding service unavailable")


class SlowEmbeddingProvider(StubEmbeddingProvider):
    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        await asyncio.sleep(5)
        return await super()._embed_texts(texts)


class StubVectorIndex(VectorIndex):
    """Returns preset neighbours, applying limit and min_similarity."""

    def __init__(self, entries: Sequence[Neighbor] = (), documents: Sequence[Neighbor] = ()):
        self.entries = list(entries)
        self.documents = list(documents)
        self.entry_queries: list[tuple] = []

    async def nearest_glossary_entries(self, vector, scope, limit, min_similarity):
        self.entry_queries.append((list(vector), scope, limit, min_similarity))
        hits = [n for n in self.entries if n.similarity >= min_similarity]
        return sorted(hits, key=lambda n: -n.similarity)[:limit]

    async def nearest_documents(
        self, vector, project_id, limit, min_similarity, exclude_document_id=None
    ):
        hits = [
            n
            for n in self.documents
            if n.similarity >= min_similarity and n.id != exclude_document_id
        ]
        return sorted(hits, key=lambda n: -n.similarity)[:limit]


class FailingVectorIndex(VectorIndex):
    async def nearest_glossary_entries(self, vector, scope, limit, min_similarity):
        raise VectorIndexError("index offline")

    async def nearest_documents(
        self, vector, project_id, limit, min_similarity, exclude_document_id=None
    ):
        raise VectorIndexError("index offline")


class StubSummarizer(Summarizer):
    """Deterministic summary built from the first line of each text."""

    def __init__(self):
        self.calls: list[list[str]] = []

    async def summarize(self, texts: list[str], instructions: str | None = None) -> str:
        self.calls.append(list(texts))
        heads = [t.splitlines()[0] for t in texts if t.strip()]
        return "Summary: " + " | ".join(heads)


class FailingSummarizer(Summarizer):
    async def summarize(self, texts: list[str], instructions: str | None = None) -> str:
        raise ProviderError("summarizer unavailable")


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def db(tmp_path):
    """Fresh database in a temporary directory."""
    database = Database(tmp_path / "test.duckdb", log_level="DEBUG")
    yield database
    database.close()


@pytest.fixture
def add_entry(db):
    """Factory that stores a glossary entry and returns it."""

    def _add(
        source_term: str,
        target_term: str = "",
        *,
        project_id: str | None = None,
        source_locale: str = "en",
        target_locale: str = "fr",
        is_forbidden: bool = False,
        status: str = "preferred",
        notes: str | None = None,
        embedding: list[float] | None = None,
    ) -> GlossaryEntry:
        entry = GlossaryEntry(
            source_term=source_term,
            target_term=target_term or f"{source_term}-fr",
            source_locale=source_locale,
            target_locale=target_locale,
            is_forbidden=is_forbidden,
            project_id=project_id,
            notes=notes,
            status=status,
        )
        db.add_glossary_entry(entry)
        if embedding is not None:
            db.update_entry_embedding(entry.id, embedding, "stub-model")
        return entry

    return _add


@pytest.fixture
def add_document(db):
    """Factory that stores a document with segments and an optional embedding."""

    def _add(
        name: str,
        *,
        project_id: str = "P1",
        segments: list[str] | None = None,
        embedding: list[float] | None = None,
        summary: str | None = None,
    ) -> Document:
        doc = Document(project_id=project_id, name=name, summary=summary)
        db.add_document(doc)
        if segments:
            db.add_segments(doc.id, segments)
        if embedding is not None:
            db.update_document_embedding(doc.id, embedding, "stub-model")
        return db.get_document(doc.id)

    return _add


@pytest.fixture
def scope_p1():
    return SearchScope(project_id="P1", source_locale="en", target_locale="fr")
