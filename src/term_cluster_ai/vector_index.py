"""
Nearest-neighbour search over stored embeddings.

The VectorIndex interface is the boundary the matcher and the clustering
engine depend on; DuckDBVectorIndex answers it with list_cosine_similarity
over the embedding columns of the Database.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import duckdb

from term_cluster_ai.errors import VectorIndexError
from term_cluster_ai.scope import SearchScope, build_scope_filter

if TYPE_CHECKING:
    from term_cluster_ai.database import Database

# NULL for embeddings of another dimension
_SIMILARITY = (
    "CASE WHEN len(embedding) = ? "
    "THEN list_cosine_similarity(embedding, ?::DOUBLE[]) END"
)


@dataclass(frozen=True)
class Neighbor:
    """One nearest-neighbour hit."""

    id: str
    similarity: float


class VectorIndex(ABC):
    """Cosine nearest-neighbour queries over entry and document embeddings."""

    @abstractmethod
    async def nearest_glossary_entries(
        self,
        vector: Sequence[float],
        scope: SearchScope | None,
        limit: int,
        min_similarity: float,
    ) -> list[Neighbor]:
        """Glossary entries in scope, most similar first."""
        ...

    @abstractmethod
    async def nearest_documents(
        self,
        vector: Sequence[float],
        project_id: str,
        limit: int,
        min_similarity: float,
        exclude_document_id: str | None = None,
    ) -> list[Neighbor]:
        """Documents of a project, most similar first."""
        ...


class DuckDBVectorIndex(VectorIndex):
    """
    Vector index backed by the DuckDB embedding columns.

    Only rows whose embedding has the same dimension as the query vector
    are compared; rows from another embedding model are ignored.
    """

    def __init__(self, db: Database):
        self.db = db

    def _query(self, sql: str, params: list[Any]) -> list[Neighbor]:
        try:
            rows = self.db.conn.execute(sql, params).fetchall()
        except duckdb.Error as e:
            raise VectorIndexError(f"Vector search failed: {e}") from e
        return [Neighbor(id=row[0], similarity=float(row[1])) for row in rows]

    async def nearest_glossary_entries(
        self,
        vector: Sequence[float],
        scope: SearchScope | None,
        limit: int,
        min_similarity: float,
    ) -> list[Neighbor]:
        scope_sql, scope_params = build_scope_filter(scope)
        sql = f"""
            SELECT id, similarity FROM (
                SELECT id, {_SIMILARITY} AS similarity
                FROM glossary_entries
                WHERE embedding IS NOT NULL
                AND {scope_sql}
            )
            WHERE similarity IS NOT NULL AND NOT isnan(similarity) AND similarity >= ?
            ORDER BY similarity DESC, id
            LIMIT ?
        """
        params = [len(vector), list(vector), *scope_params, min_similarity, limit]
        return self._query(sql, params)

    async def nearest_documents(
        self,
        vector: Sequence[float],
        project_id: str,
        limit: int,
        min_similarity: float,
        exclude_document_id: str | None = None,
    ) -> list[Neighbor]:
        exclude_sql = "AND id != ?" if exclude_document_id else ""
        sql = f"""
            SELECT id, similarity FROM (
                SELECT id, {_SIMILARITY} AS similarity
                FROM documents
                WHERE embedding IS NOT NULL
                AND project_id = ?
                {exclude_sql}
            )
            WHERE similarity IS NOT NULL AND NOT isnan(similarity) AND similarity >= ?
            ORDER BY similarity DESC, id
            LIMIT ?
        """
        params: list[Any] = [len(vector), list(vector), project_id]
        if exclude_document_id:
            params.append(exclude_document_id)
        params.extend([min_similarity, limit])
        return self._query(sql, params)
