"""
DuckDB database operations for term-cluster-ai.

Handles glossary entries, documents and their segments, embeddings,
cluster membership, and the processing log.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import duckdb

from term_cluster_ai.scope import SearchScope, build_scope_filter

LOG_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}


def new_id() -> str:
    """Generate a new record identity."""
    return uuid.uuid4().hex


@dataclass
class GlossaryEntry:
    """Curated source-term to target-term mapping."""

    source_term: str = ""
    target_term: str = ""
    source_locale: str = ""
    target_locale: str = ""
    is_forbidden: bool = False
    project_id: str | None = None
    notes: str | None = None
    status: str = "preferred"
    id: str = field(default_factory=new_id)
    embedding: list[float] | None = None
    embedding_model: str | None = None
    embedding_updated_at: datetime | None = None
    created_at: datetime | None = None


@dataclass
class Document:
    """Document record."""

    project_id: str = ""
    name: str = ""
    id: str = field(default_factory=new_id)
    summary: str | None = None
    summary_generated_at: datetime | None = None
    embedding: list[float] | None = None
    embedding_model: str | None = None
    embedding_updated_at: datetime | None = None
    cluster_id: str | None = None
    cluster_summary: str | None = None
    cluster_summary_updated_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def has_embedding(self) -> bool:
        return bool(self.embedding)


@dataclass
class Segment:
    """A translatable unit of a document."""

    document_id: str = ""
    segment_index: int = 0
    source_text: str = ""
    target_text: str | None = None
    id: str = field(default_factory=new_id)


_ENTRY_COLUMNS = """
    id, source_term, target_term, source_locale, target_locale, is_forbidden,
    project_id, notes, status, embedding, embedding_model, embedding_updated_at,
    created_at
"""

_DOCUMENT_COLUMNS = """
    id, project_id, name, summary, summary_generated_at, embedding,
    embedding_model, embedding_updated_at, cluster_id, cluster_summary,
    cluster_summary_updated_at, created_at
"""


class Database:
    """DuckDB database wrapper for term-cluster-ai."""

    # SQL for creating tables
    _SCHEMA = """
    -- Curated glossary entries (project_id NULL = global)
    CREATE TABLE IF NOT EXISTS glossary_entries (
        id VARCHAR NOT NULL,
        source_term VARCHAR NOT NULL,
        target_term VARCHAR NOT NULL,
        source_locale VARCHAR NOT NULL,
        target_locale VARCHAR NOT NULL,
        is_forbidden BOOLEAN DEFAULT FALSE,
        project_id VARCHAR,
        notes TEXT,
        status VARCHAR DEFAULT 'preferred',
        embedding DOUBLE[],
        embedding_model VARCHAR,
        embedding_updated_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    -- Documents; a cluster is the set of documents sharing cluster_id
    CREATE TABLE IF NOT EXISTS documents (
        id VARCHAR NOT NULL,
        project_id VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        summary TEXT,
        summary_generated_at TIMESTAMP,
        embedding DOUBLE[],
        embedding_model VARCHAR,
        embedding_updated_at TIMESTAMP,
        cluster_id VARCHAR,
        cluster_summary TEXT,
        cluster_summary_updated_at TIMESTAMP,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    -- Segment-level source text
    CREATE TABLE IF NOT EXISTS segments (
        id VARCHAR NOT NULL,
        document_id VARCHAR NOT NULL,
        segment_index INTEGER NOT NULL,
        source_text TEXT NOT NULL,
        target_text TEXT,
        UNIQUE(document_id, segment_index)
    );

    -- Processing log for audit trail
    CREATE TABLE IF NOT EXISTS processing_log (
        id INTEGER PRIMARY KEY,
        run_id VARCHAR NOT NULL,
        document_id VARCHAR,
        stage VARCHAR NOT NULL,
        level VARCHAR NOT NULL,
        message TEXT NOT NULL,
        context JSON,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    );

    CREATE SEQUENCE IF NOT EXISTS processing_log_id_seq START 1;

    CREATE INDEX IF NOT EXISTS idx_segments_document ON segments(document_id);
    CREATE INDEX IF NOT EXISTS idx_log_lookup ON processing_log(run_id, stage, level);
    """

    def __init__(self, db_path: Path | str, log_level: str = "INFO"):
        """
        Initialize database connection.

        Args:
            db_path: Path to the DuckDB file.
            log_level: Minimum level written to the processing log.
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.log_level = log_level.upper()
        self._conn: duckdb.DuckDBPyConnection | None = None
        self._run_id = str(uuid.uuid4())

    @property
    def conn(self) -> duckdb.DuckDBPyConnection:
        """Get or create database connection."""
        if self._conn is None:
            self._conn = duckdb.connect(str(self.db_path))
            self._conn.execute(self._SCHEMA)
        return self._conn

    @property
    def run_id(self) -> str:
        """Get current run ID."""
        return self._run_id

    def close(self) -> None:
        """Close database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextmanager
    def transaction(self) -> Generator[duckdb.DuckDBPyConnection, None, None]:
        """Context manager for transactions."""
        try:
            self.conn.begin()
            yield self.conn
            self.conn.commit()
        except Exception:
            self.conn.rollback()
            raise

    # ==================== Glossary ====================

    def add_glossary_entry(self, entry: GlossaryEntry) -> str:
        """Add a glossary entry and return its ID."""
        self.conn.execute(
            """
            INSERT INTO glossary_entries
            (id, source_term, target_term, source_locale, target_locale,
             is_forbidden, project_id, notes, status)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                entry.id,
                entry.source_term,
                entry.target_term,
                entry.source_locale,
                entry.target_locale,
                entry.is_forbidden,
                entry.project_id,
                entry.notes,
                entry.status,
            ],
        )
        return entry.id

    def get_glossary_entry(self, entry_id: str) -> GlossaryEntry | None:
        """Get a glossary entry by ID."""
        row = self.conn.execute(
            f"SELECT {_ENTRY_COLUMNS} FROM glossary_entries WHERE id = ?", [entry_id]
        ).fetchone()
        if row:
            return self._row_to_entry(row)
        return None

    def get_glossary_entries(self, scope: SearchScope | None = None) -> list[GlossaryEntry]:
        """Get all glossary entries visible in a scope."""
        where_sql, params = build_scope_filter(scope)
        rows = self.conn.execute(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM glossary_entries
            WHERE {where_sql}
            ORDER BY created_at, id
            """,
            params,
        ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_project_glossary(
        self, project_id: str, status: str = "preferred", limit: int = 50
    ) -> list[GlossaryEntry]:
        """Get project-specific entries with a given status."""
        rows = self.conn.execute(
            f"""
            SELECT {_ENTRY_COLUMNS} FROM glossary_entries
            WHERE project_id = ? AND status = ?
            ORDER BY created_at, id
            LIMIT ?
            """,
            [project_id, status, limit],
        ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def get_entries_without_embeddings(
        self, project_id: str | None = None, limit: int | None = None
    ) -> list[GlossaryEntry]:
        """Get glossary entries that still need an embedding."""
        sql = f"SELECT {_ENTRY_COLUMNS} FROM glossary_entries WHERE embedding IS NULL"
        params: list[Any] = []
        if project_id:
            sql += " AND project_id = ?"
            params.append(project_id)
        sql += " ORDER BY created_at, id"
        if limit:
            sql += " LIMIT ?"
            params.append(limit)
        rows = self.conn.execute(sql, params).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def update_entry_embedding(self, entry_id: str, embedding: list[float], model: str) -> None:
        """Store the source-term embedding of a glossary entry."""
        self.conn.execute(
            """
            UPDATE glossary_entries
            SET embedding = ?::DOUBLE[],
                embedding_model = ?,
                embedding_updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            [embedding, model, entry_id],
        )

    def get_glossary_embedding_stats(self, project_id: str | None = None) -> dict[str, Any]:
        """Count glossary entries with and without embeddings."""
        where_clause = "WHERE project_id = ?" if project_id else ""
        params = [project_id] if project_id else []
        total, embedded = self.conn.execute(
            f"""
            SELECT COUNT(*), COUNT(embedding)
            FROM glossary_entries {where_clause}
            """,
            params,
        ).fetchone()
        return {
            "total": total,
            "with_embedding": embedded,
            "without_embedding": total - embedded,
            "coverage": round(embedded / total * 100, 2) if total > 0 else 0.0,
        }

    def _row_to_entry(self, row: tuple) -> GlossaryEntry:
        """Convert database row to GlossaryEntry."""
        return GlossaryEntry(
            id=row[0],
            source_term=row[1],
            target_term=row[2],
            source_locale=row[3],
            target_locale=row[4],
            is_forbidden=bool(row[5]),
            project_id=row[6],
            notes=row[7],
            status=row[8],
            embedding=list(row[9]) if row[9] is not None else None,
            embedding_model=row[10],
            embedding_updated_at=row[11],
            created_at=row[12],
        )

    # ==================== Documents ====================

    def add_document(self, doc: Document) -> str:
        """Add a document and return its ID."""
        self.conn.execute(
            "INSERT INTO documents (id, project_id, name, summary) VALUES (?, ?, ?, ?)",
            [doc.id, doc.project_id, doc.name, doc.summary],
        )
        return doc.id

    def get_document(self, doc_id: str) -> Document | None:
        """Get a document by ID."""
        row = self.conn.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", [doc_id]
        ).fetchone()
        if row:
            return self._row_to_document(row)
        return None

    def get_project_documents(
        self, project_id: str, unclustered_only: bool = False
    ) -> list[Document]:
        """Get documents of a project in creation order."""
        cluster_filter = "AND cluster_id IS NULL" if unclustered_only else ""
        rows = self.conn.execute(
            f"""
            SELECT {_DOCUMENT_COLUMNS} FROM documents
            WHERE project_id = ? {cluster_filter}
            ORDER BY created_at, rowid
            """,
            [project_id],
        ).fetchall()
        return [self._row_to_document(row) for row in rows]

    def update_document_embedding(self, doc_id: str, embedding: list[float], model: str) -> None:
        """Store a document embedding."""
        self.conn.execute(
            """
            UPDATE documents
            SET embedding = ?::DOUBLE[],
                embedding_model = ?,
                embedding_updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            [embedding, model, doc_id],
        )

    def update_document_summary(self, doc_id: str, summary: str) -> None:
        """Store the per-document summary."""
        self.conn.execute(
            """
            UPDATE documents
            SET summary = ?, summary_generated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            [summary, doc_id],
        )

    def set_document_cluster(self, doc_ids: list[str], cluster_id: str) -> None:
        """Assign one or more documents to a cluster in a single transaction."""
        with self.transaction() as conn:
            for doc_id in doc_ids:
                conn.execute(
                    "UPDATE documents SET cluster_id = ? WHERE id = ?",
                    [cluster_id, doc_id],
                )

    def get_cluster_documents(
        self, cluster_id: str, project_id: str | None = None
    ) -> list[Document]:
        """Get the members of a cluster, oldest first."""
        sql = f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE cluster_id = ?"
        params: list[Any] = [cluster_id]
        if project_id:
            sql += " AND project_id = ?"
            params.append(project_id)
        sql += " ORDER BY created_at, rowid"
        rows = self.conn.execute(sql, params).fetchall()
        return [self._row_to_document(row) for row in rows]

    def set_cluster_summary(self, cluster_id: str, project_id: str, summary: str) -> int:
        """
        Write one summary to every member of a cluster.

        Returns:
            Number of documents updated.
        """
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE documents
                SET cluster_summary = ?, cluster_summary_updated_at = CURRENT_TIMESTAMP
                WHERE cluster_id = ? AND project_id = ?
                """,
                [summary, cluster_id, project_id],
            )
            count = conn.execute(
                "SELECT COUNT(*) FROM documents WHERE cluster_id = ? AND project_id = ?",
                [cluster_id, project_id],
            ).fetchone()[0]
        return count

    def get_clustering_stats(self, project_id: str) -> dict[str, Any]:
        """Get clustering statistics for a project."""
        row = self.conn.execute(
            """
            SELECT
                COUNT(*),
                COUNT(embedding),
                COUNT(summary),
                COUNT(cluster_id),
                COUNT(DISTINCT cluster_id)
            FROM documents
            WHERE project_id = ?
            """,
            [project_id],
        ).fetchone()
        total, embedded, summarised, clustered, clusters = row
        return {
            "project_id": project_id,
            "total_documents": total,
            "documents_with_embeddings": embedded,
            "documents_with_summaries": summarised,
            "clustered_documents": clustered,
            "total_clusters": clusters,
            "clustering_progress": round(clustered / total * 100) if total > 0 else 0,
        }

    def _row_to_document(self, row: tuple) -> Document:
        """Convert database row to Document."""
        return Document(
            id=row[0],
            project_id=row[1],
            name=row[2],
            summary=row[3],
            summary_generated_at=row[4],
            embedding=list(row[5]) if row[5] is not None else None,
            embedding_model=row[6],
            embedding_updated_at=row[7],
            cluster_id=row[8],
            cluster_summary=row[9],
            cluster_summary_updated_at=row[10],
            created_at=row[11],
        )

    # ==================== Segments ====================

    def add_segments(self, doc_id: str, texts: list[str]) -> int:
        """Append source segments to a document."""
        start = self.count_document_segments(doc_id)
        with self.transaction() as conn:
            for offset, text in enumerate(texts):
                conn.execute(
                    """
                    INSERT INTO segments (id, document_id, segment_index, source_text)
                    VALUES (?, ?, ?, ?)
                    """,
                    [new_id(), doc_id, start + offset, text],
                )
        return len(texts)

    def get_document_segments(self, doc_id: str, limit: int | None = None) -> list[Segment]:
        """Get the segments of a document in order."""
        sql = """
            SELECT id, document_id, segment_index, source_text, target_text
            FROM segments WHERE document_id = ?
            ORDER BY segment_index
        """
        params: list[Any] = [doc_id]
        if limit:
            sql += " LIMIT ?"
            params.append(limit)
        rows = self.conn.execute(sql, params).fetchall()
        return [
            Segment(
                id=row[0],
                document_id=row[1],
                segment_index=row[2],
                source_text=row[3],
                target_text=row[4],
            )
            for row in rows
        ]

    def count_document_segments(self, doc_id: str) -> int:
        """Count the segments of a document."""
        return self.conn.execute(
            "SELECT COUNT(*) FROM segments WHERE document_id = ?", [doc_id]
        ).fetchone()[0]

    # ==================== Logging ====================

    def log(
        self,
        level: str,
        stage: str,
        message: str,
        document_id: str | None = None,
        context: dict | None = None,
    ) -> None:
        """Insert a log entry if it meets the configured level."""
        level = level.upper()
        if LOG_LEVELS.get(level, 20) < LOG_LEVELS.get(self.log_level, 20):
            return
        context_json = json.dumps(context, default=str) if context else None
        self.conn.execute(
            """
            INSERT INTO processing_log
            (id, run_id, document_id, stage, level, message, context)
            VALUES (nextval('processing_log_id_seq'), ?, ?, ?, ?, ?, ?)
            """,
            [self._run_id, document_id, stage, level, message, context_json],
        )

    def get_logs(
        self,
        run_id: str | None = None,
        level: str | None = None,
        stage: str | None = None,
        document_id: str | None = None,
        limit: int = 100,
    ) -> list[dict]:
        """Get log entries, newest first."""
        conditions = []
        params: list[Any] = []

        if run_id:
            conditions.append("run_id = ?")
            params.append(run_id)
        if level:
            conditions.append("level = ?")
            params.append(level.upper())
        if stage:
            conditions.append("stage = ?")
            params.append(stage)
        if document_id:
            conditions.append("document_id = ?")
            params.append(document_id)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        rows = self.conn.execute(
            f"""
            SELECT run_id, document_id, stage, level, message, context, created_at
            FROM processing_log
            {where_clause}
            ORDER BY id DESC
            LIMIT ?
            """,
            [*params, limit],
        ).fetchall()

        return [
            {
                "run_id": row[0],
                "document_id": row[1],
                "stage": row[2],
                "level": row[3],
                "message": row[4],
                "context": json.loads(row[5]) if row[5] else None,
                "created_at": row[6],
            }
            for row in rows
        ]
