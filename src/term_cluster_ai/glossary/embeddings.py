"""
Embedding generation for glossary entries.

Stores an embedding of each entry's source term so the vector index can
return semantic candidates for it.
"""

from __future__ import annotations

from typing import Any

from term_cluster_ai.database import Database
from term_cluster_ai.embeddings.base import EmbeddingProvider
from term_cluster_ai.errors import NotFoundError, ProviderError
from term_cluster_ai.vectors import validate_dimensions


class GlossaryEmbeddingIndexer:
    """Generate and store glossary entry embeddings."""

    def __init__(self, db: Database, embedder: EmbeddingProvider):
        self.db = db
        self.embedder = embedder

    async def embed_entry(self, entry_id: str) -> list[float]:
        """
        Embed a single entry and store the vector.

        Raises:
            NotFoundError: If the entry does not exist.
            ProviderError: If the embedding provider fails or returns a vector
                of the wrong dimension.
        """
        entry = self.db.get_glossary_entry(entry_id)
        if entry is None:
            raise NotFoundError("Glossary entry", entry_id)

        vector = await self.embedder.embed(entry.source_term)
        self._check_dimensions(vector)
        self.db.update_entry_embedding(entry.id, vector, self.embedder.model)
        return vector

    async def generate_missing(self, project_id: str | None = None, batch_size: int = 50) -> int:
        """
        Embed every entry that has no embedding yet.

        Batches that fail are logged and skipped; the run continues with the
        next batch.

        Args:
            project_id: Restrict to one project's entries.
            batch_size: Entries embedded per provider call.

        Returns:
            Number of entries embedded.
        """
        entries = self.db.get_entries_without_embeddings(project_id)
        if not entries:
            return 0

        embedded = 0
        failed = 0
        for start in range(0, len(entries), batch_size):
            batch = [e for e in entries[start : start + batch_size] if e.source_term.strip()]
            if not batch:
                continue
            try:
                vectors = await self.embedder.embed_batch([e.source_term for e in batch])
                for vector in vectors:
                    self._check_dimensions(vector)
            except ProviderError as e:
                failed += len(batch)
                self.db.log(
                    "WARNING",
                    "glossary_embed",
                    f"Embedding batch failed: {e}",
                    context={"batch_start": start, "batch_size": len(batch)},
                )
                continue

            with self.db.transaction():
                for entry, vector in zip(batch, vectors, strict=True):
                    self.db.update_entry_embedding(entry.id, vector, self.embedder.model)
            embedded += len(batch)

        self.db.log(
            "INFO",
            "glossary_embed",
            f"Generated {embedded} glossary embeddings",
            context={"project_id": project_id, "embedded": embedded, "failed": failed},
        )
        return embedded

    def _check_dimensions(self, vector: list[float]) -> None:
        try:
            validate_dimensions(vector, self.embedder.dimensions)
        except ValueError as e:
            raise ProviderError(str(e)) from e

    def stats(self, project_id: str | None = None) -> dict[str, Any]:
        """Embedding coverage plus the provider in use."""
        stats = self.db.get_glossary_embedding_stats(project_id)
        stats["provider"] = self.embedder.name
        stats["model"] = self.embedder.model
        return stats
