"""
Document embedding generation.

A document embedding is computed from the concatenated text of its
segments and stored on the document row.
"""

from __future__ import annotations

from term_cluster_ai.database import Database
from term_cluster_ai.embeddings.base import EmbeddingProvider
from term_cluster_ai.errors import NoContentError, NotFoundError, ProviderDisabledError, ProviderError
from term_cluster_ai.vectors import validate_dimensions


class DocumentEmbeddingService:
    """Generate and store document embeddings."""

    def __init__(
        self,
        db: Database,
        embedder: EmbeddingProvider | None,
        max_text_length: int = 8000,
    ):
        """
        Initialize the service.

        Args:
            db: Database instance.
            embedder: Embedding provider, or None if embeddings are disabled.
            max_text_length: Characters of document text sent to the provider.
        """
        self.db = db
        self.embedder = embedder
        self.max_text_length = max_text_length

    def document_text(self, document_id: str) -> str:
        """
        Text used for a document's embedding.

        Raises:
            NoContentError: If the document has no segment text.
        """
        segments = self.db.get_document_segments(document_id)
        if not segments:
            raise NoContentError(document_id)
        text = "\n".join(s.source_text for s in segments if s.source_text.strip())
        text = text[: self.max_text_length]
        if not text.strip():
            raise NoContentError(document_id)
        return text

    async def generate(self, document_id: str) -> list[float]:
        """
        Generate and store the embedding of a document.

        Args:
            document_id: Document to embed.

        Returns:
            The stored vector.

        Raises:
            NotFoundError: If the document does not exist.
            NoContentError: If the document has no segments or no text.
            ProviderError: If the embedding provider fails or is disabled.
        """
        doc = self.db.get_document(document_id)
        if doc is None:
            raise NotFoundError("Document", document_id)

        text = self.document_text(document_id)
        if self.embedder is None:
            raise ProviderDisabledError("No embedding provider is configured")

        vector = await self.embedder.embed(text)
        try:
            validate_dimensions(vector, self.embedder.dimensions)
        except ValueError as e:
            raise ProviderError(str(e)) from e

        self.db.update_document_embedding(document_id, vector, self.embedder.model)
        self.db.log(
            "INFO",
            "document_embed",
            f"Generated embedding ({len(vector)} dimensions)",
            document_id=document_id,
            context={"model": self.embedder.model, "text_length": len(text)},
        )
        return vector

    async def ensure(self, document_id: str) -> list[float]:
        """Return the stored embedding, generating it when missing."""
        doc = self.db.get_document(document_id)
        if doc is None:
            raise NotFoundError("Document", document_id)
        if doc.embedding:
            return doc.embedding
        return await self.generate(document_id)
