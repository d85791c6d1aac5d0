"""
Base classes for embedding providers.

Defines the abstract interface every embedding backend implements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from term_cluster_ai.errors import InputError


class EmbeddingProvider(ABC):
    """
    Abstract base class for embedding providers.

    Converts text to a fixed-dimension float vector. Implementations raise
    ProviderError (or ProviderDisabledError) on failure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and identification."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Embedding model name, stored alongside each vector."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Number of components in every vector."""
        ...

    @abstractmethod
    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Embed already validated, non-empty texts."""
        ...

    async def embed(self, text: str) -> list[float]:
        """
        Embed a single text.

        Raises:
            InputError: If the text is empty.
            ProviderError: If the backend fails.
        """
        return (await self.embed_batch([text]))[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts, preserving order."""
        if not texts:
            return []
        cleaned = []
        for text in texts:
            if not text or not text.strip():
                raise InputError("Text cannot be empty")
            cleaned.append(text.strip())
        return await self._embed_texts(cleaned)
