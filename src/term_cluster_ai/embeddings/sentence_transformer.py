"""
Local embedding provider using sentence-transformers.

Multilingual models keep glossary terms in different languages comparable.
"""

from __future__ import annotations

import asyncio

import numpy as np
from sentence_transformers import SentenceTransformer

from term_cluster_ai.embeddings.base import EmbeddingProvider
from term_cluster_ai.errors import ProviderError


class SentenceTransformerProvider(EmbeddingProvider):
    """
    Generate embeddings with a local sentence-transformers model.

    Encoding runs in the default executor so it never blocks the event loop.
    """

    # Recommended models for multilingual support
    MODELS = {
        "multilingual": "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2",
        "arabic": "sentence-transformers/paraphrase-multilingual-mpnet-base-v2",
        "fast": "sentence-transformers/all-MiniLM-L6-v2",
    }

    def __init__(
        self,
        model_name: str = "multilingual",
        device: str | None = None,
        batch_size: int = 32,
    ):
        """
        Initialize the provider.

        Args:
            model_name: Model key or full model name.
            device: Device to run on ('cpu', 'cuda', 'mps', or None for auto).
            batch_size: Batch size for encoding.
        """
        self.batch_size = batch_size
        self._model_name = self.MODELS.get(model_name, model_name)
        self._model = SentenceTransformer(self._model_name, device=device)
        self._dimensions = self._model.get_sentence_embedding_dimension()

    @property
    def name(self) -> str:
        return "sentence-transformers"

    @property
    def model(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        return self._dimensions

    def encode(self, texts: list[str]) -> np.ndarray:
        """
        Encode texts to L2-normalized embeddings.

        Returns:
            NumPy array of shape (len(texts), dimensions).
        """
        embeddings = self._model.encode(
            texts,
            batch_size=self.batch_size,
            normalize_embeddings=True,
            show_progress_bar=False,
        )
        return np.asarray(embeddings)

    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        loop = asyncio.get_running_loop()
        try:
            embeddings = await loop.run_in_executor(None, lambda: self.encode(texts))
        except Exception as e:
            raise ProviderError(f"Failed to generate embedding: {e}") from e
        return [row.tolist() for row in embeddings]
