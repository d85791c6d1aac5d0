"""
Embedding provider abstraction layer.

Supports:
- sentence-transformers (default): local multilingual models
- OpenAI: hosted embeddings via the OpenAI API
"""

from term_cluster_ai.embeddings.base import EmbeddingProvider
from term_cluster_ai.embeddings.cache import CachedEmbeddingProvider
from term_cluster_ai.embeddings.factory import create_embedding_provider

__all__ = [
    "EmbeddingProvider",
    "CachedEmbeddingProvider",
    "create_embedding_provider",
]
