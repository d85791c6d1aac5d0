"""
Embedding provider factory.

Creates the configured embedding provider, optionally wrapped in a cache.
"""

from __future__ import annotations

from term_cluster_ai.config import EmbeddingBackend, EmbeddingConfig
from term_cluster_ai.embeddings.base import EmbeddingProvider


def create_embedding_provider(config: EmbeddingConfig) -> EmbeddingProvider | None:
    """
    Create an embedding provider from configuration.

    Args:
        config: Embedding section of the settings.

    Returns:
        EmbeddingProvider instance, or None when embeddings are disabled.

    Raises:
        ValueError: If the provider type is unknown.

    Examples:
        # Local multilingual model
        provider = create_embedding_provider(EmbeddingConfig(model="fast"))

        # OpenAI (1536 dimensions)
        provider = create_embedding_provider(
            EmbeddingConfig(provider="openai", openai_api_key="sk-...")
        )
    """
    backend = config.provider
    if isinstance(backend, str) and not isinstance(backend, EmbeddingBackend):
        try:
            backend = EmbeddingBackend(backend.lower().replace("_", "-"))
        except ValueError:
            valid = [p.value for p in EmbeddingBackend]
            raise ValueError(
                f"Invalid embedding provider: {config.provider}. Valid options: {valid}"
            ) from None

    provider: EmbeddingProvider
    if backend == EmbeddingBackend.NONE:
        return None

    if backend == EmbeddingBackend.SENTENCE_TRANSFORMERS:
        from term_cluster_ai.embeddings.sentence_transformer import SentenceTransformerProvider

        provider = SentenceTransformerProvider(
            model_name=config.model or "multilingual",
            device=config.device,
            batch_size=config.batch_size,
        )

    elif backend == EmbeddingBackend.OPENAI:
        from term_cluster_ai.embeddings.openai import OpenAIEmbeddingProvider

        provider = OpenAIEmbeddingProvider(
            api_key=config.openai_api_key,
            model=config.model or OpenAIEmbeddingProvider.DEFAULT_MODEL,
            dimensions=config.dimensions,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_retries=config.max_retries,
        )

    else:
        raise ValueError(f"Unknown embedding provider: {backend}")

    if config.cache_enabled:
        from term_cluster_ai.embeddings.cache import CachedEmbeddingProvider

        provider = CachedEmbeddingProvider(
            provider,
            max_size=config.cache_max_size,
            ttl_seconds=config.cache_ttl_seconds,
        )

    return provider
