"""
OpenAI embedding provider.

Uses the embeddings endpoint of the OpenAI API (or any compatible base URL).
"""

from __future__ import annotations

import asyncio

import openai
from openai import AsyncOpenAI

from term_cluster_ai.embeddings.base import EmbeddingProvider
from term_cluster_ai.errors import ProviderDisabledError, ProviderError
from term_cluster_ai.vectors import validate_dimensions


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """
    OpenAI embedding provider.

    Without an API key the provider stays constructible but every call
    raises ProviderDisabledError, so callers can degrade gracefully.
    """

    DEFAULT_MODEL = "text-embedding-3-small"
    DEFAULT_DIMENSIONS = 1536

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        dimensions: int = DEFAULT_DIMENSIONS,
        base_url: str | None = None,
        timeout: float = 30.0,
        max_retries: int = 3,
    ):
        """
        Initialize OpenAI embedding provider.

        Args:
            api_key: OpenAI API key (empty disables the provider).
            model: Embedding model name.
            dimensions: Expected vector size.
            base_url: Optional API base URL.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts for transient failures.
        """
        self._model_name = model
        self._dimensions = dimensions
        self._max_retries = max(1, max_retries)
        self._client: AsyncOpenAI | None = None
        if api_key and api_key.strip():
            self._client = AsyncOpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=0,
            )

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model_name

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        if self._client is None:
            raise ProviderDisabledError("OPENAI_API_KEY is not configured")

        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                response = await self._client.embeddings.create(
                    model=self._model_name,
                    input=texts,
                )
                break
            except openai.AuthenticationError as e:
                raise ProviderError(
                    "Invalid OpenAI API key. Please check your OPENAI_API_KEY."
                ) from e
            except openai.RateLimitError as e:
                last_error = ProviderError("OpenAI API rate limit exceeded. Please try again later.")
                last_error.__cause__ = e
            except openai.APIStatusError as e:
                if e.status_code < 500:
                    raise ProviderError(f"Failed to generate embedding: {e.message}") from e
                last_error = ProviderError("OpenAI API server error. Please try again later.")
                last_error.__cause__ = e
            except openai.APIError as e:
                last_error = ProviderError(f"Failed to generate embedding: {e}")
                last_error.__cause__ = e

            if attempt < self._max_retries - 1:
                # Exponential backoff
                await asyncio.sleep(2**attempt)
        else:
            raise last_error or ProviderError("OpenAI embedding request failed after retries")

        vectors = [item.embedding for item in sorted(response.data, key=lambda d: d.index)]
        for vector in vectors:
            try:
                validate_dimensions(vector, self._dimensions)
            except ValueError as e:
                raise ProviderError(str(e)) from e
        return vectors
