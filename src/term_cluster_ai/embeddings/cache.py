"""
In-memory embedding cache.

Wraps any EmbeddingProvider so repeated glossary searches for the same text
do not hit the backend again.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import Any

from term_cluster_ai.embeddings.base import EmbeddingProvider


class CachedEmbeddingProvider(EmbeddingProvider):
    """
    Caching decorator for an embedding provider.

    Keys are the trimmed, lower-cased text. Entries expire after `ttl_seconds`
    and the oldest entry is evicted once `max_size` is reached.
    """

    def __init__(
        self,
        inner: EmbeddingProvider,
        max_size: int = 10_000,
        ttl_seconds: float = 7 * 24 * 60 * 60,
    ):
        self._inner = inner
        self._max_size = max_size
        self._ttl = ttl_seconds
        self._cache: OrderedDict[str, tuple[list[float], float]] = OrderedDict()
        self._hits = 0
        self._misses = 0

    @property
    def name(self) -> str:
        return self._inner.name

    @property
    def model(self) -> str:
        return self._inner.model

    @property
    def dimensions(self) -> int:
        return self._inner.dimensions

    @property
    def inner(self) -> EmbeddingProvider:
        return self._inner

    @staticmethod
    def _key(text: str) -> str:
        return text.strip().lower()

    def _lookup(self, key: str) -> list[float] | None:
        cached = self._cache.get(key)
        if cached is None:
            return None
        vector, stored_at = cached
        if time.monotonic() - stored_at >= self._ttl:
            del self._cache[key]
            return None
        return vector

    def _store(self, key: str, vector: list[float]) -> None:
        if key in self._cache:
            del self._cache[key]
        while len(self._cache) >= self._max_size:
            self._cache.popitem(last=False)
        self._cache[key] = (vector, time.monotonic())

    async def _embed_texts(self, texts: list[str]) -> list[list[float]]:
        results: list[list[float] | None] = []
        missing: list[str] = []
        for text in texts:
            vector = self._lookup(self._key(text))
            if vector is None:
                self._misses += 1
                if text not in missing:
                    missing.append(text)
            else:
                self._hits += 1
            results.append(vector)

        if missing:
            generated = dict(zip(missing, await self._inner.embed_batch(missing), strict=True))
            for text, vector in generated.items():
                self._store(self._key(text), vector)
            results = [
                vector if vector is not None else generated[text]
                for text, vector in zip(texts, results, strict=True)
            ]

        return [vector for vector in results if vector is not None]

    def clear(self) -> None:
        """Drop every cached embedding."""
        self._cache.clear()

    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return {
            "size": len(self._cache),
            "max_size": self._max_size,
            "hits": self._hits,
            "misses": self._misses,
        }
