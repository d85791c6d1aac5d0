"""
Base classes for chat-completion providers.

Summaries are produced by a chat model behind this interface.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class LLMResponse:
    """Completion returned by a provider."""

    content: str
    model: str = ""


class LLMProvider(ABC):
    """
    Abstract base class for chat-completion providers.

    Implementations raise ProviderError on API failure and
    ProviderDisabledError when no credentials are configured.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider name, e.g. "openrouter"."""
        ...

    @property
    @abstractmethod
    def model(self) -> str:
        """Resolved model name."""
        ...

    @abstractmethod
    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> LLMResponse:
        """
        Generate a completion.

        Args:
            messages: Message dicts with 'role' and 'content' keys.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.

        Returns:
            The completion text with the model that produced it.
        """
        ...

    async def chat(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> LLMResponse:
        """Single system + user exchange."""
        return await self.complete(
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
