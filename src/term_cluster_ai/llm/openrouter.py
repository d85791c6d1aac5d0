"""
OpenRouter chat provider.

Talks to any OpenAI-compatible chat-completions endpoint; OpenRouter by
default, OpenAI itself when given its base URL.
"""

from __future__ import annotations

import asyncio

import openai
from openai import AsyncOpenAI

from term_cluster_ai.errors import ProviderDisabledError, ProviderError
from term_cluster_ai.llm.base import LLMProvider, LLMResponse

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenRouterProvider(LLMProvider):
    """
    Chat-completion provider for OpenRouter and compatible APIs.

    Without an API key every call raises ProviderDisabledError.
    """

    # Model aliases for convenience
    MODELS = {
        "default": "anthropic/claude-3-haiku",
        "fast": "anthropic/claude-3-haiku",
        "quality": "anthropic/claude-sonnet-4.5",
        "deepseek": "deepseek/deepseek-chat",
        "gpt": "openai/gpt-4o-mini",
    }

    def __init__(
        self,
        api_key: str,
        model: str = "default",
        base_url: str = OPENROUTER_BASE_URL,
        timeout: float = 60.0,
        max_retries: int = 3,
        provider_name: str = "openrouter",
    ):
        """
        Initialize the provider.

        Args:
            api_key: API key (empty disables the provider).
            model: Model key (from MODELS) or full model name.
            base_url: API base URL.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts on transient failure.
            provider_name: Name reported in logs.
        """
        self._model_name = self.MODELS.get(model, model)
        self._max_retries = max(1, max_retries)
        self._provider_name = provider_name
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
        return self._provider_name

    @property
    def model(self) -> str:
        return self._model_name

    @property
    def enabled(self) -> bool:
        return self._client is not None

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        temperature: float = 0.3,
        max_tokens: int = 500,
    ) -> LLMResponse:
        if self._client is None:
            raise ProviderDisabledError(f"{self._provider_name} API key is not configured")

        last_error: ProviderError | None = None

        for attempt in range(self._max_retries):
            try:
                response = await self._client.chat.completions.create(
                    model=self._model_name,
                    messages=messages,  # type: ignore[arg-type]
                    temperature=temperature,
                    max_tokens=max_tokens,
                )
            except openai.AuthenticationError as e:
                raise ProviderError(f"Invalid {self._provider_name} API key") from e
            except openai.APIStatusError as e:
                if e.status_code < 500 and e.status_code != 429:
                    raise ProviderError(f"Completion request rejected: {e.message}") from e
                last_error = ProviderError(f"Completion request failed ({e.status_code})")
                last_error.__cause__ = e
            except openai.APIError as e:
                last_error = ProviderError(f"Completion request failed: {e}")
                last_error.__cause__ = e
            else:
                if not response.choices:
                    raise ProviderError("Completion returned no choices")
                content = response.choices[0].message.content or ""
                return LLMResponse(content=content.strip(), model=self._model_name)

            if attempt < self._max_retries - 1:
                # Exponential backoff
                await asyncio.sleep(2**attempt)

        raise last_error or ProviderError("Completion request failed after retries")
