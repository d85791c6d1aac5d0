"""
Chat provider factory.

Creates the configured summarization backend.
"""

from __future__ import annotations

from term_cluster_ai.config import SummarizationConfig, SummaryBackend
from term_cluster_ai.llm.base import LLMProvider


def create_llm_provider(config: SummarizationConfig) -> LLMProvider | None:
    """
    Create a chat provider from configuration.

    Args:
        config: Summarization section of the settings.

    Returns:
        LLMProvider instance, or None when summarization is disabled.

    Examples:
        # OpenRouter (pay-per-token)
        provider = create_llm_provider(
            SummarizationConfig(api_key="sk-or-...", model="fast")
        )

        # OpenAI directly
        provider = create_llm_provider(
            SummarizationConfig(provider="openai", api_key="sk-...", model="gpt-4o-mini")
        )
    """
    if config.provider == SummaryBackend.NONE:
        return None

    from term_cluster_ai.llm.openrouter import (
        OPENAI_BASE_URL,
        OPENROUTER_BASE_URL,
        OpenRouterProvider,
    )

    if config.provider == SummaryBackend.OPENROUTER:
        return OpenRouterProvider(
            api_key=config.api_key,
            model=config.model,
            base_url=OPENROUTER_BASE_URL,
        )

    if config.provider == SummaryBackend.OPENAI:
        model = "gpt-4o-mini" if config.model == "default" else config.model
        return OpenRouterProvider(
            api_key=config.api_key,
            model=model,
            base_url=OPENAI_BASE_URL,
            provider_name="openai",
        )

    raise ValueError(f"Unknown summarization provider: {config.provider}")
