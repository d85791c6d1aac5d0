"""
Chat-completion providers used for summaries.

Supports:
- OpenRouter (default): pay-per-token access to many models
- OpenAI: the same client pointed at api.openai.com
"""

from term_cluster_ai.llm.base import LLMProvider, LLMResponse
from term_cluster_ai.llm.factory import create_llm_provider

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "create_llm_provider",
]
