"""AI provider adapters."""

from .base import BaseProvider, ProviderResponse
from .claude_provider import ClaudeProvider
from .openai_provider import OpenAIProvider
from .gemini_provider import GeminiProvider
from .perplexity_provider import PerplexityProvider


def build_default_providers() -> list[BaseProvider]:
    """설정 기반 기본 프로바이더 목록."""
    return [
        GeminiProvider(),
        OpenAIProvider(),
        ClaudeProvider(),
        PerplexityProvider(),
    ]


__all__ = [
    "BaseProvider",
    "ProviderResponse",
    "ClaudeProvider",
    "OpenAIProvider",
    "GeminiProvider",
    "PerplexityProvider",
    "build_default_providers",
]
