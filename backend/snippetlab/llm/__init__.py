"""
Text-completion providers (OpenAI, Anthropic, Ollama) with JSON-mode chat.

Usage:
    from snippetlab.llm import get_llm_client, LLMProviderType

    client = get_llm_client(LLMProviderType.OPENAI)
"""

from snippetlab.llm.providers import (
    DEFAULT_MODELS,
    AnthropicProvider,
    LLMProvider,
    LLMProviderType,
    LLMResponse,
    OllamaProvider,
    OpenAIProvider,
    get_default_model,
    get_llm_client,
)

__all__ = [
    "LLMProvider",
    "LLMProviderType",
    "LLMResponse",
    "OpenAIProvider",
    "AnthropicProvider",
    "OllamaProvider",
    "get_llm_client",
    "get_default_model",
    "DEFAULT_MODELS",
]
