"""
Text-completion providers behind one interface.

Every snippet analysis is a single chat round-trip that should come back as
one JSON object. Each provider maps ``json_mode`` onto whatever its API offers
for that: OpenAI's ``response_format``, Ollama's ``format`` field, and for
Anthropic (which has neither) the system prompt alone.

Usage:
    from snippetlab.llm import get_llm_client

    client = get_llm_client("ollama", ollama_base_url="http://localhost:11434")
    reply = client.chat_completion(messages, model="llama3.1", json_mode=True)
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx


class LLMProviderType(str, Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    OLLAMA = "ollama"


DEFAULT_MODELS = {
    LLMProviderType.OPENAI: "gpt-4o-mini",
    LLMProviderType.ANTHROPIC: "claude-3-5-haiku-20241022",
    LLMProviderType.OLLAMA: "llama3.1",
}

# USD per 1M (input, output) tokens, keyed by model-name prefix.
# Models not listed here (local Ollama models included) are reported as free.
PRICE_PER_MILLION = {
    "gpt-4o-mini": (0.15, 0.60),
    "claude-3-5-haiku": (0.80, 4.00),
}


def get_default_model(provider: LLMProviderType) -> str:
    return DEFAULT_MODELS[provider]


@dataclass
class LLMResponse:
    """Reply text plus token usage for one completion."""
    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    @property
    def cost_usd(self) -> float:
        for prefix, (input_price, output_price) in PRICE_PER_MILLION.items():
            if self.model.lower().startswith(prefix):
                return (self.input_tokens * input_price + self.output_tokens * output_price) / 1_000_000
        return 0.0


class LLMProvider(ABC):
    """A chat-completion backend."""

    @abstractmethod
    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        timeout: float = 60.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        """
        Send one chat request and wait for the full reply.

        Args:
            messages: Dicts with 'role' ('system' or 'user') and 'content'
            model: Model identifier
            temperature: Sampling temperature
            max_tokens: Reply length cap, provider default when None
            timeout: Request timeout in seconds
            json_mode: Ask for a single JSON object as the reply
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the provider can take requests (credentials or server present)."""

    @property
    @abstractmethod
    def provider_type(self) -> LLMProviderType:
        ...


class OpenAIProvider(LLMProvider):
    def __init__(self, api_key: str | None = None, base_url: str | None = None):
        self._api_key = api_key
        self._base_url = base_url
        self._client: Any = None

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OPENAI

    def is_available(self) -> bool:
        return bool(self._api_key)

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        timeout: float = 60.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self._api_key, base_url=self._base_url)

        request: dict[str, Any] = {"model": model, "messages": messages, "temperature": temperature}
        if max_tokens:
            request["max_tokens"] = max_tokens
        if json_mode:
            request["response_format"] = {"type": "json_object"}

        completion = self._client.chat.completions.create(timeout=timeout, **request)
        usage = completion.usage
        return LLMResponse(
            content=completion.choices[0].message.content or "",
            model=completion.model,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
        )


class AnthropicProvider(LLMProvider):
    """Messages API. The system prompt travels in its own parameter."""

    DEFAULT_MAX_TOKENS = 2048

    def __init__(self, api_key: str | None = None):
        self._api_key = api_key
        self._client: Any = None

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.ANTHROPIC

    def is_available(self) -> bool:
        return bool(self._api_key)

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        timeout: float = 60.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        if self._client is None:
            from anthropic import Anthropic
            self._client = Anthropic(api_key=self._api_key)

        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        request: dict[str, Any] = {
            "model": model,
            "messages": [m for m in messages if m["role"] != "system"],
            "max_tokens": max_tokens or self.DEFAULT_MAX_TOKENS,
            "temperature": temperature,
        }
        if system:
            request["system"] = system

        reply = self._client.messages.create(timeout=timeout, **request)
        text = "".join(getattr(block, "text", "") for block in reply.content or [])
        usage = reply.usage
        return LLMResponse(
            content=text,
            model=reply.model,
            input_tokens=usage.input_tokens if usage else 0,
            output_tokens=usage.output_tokens if usage else 0,
        )


class OllamaProvider(LLMProvider):
    """Local Ollama server over its HTTP chat API."""

    def __init__(self, base_url: str = "http://localhost:11434"):
        self._base_url = base_url.rstrip("/")
        self._reachable: bool | None = None

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OLLAMA

    def is_available(self) -> bool:
        """Probe the server once and remember the answer."""
        if self._reachable is None:
            try:
                self._reachable = httpx.get(f"{self._base_url}/api/tags", timeout=5.0).status_code == 200
            except httpx.HTTPError:
                self._reachable = False
        return self._reachable

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        timeout: float = 60.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        options: dict[str, Any] = {"temperature": temperature}
        if max_tokens:
            options["num_predict"] = max_tokens
        body: dict[str, Any] = {"model": model, "messages": messages, "stream": False, "options": options}
        if json_mode:
            body["format"] = "json"

        response = httpx.post(f"{self._base_url}/api/chat", json=body, timeout=timeout)
        response.raise_for_status()
        data = response.json()
        return LLMResponse(
            content=(data.get("message") or {}).get("content", ""),
            model=data.get("model", model),
            input_tokens=data.get("prompt_eval_count", 0),
            output_tokens=data.get("eval_count", 0),
        )


def get_llm_client(
    provider: LLMProviderType | str | None = None,
    *,
    openai_api_key: str | None = None,
    openai_base_url: str | None = None,
    anthropic_api_key: str | None = None,
    ollama_base_url: str | None = None,
) -> LLMProvider:
    """
    Build the provider for ``provider`` (default: SNIPPETLAB_LLM_PROVIDER, then openai).

    Keys and URLs not passed in are read from OPENAI_API_KEY, OPENAI_BASE_URL,
    ANTHROPIC_API_KEY and OLLAMA_BASE_URL. The Ollama check makes a network
    request, so call this off the event loop.

    Raises:
        ValueError: Unknown provider, missing API key, or Ollama unreachable
    """
    kind = LLMProviderType(
        (provider or os.environ.get("SNIPPETLAB_LLM_PROVIDER") or "openai").lower()
    )

    client: LLMProvider
    if kind is LLMProviderType.OPENAI:
        client = OpenAIProvider(
            api_key=openai_api_key or os.environ.get("OPENAI_API_KEY"),
            base_url=openai_base_url or os.environ.get("OPENAI_BASE_URL"),
        )
        missing = "OpenAI provider requires OPENAI_API_KEY"
    elif kind is LLMProviderType.ANTHROPIC:
        client = AnthropicProvider(api_key=anthropic_api_key or os.environ.get("ANTHROPIC_API_KEY"))
        missing = "Anthropic provider requires ANTHROPIC_API_KEY"
    else:
        base_url = ollama_base_url or os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
        client = OllamaProvider(base_url=base_url)
        missing = f"Ollama server not available at {base_url}"

    if not client.is_available():
        raise ValueError(missing)
    return client
