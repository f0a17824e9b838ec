"""
Base Agent Class for text-completion tasks.

All agents inherit from BaseAgent and implement the execute() method.
Provides unified LLM access, token tracking, and cost aggregation.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from snippetlab.analysis.parser import ServiceResponseError
from snippetlab.analysis.prompts import CompletionRequest
from snippetlab.llm.providers import LLMProvider, LLMResponse, get_default_model

logger = logging.getLogger(__name__)


class AgentInput(BaseModel):
    """Base input model for all agents."""
    language_code: str


class AgentOutput(BaseModel):
    """Base output model for all agents."""
    success: bool = True
    attempts: int = 1


InputT = TypeVar("InputT", bound=AgentInput)
OutputT = TypeVar("OutputT", bound=AgentOutput)
ParsedT = TypeVar("ParsedT")


@dataclass
class AgentStats:
    """Tracks agent execution statistics."""
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost_usd: float = 0.0
    llm_calls: int = 0

    def add_response(self, response: LLMResponse) -> None:
        """Add token usage from an LLM response."""
        self.input_tokens += response.input_tokens
        self.output_tokens += response.output_tokens
        self.total_tokens += response.total_tokens
        self.cost_usd += response.cost_usd
        self.llm_calls += 1


@dataclass
class AgentResult(Generic[OutputT]):
    """Result wrapper containing output and stats."""
    output: OutputT
    stats: AgentStats = field(default_factory=AgentStats)


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """
    Abstract base class for all text-completion agents.

    Subclasses must implement:
        - name: Agent name for logging
        - execute(): Main agent logic

    Provides:
        - Unified LLM access via self.llm_call()
        - JSON round-trips with bounded retry via self.complete_json()
        - Automatic token/cost tracking
    """

    def __init__(
        self,
        llm: LLMProvider,
        model: str | None = None,
        *,
        temperature: float = 0.3,
        timeout: float = 60.0,
        max_retries: int = 1,
    ):
        """
        Initialize the agent.

        Args:
            llm: LLM provider for API calls
            model: Model to use (defaults to provider's default)
            temperature: Sampling temperature for every call
            timeout: Per-call timeout passed to the provider
            max_retries: Extra attempts after a malformed (non-JSON) response
        """
        self._llm = llm
        self._model = model or get_default_model(llm.provider_type)
        self._temperature = temperature
        self._timeout = timeout
        self._max_retries = max(0, max_retries)
        self._stats = AgentStats()

    @property
    @abstractmethod
    def name(self) -> str:
        """Agent name for logging and identification."""
        pass

    @abstractmethod
    def execute(self, input_data: InputT) -> AgentResult[OutputT]:
        """
        Execute the agent's main logic.

        Args:
            input_data: Typed input for this agent

        Returns:
            AgentResult containing output and execution stats

        Raises:
            ServiceResponseError: When no attempt produced a JSON object
        """
        pass

    @property
    def model(self) -> str:
        return self._model

    def llm_call(self, request: CompletionRequest, max_tokens: int | None = None) -> LLMResponse:
        """
        Make an LLM call with automatic token tracking.

        Args:
            request: Messages plus JSON directive
            max_tokens: Maximum response tokens

        Returns:
            LLMResponse with content and usage
        """
        response = self._llm.chat_completion(
            messages=request.messages,
            model=self._model,
            temperature=self._temperature,
            max_tokens=max_tokens,
            timeout=self._timeout,
            json_mode=request.json_mode,
        )
        self._stats.add_response(response)
        return response

    def complete_json(
        self,
        request: CompletionRequest,
        parse: Callable[[str | None], ParsedT],
    ) -> tuple[ParsedT, int]:
        """Call the service and parse its reply, retrying malformed replies.

        Returns the parsed value and the number of attempts used. Provider
        errors (network, auth) are not retried here; the provider SDKs
        already retry transient failures.
        """
        attempts = 1 + self._max_retries
        attempt = 1
        while True:
            response = self.llm_call(request)
            try:
                return parse(response.content), attempt
            except ServiceResponseError as e:
                logger.warning(
                    f"{self.name}: unusable response on attempt {attempt}/{attempts}: {e}"
                )
                if attempt >= attempts:
                    raise
            attempt += 1

    def get_stats(self) -> AgentStats:
        """Get current execution statistics."""
        return self._stats

    def reset_stats(self) -> None:
        """Reset execution statistics for a new request."""
        self._stats = AgentStats()

    def _log_stats(self, **extra: Any) -> None:
        stats = self._stats
        details = " ".join(f"{k}={v}" for k, v in extra.items())
        logger.info(
            f"{self.name} done: calls={stats.llm_calls} tokens={stats.total_tokens} "
            f"cost=${stats.cost_usd:.5f} model={self._model} {details}".rstrip()
        )
