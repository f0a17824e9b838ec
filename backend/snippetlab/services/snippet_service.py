"""Snippet service: the boundary between callers and the store/AI collaborators.

Store calls run in worker threads. AI calls, including provider construction,
run in worker threads under an explicit timeout, so neither blocks the event
loop or other requests.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar

import anyio

from snippetlab import db
from snippetlab.agents.analyzer import (
    AnalysisAgent,
    AnalysisInput,
    FlashcardAgent,
    FlashcardInput,
    QuizAgent,
    QuizInput,
)
from snippetlab.agents.base import AgentInput, AgentResult, BaseAgent
from snippetlab.analysis.parser import AnalysisTimeoutError
from snippetlab.db import SnippetNotFoundError, SnippetRow, SnippetValidationError
from snippetlab.llm.providers import LLMProvider
from snippetlab.models.analysis import AnalysisResult, Flashcard, QuizQuestion
from snippetlab.models.snippet import UPDATABLE_FIELDS

logger = logging.getLogger(__name__)

T = TypeVar("T")

CREATE_FIELDS = ("raw_text", "source_context", "lemma", "part_of_speech", "language_code", "tags")


class SnippetService:
    """Lifecycle and analysis operations over the snippet store."""

    def __init__(
        self,
        db_path: Path,
        llm: LLMProvider | Callable[[], LLMProvider] | None = None,
        *,
        model: str | None = None,
        temperature: float = 0.3,
        analysis_timeout_s: float = 60.0,
        max_retries: int = 1,
        default_language: str = "en",
        default_base_language: str = "en",
        list_limit: int | None = None,
    ):
        """
        Args:
            db_path: SQLite database file
            llm: Provider, or a zero-argument factory called on first AI use
                so CRUD-only callers never need provider credentials
            model: Model name (defaults to the provider's default)
            temperature: Sampling temperature for AI calls
            analysis_timeout_s: Upper bound on one AI round-trip including retries
            max_retries: Extra attempts after a malformed AI response
            default_language: Learning language when a study-material request omits it
            default_base_language: Base language when a request omits it
            list_limit: Maximum rows returned by list_snippets()
        """
        self._db_path = db_path
        self._llm_source = llm
        self._llm: LLMProvider | None = llm if isinstance(llm, LLMProvider) else None
        self._model = model
        self._temperature = temperature
        self._timeout_s = analysis_timeout_s
        self._max_retries = max_retries
        self._default_language = default_language
        self._default_base_language = default_base_language
        self._list_limit = list_limit

    # ------------------------------------------------------------------
    # Store operations
    # ------------------------------------------------------------------

    async def list_snippets(self, *, language_code: str | None = None, tag: str | None = None) -> list[SnippetRow]:
        return await self._in_thread(
            db.list_snippets,
            self._db_path,
            language_code=language_code,
            tag=tag,
            limit=self._list_limit,
        )

    async def get_snippet(self, snippet_id: str) -> SnippetRow:
        row = await self._in_thread(db.get_snippet, self._db_path, snippet_id)
        if row is None:
            raise SnippetNotFoundError(snippet_id)
        return row

    async def create_snippet(self, fields: Mapping[str, Any]) -> SnippetRow:
        """Persist a snippet. Keys outside the create schema are ignored."""
        payload = {k: v for k, v in fields.items() if k in CREATE_FIELDS}
        try:
            return await self._in_thread(db.create_snippet, self._db_path, **payload)
        except SnippetValidationError as e:
            logger.warning(f"Rejected snippet create: {e}")
            raise

    async def update_snippet(self, snippet_id: str, fields: Mapping[str, Any]) -> SnippetRow:
        payload = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS}
        try:
            row = await self._in_thread(db.update_snippet, self._db_path, snippet_id, **payload)
        except SnippetValidationError as e:
            logger.warning(f"Rejected update of snippet {snippet_id}: {e}")
            raise
        if row is None:
            raise SnippetNotFoundError(snippet_id)
        return row

    async def delete_snippet(self, snippet_id: str) -> str:
        deleted = await self._in_thread(db.delete_snippet, self._db_path, snippet_id)
        if deleted is None:
            raise SnippetNotFoundError(snippet_id)
        return deleted

    # ------------------------------------------------------------------
    # Text-completion operations
    # ------------------------------------------------------------------

    async def analyze(
        self,
        text: str | None,
        context: str | None,
        learning_language: str | None,
        base_language: str | None = None,
    ) -> AnalysisResult:
        """Run the analysis round-trip for a selected snippet.

        Raises:
            SnippetValidationError: text, context or learning language missing
            ServiceResponseError: empty or non-JSON service output
            AnalysisTimeoutError: no answer within the configured timeout
        """
        if not text or not context or not learning_language:
            raise SnippetValidationError("Text, context and learning language are required")

        input_data = AnalysisInput(
            text=text,
            context=context,
            language_code=learning_language,
            base_language=base_language or self._default_base_language,
        )
        result = await self._with_timeout(self._run_agent, AnalysisAgent, input_data)
        return result.output.analysis

    async def generate_flashcards(
        self,
        snippet: str | None,
        translation: str | None,
        language: str | None,
    ) -> list[Flashcard]:
        if not snippet:
            raise SnippetValidationError("Snippet text is required", field="snippet")
        input_data = FlashcardInput(
            snippet=snippet,
            translation=translation or "",
            language_code=language or self._default_language,
            base_language=self._default_base_language,
        )
        result = await self._with_timeout(self._run_agent, FlashcardAgent, input_data)
        return result.output.flashcards

    async def generate_quiz(
        self,
        snippet: str | None,
        translation: str | None,
        grammar: list[str] | None,
        language: str | None,
    ) -> QuizQuestion:
        if not snippet:
            raise SnippetValidationError("Snippet text is required", field="snippet")
        input_data = QuizInput(
            snippet=snippet,
            translation=translation or "",
            grammar=grammar or [],
            language_code=language or self._default_language,
        )
        result = await self._with_timeout(self._run_agent, QuizAgent, input_data)
        return result.output.quiz or QuizQuestion(question="")

    # ------------------------------------------------------------------

    def _get_llm(self) -> LLMProvider:
        if self._llm is None:
            if self._llm_source is None:
                raise ValueError("No text-completion provider configured")
            self._llm = self._llm_source()
        return self._llm

    def _run_agent(self, agent_cls: type[BaseAgent], input_data: AgentInput) -> AgentResult:
        # Runs in a worker thread: building the provider may itself do network I/O
        agent = agent_cls(
            self._get_llm(),
            model=self._model,
            temperature=self._temperature,
            timeout=self._timeout_s,
            max_retries=self._max_retries,
        )
        return agent.execute(input_data)

    async def _with_timeout(self, func: Callable[..., T], *args: Any) -> T:
        # The worker thread cannot be interrupted; on timeout it is abandoned
        # and its eventual result dropped.
        try:
            with anyio.fail_after(self._timeout_s):
                return await anyio.to_thread.run_sync(
                    functools.partial(func, *args), abandon_on_cancel=True
                )
        except TimeoutError as e:
            logger.warning(f"Text-completion call timed out after {self._timeout_s:g}s")
            raise AnalysisTimeoutError(self._timeout_s) from e

    @staticmethod
    async def _in_thread(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        return await anyio.to_thread.run_sync(functools.partial(func, *args, **kwargs))
