"""Capture session: per-learner state for turning selections into snippets.

State machine per capture::

    IDLE -> SELECTED -> ANALYZING -> ANALYSIS_READY -> SAVING -> SAVED
                                                   \\-> DISCARDED
    SELECTED -> SAVING -> SAVED                      (direct capture)
    ANALYZING -> IDLE                                (analysis failed)

Every new selection bumps a generation counter. An analysis that resolves
after the selection changed is dropped instead of overwriting the newer
selection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from snippetlab.db import SnippetRow, SnippetValidationError
from snippetlab.models.snippet import DEFAULT_LANGUAGE_CODE, CaptureFields, SnippetCandidate
from snippetlab.selection import extract_selection, is_within_context
from snippetlab.services.snippet_service import SnippetService

logger = logging.getLogger(__name__)


class CaptureState(str, Enum):
    IDLE = "idle"
    SELECTED = "selected"
    ANALYZING = "analyzing"
    ANALYSIS_READY = "analysis_ready"
    SAVING = "saving"
    SAVED = "saved"
    DISCARDED = "discarded"


class InvalidTransitionError(RuntimeError):
    """Raised when an action is not allowed in the session's current state."""

    def __init__(self, action: str, state: CaptureState):
        super().__init__(f"Cannot {action} while {state.value}")
        self.action = action
        self.state = state


@dataclass
class SaveAllResult:
    """Outcome of a sequential, non-atomic save of all pending candidates."""

    saved: list[SnippetRow] = field(default_factory=list)
    error: Exception | None = None
    remaining: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class CaptureSession:
    """Owns the pending selection, the analysis candidate and the save queue."""

    def __init__(
        self,
        service: SnippetService,
        *,
        learning_language: str = DEFAULT_LANGUAGE_CODE,
        base_language: str | None = None,
        tags: tuple[str, ...] = (),
    ):
        self._service = service
        self.learning_language = learning_language
        self.base_language = base_language
        self.tags = tuple(tags)

        self._state = CaptureState.IDLE
        self._current: SnippetCandidate | None = None
        self._pending: list[SnippetCandidate] = []
        self._generation = 0
        self.last_error: str | None = None

    @property
    def state(self) -> CaptureState:
        return self._state

    @property
    def candidate(self) -> SnippetCandidate | None:
        return self._current

    @property
    def pending(self) -> tuple[SnippetCandidate, ...]:
        return tuple(self._pending)

    def select(self, buffer: str, start: int | None, end: int | None) -> SnippetCandidate | None:
        """Take a selection from ``buffer``. Returns None for an empty selection.

        Allowed in any state except SAVING. A selection made while ANALYZING
        supersedes the in-flight request.
        """
        if self._state is CaptureState.SAVING:
            raise InvalidTransitionError("select", self._state)
        text = extract_selection(buffer, start, end)
        if text is None:
            return None

        self._generation += 1
        self._current = SnippetCandidate(
            capture=CaptureFields(
                raw_text=text,
                source_context=buffer,
                language_code=self.learning_language,
                tags=self.tags,
            ),
            selection_start=start,
            selection_end=end,
        )
        self.last_error = None
        self._state = CaptureState.SELECTED
        return self._current

    async def analyze(self) -> SnippetCandidate | None:
        """Request an analysis of the current selection.

        Returns the enriched candidate, or None if the selection changed
        while the request was in flight. Failures reset the session to IDLE
        and propagate.
        """
        if self._state is not CaptureState.SELECTED or self._current is None:
            raise InvalidTransitionError("analyze", self._state)

        generation = self._generation
        candidate = self._current
        self._state = CaptureState.ANALYZING
        try:
            analysis = await self._service.analyze(
                candidate.capture.raw_text,
                candidate.capture.source_context,
                candidate.capture.language_code,
                self.base_language,
            )
        except Exception as e:
            if generation != self._generation:
                logger.info(f"Ignoring failed analysis for superseded selection: {e}")
                return None
            self._current = None
            self._state = CaptureState.IDLE
            self.last_error = str(e)
            raise

        if generation != self._generation:
            logger.info(f"Ignoring stale analysis for '{candidate.capture.raw_text[:40]}'")
            return None

        self._current = candidate.with_analysis(analysis)
        self._state = CaptureState.ANALYSIS_READY
        return self._current

    async def save(self) -> SnippetRow:
        """Persist the current candidate, analysed or not.

        Only capture fields are stored. On failure the session returns to
        the state it was in before saving and the error propagates.
        """
        if self._state not in (CaptureState.SELECTED, CaptureState.ANALYSIS_READY) or self._current is None:
            raise InvalidTransitionError("save", self._state)

        previous = self._state
        candidate = self._current
        # select() and discard() are rejected while SAVING, so the candidate
        # cannot change under the await below
        self._state = CaptureState.SAVING
        try:
            row = await self._persist(candidate)
        except Exception as e:
            self._state = previous
            self.last_error = str(e)
            raise

        self.last_error = None
        self._current = None
        self._state = CaptureState.SAVED
        return row

    def discard(self) -> None:
        """Drop the current candidate without saving."""
        allowed = (CaptureState.SELECTED, CaptureState.ANALYZING, CaptureState.ANALYSIS_READY)
        if self._state not in allowed:
            raise InvalidTransitionError("discard", self._state)
        # Any analysis still in flight now belongs to a dead selection
        self._generation += 1
        self._current = None
        self.last_error = None
        self._state = CaptureState.DISCARDED

    def queue(self) -> SnippetCandidate:
        """Move the current candidate into the pending list for a later save_all()."""
        if self._state not in (CaptureState.SELECTED, CaptureState.ANALYSIS_READY) or self._current is None:
            raise InvalidTransitionError("queue", self._state)
        candidate = self._current
        self._pending.append(candidate)
        self._current = None
        self._state = CaptureState.IDLE
        return candidate

    async def save_all(self) -> SaveAllResult:
        """Save pending candidates one by one, stopping at the first failure.

        Not a transaction: candidates saved before a failure stay saved and
        are removed from the pending list; the failed one and everything
        after it stay pending.

        Each candidate leaves the pending list before its save is awaited,
        so overlapping calls never save the same candidate twice.
        """
        result = SaveAllResult()
        while self._pending:
            candidate = self._pending.pop(0)
            try:
                row = await self._persist(candidate)
            except Exception as e:
                self._pending.insert(0, candidate)
                logger.warning(
                    f"save_all stopped after {len(result.saved)} saved, "
                    f"{len(self._pending)} still pending: {e}"
                )
                result.error = e
                self.last_error = str(e)
                break
            result.saved.append(row)
        result.remaining = len(self._pending)
        if result.ok:
            self.last_error = None
        return result

    async def _persist(self, candidate: SnippetCandidate) -> SnippetRow:
        capture = candidate.capture
        if not is_within_context(capture.raw_text, capture.source_context):
            raise SnippetValidationError(
                "rawText must be taken from sourceContext", field="rawText"
            )
        return await self._service.create_snippet(candidate.to_create_fields())
