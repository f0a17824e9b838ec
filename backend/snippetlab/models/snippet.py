"""Snippet capture models and field constraints.

A ``SnippetCandidate`` is the in-memory value a learner builds before saving:
typed capture fields plus an optional analysis for display. Only the capture
fields ever reach the store.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from snippetlab.models.analysis import AnalysisResult

# Field bounds shared by create and update
RAW_TEXT_MAX_LENGTH = 500
LEMMA_MAX_LENGTH = 500
PART_OF_SPEECH_MAX_LENGTH = 50
SOURCE_CONTEXT_MAX_LENGTH = 20_000

DEFAULT_LANGUAGE_CODE = "en"

# Reserved for spaced repetition; nothing schedules reviews yet.
DEFAULT_DIFFICULTY = 0.5
DEFAULT_REVIEW_COUNT = 0

# Fields a partial update may touch
UPDATABLE_FIELDS = ("raw_text", "lemma", "part_of_speech", "language_code", "tags")


@dataclass(frozen=True)
class CaptureFields:
    """Fields taken from a text selection."""

    raw_text: str
    source_context: str
    language_code: str = DEFAULT_LANGUAGE_CODE
    tags: tuple[str, ...] = ()
    lemma: str | None = None
    part_of_speech: str | None = None

    def to_create_fields(self) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "raw_text": self.raw_text,
            "source_context": self.source_context,
            "language_code": self.language_code,
            "tags": list(self.tags),
        }
        if self.lemma is not None:
            fields["lemma"] = self.lemma
        if self.part_of_speech is not None:
            fields["part_of_speech"] = self.part_of_speech
        return fields


@dataclass
class SnippetCandidate:
    """Pending snippet: capture fields plus display-only analysis."""

    capture: CaptureFields
    analysis: AnalysisResult | None = None
    selection_start: int | None = None
    selection_end: int | None = None

    def with_analysis(self, analysis: AnalysisResult) -> SnippetCandidate:
        return replace(self, analysis=analysis)

    def to_create_fields(self) -> dict[str, Any]:
        """Store payload. Analysis fields are not part of the Snippet schema."""
        return self.capture.to_create_fields()
