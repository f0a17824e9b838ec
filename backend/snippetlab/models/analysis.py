"""AnalysisResult model for AI-generated lexical breakdowns.

The text-completion service is a prose generator, not a typed RPC, so every
field here is optional. ``from_payload`` destructures an untyped mapping
field by field and drops entries of the wrong shape instead of failing.
"""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnalysisExample(_CamelModel):
    """One usage example with its base-language translation."""

    example: str
    translation: str | None = None


class AnalysisResult(_CamelModel):
    """Ephemeral analysis of a snippet. Never persisted."""

    contextual_explanation: str | None = None
    examples: list[AnalysisExample] = Field(default_factory=list)
    explanations: list[str] = Field(default_factory=list)
    translation: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> AnalysisResult:
        """Build from a decoded service payload, tolerating absent keys."""
        return cls(
            contextual_explanation=_optional_str(data.get("contextualExplanation")),
            examples=_examples(data.get("examples")),
            explanations=_string_list(data.get("explanations")),
            translation=_optional_str(data.get("translation")),
        )

    @property
    def is_empty(self) -> bool:
        return not (
            self.contextual_explanation or self.examples or self.explanations or self.translation
        )


class Flashcard(_CamelModel):
    front: str
    back: str


class QuizQuestion(_CamelModel):
    """Multiple-choice question. ``correct_answer`` indexes ``options``."""

    question: str
    options: list[str] = Field(default_factory=list)
    correct_answer: int | None = None
    explanation: str | None = None

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> QuizQuestion:
        options = _string_list(data.get("options"))
        answer = data.get("correctAnswer")
        if isinstance(answer, bool) or not isinstance(answer, int) or not 0 <= answer < len(options):
            answer = None
        return cls(
            question=_optional_str(data.get("question")) or "",
            options=options,
            correct_answer=answer,
            explanation=_optional_str(data.get("explanation")),
        )


def flashcards_from_payload(data: dict[str, Any]) -> list[Flashcard]:
    """Extract well-formed cards from ``{"flashcards": [...]}``."""
    raw = data.get("flashcards")
    if not isinstance(raw, list):
        return []
    cards: list[Flashcard] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        front = _optional_str(item.get("front"))
        back = _optional_str(item.get("back"))
        if front and back:
            cards.append(Flashcard(front=front, back=back))
    return cards


def _optional_str(value: Any) -> str | None:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return None


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [s for s in (_optional_str(v) for v in value) if s]


def _examples(value: Any) -> list[AnalysisExample]:
    if not isinstance(value, list):
        return []
    examples: list[AnalysisExample] = []
    for item in value:
        if isinstance(item, str):
            text = _optional_str(item)
            if text:
                examples.append(AnalysisExample(example=text))
            continue
        if not isinstance(item, dict):
            continue
        text = _optional_str(item.get("example"))
        if text:
            examples.append(
                AnalysisExample(example=text, translation=_optional_str(item.get("translation")))
            )
    return examples
