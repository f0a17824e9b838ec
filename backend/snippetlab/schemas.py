from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from snippetlab.db import SnippetRow
from snippetlab.models.analysis import AnalysisResult, Flashcard


class CamelModel(BaseModel):
    """Snippet payloads use camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SnippetCreateRequest(CamelModel):
    # Presence and bounds are checked by the store so every violation is a 400
    raw_text: str | None = None
    lemma: str | None = None
    part_of_speech: str | None = None
    language_code: str | None = None
    source_context: str | None = None
    tags: list[str] | None = None


class SnippetUpdateRequest(CamelModel):
    raw_text: str | None = None
    lemma: str | None = None
    part_of_speech: str | None = None
    language_code: str | None = None
    tags: list[str] | None = None


class SnippetOut(CamelModel):
    id: str
    raw_text: str
    lemma: str | None = None
    part_of_speech: str | None = None
    language_code: str
    source_context: str
    tags: list[str] = Field(default_factory=list)
    difficulty: float
    next_review: str | None = None
    review_count: int
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: SnippetRow) -> SnippetOut:
        return cls(
            id=row.id,
            raw_text=row.raw_text,
            lemma=row.lemma,
            part_of_speech=row.part_of_speech,
            language_code=row.language_code,
            source_context=row.source_context,
            tags=list(row.tags),
            difficulty=row.difficulty,
            next_review=row.next_review_utc,
            review_count=row.review_count,
            created_at=row.created_at_utc,
            updated_at=row.updated_at_utc,
        )


class SnippetDeleted(BaseModel):
    message: str
    id: str


class AnalyzeRequest(BaseModel):
    text: str | None = None
    context: str | None = None
    learning_language: str | None = None
    base_language: str | None = None


class AnalyzeResponse(BaseModel):
    text: str
    analysis: AnalysisResult


class FlashcardRequest(BaseModel):
    snippet: str | None = None
    translation: str | None = None
    language: str | None = None


class FlashcardResponse(BaseModel):
    flashcards: list[Flashcard]


class QuizRequest(BaseModel):
    snippet: str | None = None
    translation: str | None = None
    grammar: list[str] = Field(default_factory=list)
    language: str | None = None


class AppStatus(BaseModel):
    version: str
    llm_provider: str
    llm_model: str
    openai_key_present: bool
    anthropic_key_present: bool
    ollama_base_url: str
    analysis_timeout_s: float
    db_ok: bool
