from snippetlab.models.analysis import (
    AnalysisExample,
    AnalysisResult,
    Flashcard,
    QuizQuestion,
    flashcards_from_payload,
)
from snippetlab.models.snippet import (
    DEFAULT_DIFFICULTY,
    DEFAULT_LANGUAGE_CODE,
    DEFAULT_REVIEW_COUNT,
    LEMMA_MAX_LENGTH,
    PART_OF_SPEECH_MAX_LENGTH,
    RAW_TEXT_MAX_LENGTH,
    SOURCE_CONTEXT_MAX_LENGTH,
    UPDATABLE_FIELDS,
    CaptureFields,
    SnippetCandidate,
)

__all__ = [
    "AnalysisExample",
    "AnalysisResult",
    "CaptureFields",
    "DEFAULT_DIFFICULTY",
    "DEFAULT_LANGUAGE_CODE",
    "DEFAULT_REVIEW_COUNT",
    "Flashcard",
    "LEMMA_MAX_LENGTH",
    "PART_OF_SPEECH_MAX_LENGTH",
    "QuizQuestion",
    "RAW_TEXT_MAX_LENGTH",
    "SOURCE_CONTEXT_MAX_LENGTH",
    "SnippetCandidate",
    "UPDATABLE_FIELDS",
    "flashcards_from_payload",
]
