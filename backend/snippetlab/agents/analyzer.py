"""
Snippet agents - analysis, flashcards and quiz questions.

Each agent builds its prompt with snippetlab.analysis.prompts, makes one
JSON-mode call (plus bounded retries on malformed output) and parses the
reply tolerantly with snippetlab.analysis.parser.
"""

from __future__ import annotations

from pydantic import Field

from snippetlab.agents.base import AgentInput, AgentOutput, AgentResult, BaseAgent
from snippetlab.analysis.parser import (
    parse_analysis_response,
    parse_flashcard_response,
    parse_quiz_response,
)
from snippetlab.analysis.prompts import (
    build_analysis_request,
    build_flashcard_request,
    build_quiz_request,
)
from snippetlab.models.analysis import AnalysisResult, Flashcard, QuizQuestion


class AnalysisInput(AgentInput):
    """Input for AnalysisAgent. ``language_code`` is the learning language."""
    text: str
    context: str
    base_language: str | None = None


class AnalysisOutput(AgentOutput):
    analysis: AnalysisResult = Field(default_factory=AnalysisResult)


class FlashcardInput(AgentInput):
    snippet: str
    translation: str = ""
    base_language: str = "en"


class FlashcardOutput(AgentOutput):
    flashcards: list[Flashcard] = Field(default_factory=list)


class QuizInput(AgentInput):
    snippet: str
    translation: str = ""
    grammar: list[str] = Field(default_factory=list)


class QuizOutput(AgentOutput):
    quiz: QuizQuestion | None = None


class AnalysisAgent(BaseAgent[AnalysisInput, AnalysisOutput]):
    """Produces the contextual meaning, examples, notes and translation of a snippet."""

    @property
    def name(self) -> str:
        return "AnalysisAgent"

    def execute(self, input_data: AnalysisInput) -> AgentResult[AnalysisOutput]:
        self.reset_stats()
        request = build_analysis_request(
            input_data.text,
            input_data.context,
            input_data.language_code,
            input_data.base_language,
        )
        analysis, attempts = self.complete_json(request, parse_analysis_response)
        self._log_stats(empty=analysis.is_empty)
        return AgentResult(
            output=AnalysisOutput(analysis=analysis, attempts=attempts),
            stats=self.get_stats(),
        )


class FlashcardAgent(BaseAgent[FlashcardInput, FlashcardOutput]):
    """Suggests 2-3 flashcards for a snippet and its translation."""

    @property
    def name(self) -> str:
        return "FlashcardAgent"

    def execute(self, input_data: FlashcardInput) -> AgentResult[FlashcardOutput]:
        self.reset_stats()
        request = build_flashcard_request(
            input_data.snippet,
            input_data.translation,
            input_data.language_code,
            input_data.base_language,
        )
        cards, attempts = self.complete_json(request, parse_flashcard_response)
        self._log_stats(cards=len(cards))
        return AgentResult(
            output=FlashcardOutput(flashcards=cards, attempts=attempts),
            stats=self.get_stats(),
        )


class QuizAgent(BaseAgent[QuizInput, QuizOutput]):
    """Writes one multiple-choice question about a snippet."""

    @property
    def name(self) -> str:
        return "QuizAgent"

    def execute(self, input_data: QuizInput) -> AgentResult[QuizOutput]:
        self.reset_stats()
        request = build_quiz_request(
            input_data.snippet,
            input_data.translation,
            input_data.grammar,
            input_data.language_code,
        )
        quiz, attempts = self.complete_json(request, parse_quiz_response)
        self._log_stats()
        return AgentResult(
            output=QuizOutput(quiz=quiz, attempts=attempts),
            stats=self.get_stats(),
        )
