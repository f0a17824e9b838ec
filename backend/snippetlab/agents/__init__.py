"""Text-completion agents for snippet analysis and study material."""

from snippetlab.agents.analyzer import (
    AnalysisAgent,
    AnalysisInput,
    AnalysisOutput,
    FlashcardAgent,
    FlashcardInput,
    FlashcardOutput,
    QuizAgent,
    QuizInput,
    QuizOutput,
)
from snippetlab.agents.base import AgentInput, AgentOutput, AgentResult, AgentStats, BaseAgent

__all__ = [
    "AgentInput",
    "AgentOutput",
    "AgentResult",
    "AgentStats",
    "AnalysisAgent",
    "AnalysisInput",
    "AnalysisOutput",
    "BaseAgent",
    "FlashcardAgent",
    "FlashcardInput",
    "FlashcardOutput",
    "QuizAgent",
    "QuizInput",
    "QuizOutput",
]
