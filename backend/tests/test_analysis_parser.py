"""Tests for decoding text-completion responses."""
from __future__ import annotations

import json

import pytest

from snippetlab.analysis.parser import (
    AnalysisTimeoutError,
    ServiceResponseError,
    decode_json_object,
    parse_analysis_response,
    parse_flashcard_response,
    parse_quiz_response,
)


class TestDecodeJsonObject:
    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_empty_response(self, content) -> None:
        with pytest.raises(ServiceResponseError, match="No response"):
            decode_json_object(content)

    def test_non_json_response(self) -> None:
        with pytest.raises(ServiceResponseError) as exc_info:
            decode_json_object("I'm sorry, I can't help with that.")
        assert exc_info.value.raw_response == "I'm sorry, I can't help with that."
        assert isinstance(exc_info.value.parse_error, json.JSONDecodeError)
        assert exc_info.value.is_retryable is True

    def test_json_that_is_not_an_object(self) -> None:
        with pytest.raises(ServiceResponseError, match="not an object"):
            decode_json_object('["funny"]')

    def test_code_fenced_json(self) -> None:
        content = 'Here you go:\n```json\n{"translation": "funny"}\n```'
        assert decode_json_object(content) == {"translation": "funny"}


class TestParseAnalysisResponse:
    def test_full_response(self, sample_analysis) -> None:
        result = parse_analysis_response(json.dumps(sample_analysis))

        assert result.translation == "funny"
        assert result.contextual_explanation.startswith("Here 'lustig'")
        assert len(result.examples) == 3
        assert result.examples[0].example == "Der Film war sehr lustig."
        assert result.examples[0].translation == "The film was very funny."
        assert len(result.explanations) == 2

    def test_partial_response_leaves_other_fields_absent(self) -> None:
        result = parse_analysis_response('{"translation":"funny"}')

        assert result.translation == "funny"
        assert result.contextual_explanation is None
        assert result.examples == []
        assert result.explanations == []
        assert result.is_empty is False

    def test_empty_object_is_an_empty_analysis(self) -> None:
        assert parse_analysis_response("{}").is_empty is True

    def test_wrongly_shaped_fields_are_dropped(self) -> None:
        payload = {
            "contextualExplanation": 42,
            "examples": [{"translation": "no example text"}, "Das ist lustig.", 7],
            "explanations": "a single explanation",
            "translation": ["funny"],
        }
        result = parse_analysis_response(json.dumps(payload))

        assert result.contextual_explanation is None
        assert [e.example for e in result.examples] == ["Das ist lustig."]
        assert result.examples[0].translation is None
        assert result.explanations == ["a single explanation"]
        assert result.translation is None

    def test_serializes_with_camel_case_keys(self, sample_analysis) -> None:
        result = parse_analysis_response(json.dumps(sample_analysis))
        dumped = result.model_dump(by_alias=True)
        assert "contextualExplanation" in dumped
        assert dumped["translation"] == "funny"

    def test_non_json_raises(self) -> None:
        with pytest.raises(ServiceResponseError):
            parse_analysis_response("funny")


class TestParseFlashcardResponse:
    def test_well_formed_cards(self) -> None:
        content = json.dumps(
            {"flashcards": [{"front": "lustig", "back": "funny"}, {"front": "machen", "back": "to make"}]}
        )
        cards = parse_flashcard_response(content)
        assert [(c.front, c.back) for c in cards] == [("lustig", "funny"), ("machen", "to make")]

    def test_incomplete_cards_skipped(self) -> None:
        content = json.dumps({"flashcards": [{"front": "lustig"}, "card", {"front": "a", "back": "b"}]})
        assert len(parse_flashcard_response(content)) == 1

    def test_missing_key(self) -> None:
        assert parse_flashcard_response('{"cards": []}') == []


class TestParseQuizResponse:
    def test_valid_question(self) -> None:
        content = json.dumps(
            {
                "question": "What does 'lustig' mean?",
                "options": ["sad", "funny", "tired", "hungry"],
                "correctAnswer": 1,
                "explanation": "'Lustig' means funny.",
            }
        )
        quiz = parse_quiz_response(content)
        assert quiz.correct_answer == 1
        assert quiz.options[quiz.correct_answer] == "funny"

    @pytest.mark.parametrize("answer", [4, -1, "1", True, None])
    def test_invalid_answer_index_dropped(self, answer) -> None:
        content = json.dumps({"question": "Q?", "options": ["a", "b", "c", "d"], "correctAnswer": answer})
        assert parse_quiz_response(content).correct_answer is None


class TestAnalysisTimeoutError:
    def test_not_retryable(self) -> None:
        err = AnalysisTimeoutError(2.5)
        assert isinstance(err, ServiceResponseError)
        assert err.is_retryable is False
        assert "2.5s" in str(err)
