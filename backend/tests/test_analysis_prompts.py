"""Tests for prompt construction."""
from __future__ import annotations

import json

from snippetlab.analysis.languages import language_name
from snippetlab.analysis.prompts import (
    ANALYSIS_RESPONSE_KEYS,
    ANALYSIS_SYSTEM_PROMPT,
    build_analysis_request,
    build_flashcard_request,
    build_quiz_request,
)


class TestLanguageName:
    def test_known_code(self) -> None:
        assert language_name("de") == "German"
        assert language_name("en") == "English"

    def test_unknown_code_passes_through(self) -> None:
        assert language_name("xx") == "xx"

    def test_missing_code(self) -> None:
        assert language_name(None) == ""
        assert language_name("") == ""


class TestBuildAnalysisRequest:
    def test_messages_and_json_mode(self) -> None:
        request = build_analysis_request("lustig", "etwas lustig machen", "de", "en")

        assert request.json_mode is True
        assert [m["role"] for m in request.messages] == ["system", "user"]
        assert request.messages[0]["content"] == ANALYSIS_SYSTEM_PROMPT

    def test_user_prompt_embeds_inputs(self) -> None:
        request = build_analysis_request("lustig", "etwas lustig machen", "de", "fr")
        prompt = request.messages[1]["content"]

        assert 'Text: "lustig"' in prompt
        assert 'Context: "etwas lustig machen"' in prompt
        assert "Analyze the following German text" in prompt
        assert "French translation" in prompt

    def test_prompt_names_every_response_key(self) -> None:
        prompt = build_analysis_request("lustig", "ctx", "de").messages[1]["content"]
        for key in ANALYSIS_RESPONSE_KEYS:
            assert f'"{key}"' in prompt

    def test_worked_example_is_valid_json(self) -> None:
        prompt = build_analysis_request("lustig", "ctx", "de").messages[1]["content"]
        example = prompt.split("the response could look like this:\n", 1)[1]
        assert json.loads(example)["translation"] == "funny"

    def test_base_language_defaults(self) -> None:
        prompt = build_analysis_request("x", "x y", "de", None, default_base_language="es").messages[1]["content"]
        assert "Spanish translation" in prompt

    def test_unknown_language_code_used_verbatim(self) -> None:
        prompt = build_analysis_request("x", "x y", "tlh", "en").messages[1]["content"]
        assert "Analyze the following tlh text" in prompt

    def test_braces_in_input_are_kept(self) -> None:
        prompt = build_analysis_request("{x}", "a {x} b", "de").messages[1]["content"]
        assert 'Text: "{x}"' in prompt


class TestBuildFlashcardRequest:
    def test_prompt_contents(self) -> None:
        request = build_flashcard_request("Guten Morgen", "Good morning", "de")
        prompt = request.messages[1]["content"]

        assert request.json_mode is True
        assert 'Snippet: "Guten Morgen"' in prompt
        assert 'Translation: "Good morning"' in prompt
        assert '"flashcards"' in prompt
        assert '"front": "German text"' in prompt


class TestBuildQuizRequest:
    def test_grammar_points_listed(self) -> None:
        prompt = build_quiz_request("Ich bin müde", "I am tired", ["sein", "adjectives"], "de").messages[1]["content"]
        assert "Grammar points: sein; adjectives" in prompt
        assert '"correctAnswer": 0' in prompt

    def test_no_grammar_points(self) -> None:
        prompt = build_quiz_request("Ich bin müde", "I am tired", [], "de").messages[1]["content"]
        assert "Grammar points: (none given)" in prompt
