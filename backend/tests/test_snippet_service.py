"""Tests for SnippetService: store lifecycle and text-completion round-trips."""
from __future__ import annotations

import json
import threading
import time
from pathlib import Path

import pytest

from snippetlab.analysis.parser import AnalysisTimeoutError, ServiceResponseError
from snippetlab.db import SnippetNotFoundError, SnippetValidationError
from snippetlab.llm.providers import LLMResponse
from snippetlab.services.snippet_service import SnippetService


@pytest.mark.asyncio
class TestSnippetLifecycle:
    async def test_create_get_list_delete(self, service: SnippetService, snippet_fields) -> None:
        created = await service.create_snippet(snippet_fields(tags=["abend"]))

        assert (await service.get_snippet(created.id)) == created
        assert [r.id for r in await service.list_snippets(tag="abend")] == [created.id]

        assert (await service.delete_snippet(created.id)) == created.id
        with pytest.raises(SnippetNotFoundError):
            await service.get_snippet(created.id)
        with pytest.raises(SnippetNotFoundError):
            await service.delete_snippet(created.id)

    async def test_create_ignores_unknown_keys(self, service: SnippetService, snippet_fields) -> None:
        created = await service.create_snippet(
            snippet_fields(id="f" * 32, difficulty=0.9, translation="funny", created_at_utc="2000-01-01")
        )
        assert created.id != "f" * 32
        assert created.difficulty == 0.5
        assert not created.created_at_utc.startswith("2000")

    async def test_create_invalid(self, service: SnippetService, snippet_fields) -> None:
        with pytest.raises(SnippetValidationError):
            await service.create_snippet(snippet_fields(raw_text=None))

    async def test_update(self, service: SnippetService, snippet_fields) -> None:
        created = await service.create_snippet(snippet_fields())

        updated = await service.update_snippet(created.id, {"lemma": "lustig", "source_context": "ignored"})

        assert updated.lemma == "lustig"
        assert updated.source_context == created.source_context

    async def test_update_missing(self, service: SnippetService) -> None:
        with pytest.raises(SnippetNotFoundError):
            await service.update_snippet("0" * 32, {"lemma": "x"})

    async def test_list_limit(self, temp_db_path: Path, mock_llm, snippet_fields) -> None:
        limited = SnippetService(temp_db_path, llm=mock_llm, list_limit=2)
        for _ in range(3):
            await limited.create_snippet(snippet_fields())
        assert len(await limited.list_snippets()) == 2


@pytest.mark.asyncio
class TestAnalyze:
    async def test_returns_analysis(self, service: SnippetService, mock_llm) -> None:
        analysis = await service.analyze("lustig", "etwas lustig machen", "de", "en")

        assert analysis.translation == "funny"
        assert mock_llm.call_count == 1
        assert "German" in mock_llm.calls[0]["messages"][1]["content"]

    async def test_analysis_is_not_persisted(self, service: SnippetService) -> None:
        await service.analyze("lustig", "etwas lustig machen", "de")
        assert await service.list_snippets() == []

    @pytest.mark.parametrize(
        ("text", "context", "language"),
        [(None, "ctx", "de"), ("lustig", "", "de"), ("lustig", "ctx", None)],
    )
    async def test_missing_inputs(self, service: SnippetService, mock_llm, text, context, language) -> None:
        with pytest.raises(SnippetValidationError):
            await service.analyze(text, context, language)
        assert mock_llm.call_count == 0

    async def test_partial_response(self, temp_db_path: Path, make_llm) -> None:
        service = SnippetService(temp_db_path, llm=make_llm(['{"translation":"funny"}']))

        analysis = await service.analyze("lustig", "lustig", "de")

        assert analysis.translation == "funny"
        assert analysis.examples == []
        assert analysis.contextual_explanation is None

    async def test_non_json_after_retry(self, temp_db_path: Path, make_llm) -> None:
        llm = make_llm(["This is funny."])
        service = SnippetService(temp_db_path, llm=llm, max_retries=1)

        with pytest.raises(ServiceResponseError):
            await service.analyze("lustig", "lustig", "de")
        assert llm.call_count == 2

    async def test_base_language_defaults(self, temp_db_path: Path, mock_llm) -> None:
        service = SnippetService(temp_db_path, llm=mock_llm, default_base_language="fr")

        await service.analyze("lustig", "lustig", "de")

        assert "French translation" in mock_llm.calls[0]["messages"][1]["content"]

    async def test_timeout(self, temp_db_path: Path, make_llm) -> None:
        class SlowLLM(make_llm):
            def chat_completion(self, *args, **kwargs) -> LLMResponse:
                time.sleep(0.5)
                return super().chat_completion(*args, **kwargs)

        service = SnippetService(temp_db_path, llm=SlowLLM(), analysis_timeout_s=0.05)

        with pytest.raises(AnalysisTimeoutError):
            await service.analyze("lustig", "lustig", "de")

    async def test_provider_factory_is_lazy(self, temp_db_path: Path, mock_llm, snippet_fields) -> None:
        built = []

        def factory():
            built.append(True)
            return mock_llm

        service = SnippetService(temp_db_path, llm=factory)
        await service.create_snippet(snippet_fields())
        assert built == []

        await service.analyze("lustig", "lustig", "de")
        await service.analyze("lustig", "lustig", "de")
        assert built == [True]

    async def test_provider_factory_runs_off_the_event_loop(self, temp_db_path: Path, mock_llm) -> None:
        factory_threads = []

        def factory():
            factory_threads.append(threading.get_ident())
            return mock_llm

        await SnippetService(temp_db_path, llm=factory).analyze("lustig", "lustig", "de")

        assert factory_threads
        assert factory_threads[0] != threading.get_ident()

    async def test_slow_provider_factory_counts_toward_timeout(self, temp_db_path: Path, mock_llm) -> None:
        def factory():
            time.sleep(0.5)
            return mock_llm

        service = SnippetService(temp_db_path, llm=factory, analysis_timeout_s=0.05)

        with pytest.raises(AnalysisTimeoutError):
            await service.analyze("lustig", "lustig", "de")

    async def test_no_provider(self, temp_db_path: Path) -> None:
        with pytest.raises(ValueError, match="No text-completion provider"):
            await SnippetService(temp_db_path).analyze("lustig", "lustig", "de")


@pytest.mark.asyncio
class TestStudyMaterial:
    async def test_flashcards(self, temp_db_path: Path, make_llm) -> None:
        llm = make_llm([json.dumps({"flashcards": [{"front": "lustig", "back": "funny"}]})])
        service = SnippetService(temp_db_path, llm=llm)

        cards = await service.generate_flashcards("lustig", "funny", "de")

        assert [(c.front, c.back) for c in cards] == [("lustig", "funny")]

    async def test_flashcards_require_snippet(self, service: SnippetService) -> None:
        with pytest.raises(SnippetValidationError):
            await service.generate_flashcards("", "funny", "de")

    async def test_quiz(self, temp_db_path: Path, make_llm) -> None:
        payload = {"question": "Q?", "options": ["a", "b", "c", "d"], "correctAnswer": 2, "explanation": "c"}
        service = SnippetService(temp_db_path, llm=make_llm([json.dumps(payload)]))

        quiz = await service.generate_quiz("lustig", "funny", ["adjective"], "de")

        assert quiz.question == "Q?"
        assert quiz.correct_answer == 2

    async def test_study_material_language_defaults(self, temp_db_path: Path, make_llm) -> None:
        llm = make_llm([json.dumps({"flashcards": []})])
        service = SnippetService(temp_db_path, llm=llm, default_language="de")

        await service.generate_flashcards("lustig", "funny", None)

        assert "Based on this German snippet" in llm.calls[0]["messages"][1]["content"]
