"""
Pytest configuration for backend tests.

Shared fixtures: temporary stores, scripted LLM providers and an API client
wired to both.
"""
import json
import sys
from pathlib import Path
from typing import Any

import pytest

# Add backend directory to path for imports
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from snippetlab.db import init_db
from snippetlab.llm.providers import LLMProvider, LLMProviderType, LLMResponse
from snippetlab.services.snippet_service import SnippetService


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests requiring real LLM (deselect with '-m \"not integration\"')",
    )


# ============================================================================
# SHARED FIXTURES
# ============================================================================

# --- Test Constants ---
SAMPLE_CONTEXT_DE = "Wir wollten den Abend etwas lustig machen, also spielten wir Scharade."
SAMPLE_SELECTION_DE = "lustig"

SAMPLE_ANALYSIS = {
    "contextualExplanation": "Here 'lustig' means funny: the goal was to make the evening fun.",
    "examples": [
        {"example": "Der Film war sehr lustig.", "translation": "The film was very funny."},
        {"example": "Sie ist eine lustige Person.", "translation": "She is a funny person."},
        {"example": "Das klingt lustig!", "translation": "That sounds fun!"},
    ],
    "explanations": [
        "'Lustig' is an adjective meaning funny or amusing.",
        "'Etwas lustig machen' means to make something a bit fun.",
    ],
    "translation": "funny",
}


class MockLLMProvider(LLMProvider):
    """Scripted provider: returns the queued responses in order, then the last one."""

    def __init__(self, responses: list[str | Exception] | None = None):
        self._responses = responses or [json.dumps(SAMPLE_ANALYSIS)]
        self.calls: list[dict[str, Any]] = []

    def chat_completion(
        self,
        messages: list[dict[str, str]],
        model: str,
        temperature: float = 0.2,
        max_tokens: int | None = None,
        timeout: float = 60.0,
        json_mode: bool = False,
    ) -> LLMResponse:
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "temperature": temperature,
                "timeout": timeout,
                "json_mode": json_mode,
            }
        )
        index = min(len(self.calls) - 1, len(self._responses) - 1)
        response = self._responses[index]
        if isinstance(response, Exception):
            raise response
        return LLMResponse(
            content=response,
            model=model,
            input_tokens=100,
            output_tokens=50,
        )

    def is_available(self) -> bool:
        return True

    @property
    def provider_type(self) -> LLMProviderType:
        return LLMProviderType.OPENAI

    @property
    def call_count(self) -> int:
        return len(self.calls)


# --- Database Fixtures ---
@pytest.fixture
def temp_db_path(tmp_path: Path) -> Path:
    """Provide an initialized temporary database for isolated testing."""
    db_path = tmp_path / "index" / "snippets.sqlite3"
    init_db(db_path)
    return db_path


# --- LLM Fixtures ---
@pytest.fixture
def mock_llm() -> MockLLMProvider:
    return MockLLMProvider()


@pytest.fixture
def service(temp_db_path: Path, mock_llm: MockLLMProvider) -> SnippetService:
    return SnippetService(temp_db_path, llm=mock_llm, analysis_timeout_s=5.0)


# --- Capture Fixtures ---
@pytest.fixture
def snippet_fields():
    """Factory for create payloads.

    Usage:
        def test_something(snippet_fields):
            fields = snippet_fields(raw_text="Hund", tags=["animals"])
    """
    def _create(**overrides: Any) -> dict[str, Any]:
        fields: dict[str, Any] = {
            "raw_text": SAMPLE_SELECTION_DE,
            "source_context": SAMPLE_CONTEXT_DE,
            "language_code": "de",
            "tags": [],
        }
        fields.update(overrides)
        return fields

    return _create


@pytest.fixture
def sample_analysis() -> dict[str, Any]:
    """Decoded analysis payload as the service is asked to return it."""
    return json.loads(json.dumps(SAMPLE_ANALYSIS))


@pytest.fixture
def make_llm():
    """Factory for scripted providers.

    Usage:
        def test_something(make_llm):
            llm = make_llm(["not json", '{"translation": "funny"}'])
    """
    return MockLLMProvider
