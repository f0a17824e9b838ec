"""Decoding of text-completion service responses.

The only hard guarantee is "valid JSON object or ServiceResponseError".
Field shapes are never enforced here; the models destructure whatever keys
are present.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from snippetlab.models.analysis import (
    AnalysisResult,
    Flashcard,
    QuizQuestion,
    flashcards_from_payload,
)

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


class ServiceResponseError(Exception):
    """Raised when the service returns no content or content that is not a JSON object.

    Formatting failures are retryable: the same request may well succeed.
    """

    def __init__(self, message: str, raw_response: str | None = None, parse_error: Exception | None = None):
        super().__init__(message)
        self.raw_response = raw_response
        self.parse_error = parse_error
        self.is_retryable = True


class AnalysisTimeoutError(ServiceResponseError):
    """Raised when the service does not answer within the configured timeout."""

    def __init__(self, timeout_s: float):
        super().__init__(f"Text-completion service did not respond within {timeout_s:g}s")
        self.timeout_s = timeout_s
        self.is_retryable = False


def decode_json_object(content: str | None) -> dict[str, Any]:
    """Decode a response body into a JSON object.

    Markdown code fences around the JSON are tolerated since some providers
    add them even when asked not to.
    """
    if content is None or not content.strip():
        raise ServiceResponseError("No response from text-completion service", raw_response=content)

    body = content.strip()
    if "```" in body:
        match = _FENCED_JSON.search(body)
        if match:
            body = match.group(1)

    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        logger.warning(f"Service returned non-JSON content ({len(content)} chars): {e}")
        raise ServiceResponseError(
            f"Service response is not valid JSON: {e}", raw_response=content, parse_error=e
        ) from e

    if not isinstance(data, dict):
        raise ServiceResponseError(
            f"Service response is JSON but not an object (got {type(data).__name__})",
            raw_response=content,
        )
    return data


def parse_analysis_response(content: str | None) -> AnalysisResult:
    return AnalysisResult.from_payload(decode_json_object(content))


def parse_flashcard_response(content: str | None) -> list[Flashcard]:
    return flashcards_from_payload(decode_json_object(content))


def parse_quiz_response(content: str | None) -> QuizQuestion:
    return QuizQuestion.from_payload(decode_json_object(content))
