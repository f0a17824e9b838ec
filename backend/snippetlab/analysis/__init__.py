from snippetlab.analysis.languages import LANGUAGE_NAMES, language_name
from snippetlab.analysis.parser import (
    AnalysisTimeoutError,
    ServiceResponseError,
    decode_json_object,
    parse_analysis_response,
    parse_flashcard_response,
    parse_quiz_response,
)
from snippetlab.analysis.prompts import (
    ANALYSIS_RESPONSE_KEYS,
    CompletionRequest,
    build_analysis_request,
    build_flashcard_request,
    build_quiz_request,
)

__all__ = [
    "ANALYSIS_RESPONSE_KEYS",
    "AnalysisTimeoutError",
    "CompletionRequest",
    "LANGUAGE_NAMES",
    "ServiceResponseError",
    "build_analysis_request",
    "build_flashcard_request",
    "build_quiz_request",
    "decode_json_object",
    "language_name",
    "parse_analysis_response",
    "parse_flashcard_response",
    "parse_quiz_response",
]
