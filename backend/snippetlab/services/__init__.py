from snippetlab.services.capture_session import (
    CaptureSession,
    CaptureState,
    InvalidTransitionError,
    SaveAllResult,
)
from snippetlab.services.snippet_service import SnippetService

__all__ = [
    "CaptureSession",
    "CaptureState",
    "InvalidTransitionError",
    "SaveAllResult",
    "SnippetService",
]
