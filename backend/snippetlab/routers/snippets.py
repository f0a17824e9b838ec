"""Snippet capture, analysis and lifecycle router."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from snippetlab.analysis.parser import ServiceResponseError
from snippetlab.db import SnippetNotFoundError, SnippetValidationError, StoreError
from snippetlab.llm.providers import LLMProvider, get_llm_client
from snippetlab.models.analysis import QuizQuestion
from snippetlab.ratelimit import AI_RATE_LIMIT, limiter
from snippetlab.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    FlashcardRequest,
    FlashcardResponse,
    QuizRequest,
    SnippetCreateRequest,
    SnippetDeleted,
    SnippetOut,
    SnippetUpdateRequest,
)
from snippetlab.services.snippet_service import SnippetService
from snippetlab.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/snippets", tags=["snippets"])


def _build_llm_client() -> LLMProvider:
    return get_llm_client(
        settings.llm_provider.value,
        ollama_base_url=settings.ollama_base_url,
    )


def get_llm_factory():
    """Dependency returning the provider factory. Tests override this."""
    return _build_llm_client


def get_snippet_service(llm_factory=Depends(get_llm_factory)) -> SnippetService:
    return SnippetService(
        settings.db_path,
        llm=llm_factory,
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        analysis_timeout_s=settings.analysis_timeout_s,
        max_retries=settings.analysis_max_retries,
        default_language=settings.default_language_code,
        default_base_language=settings.default_base_language,
        list_limit=settings.snippet_list_limit,
    )


def _not_found(snippet_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Snippet {snippet_id} not found")


def _store_failure(e: StoreError) -> HTTPException:
    return HTTPException(status_code=500, detail=str(e))


def _service_failure(e: Exception, fallback: str) -> HTTPException:
    if isinstance(e, ServiceResponseError):
        logger.warning(f"Text-completion service failure: {e}")
    else:
        logger.error(f"{fallback}: {e}", exc_info=True)
    return HTTPException(status_code=500, detail=str(e) or fallback)


@router.get("", response_model=list[SnippetOut])
async def api_list_snippets(
    language_code: str | None = Query(None, alias="languageCode"),
    tag: str | None = None,
    service: SnippetService = Depends(get_snippet_service),
) -> list[SnippetOut]:
    """List snippets newest first, optionally filtered by language and tag."""
    try:
        rows = await service.list_snippets(language_code=language_code, tag=tag)
    except StoreError as e:
        raise _store_failure(e) from e
    return [SnippetOut.from_row(r) for r in rows]


@router.post("/analyze", response_model=AnalyzeResponse)
@limiter.limit(AI_RATE_LIMIT)
async def api_analyze_snippet(
    request: Request,
    req: AnalyzeRequest,
    service: SnippetService = Depends(get_snippet_service),
) -> AnalyzeResponse:
    """Analyze selected text in its context. Nothing is persisted."""
    if not req.text or not req.context or not req.learning_language:
        raise HTTPException(
            status_code=400, detail="Text, context and learning language are required"
        )
    try:
        analysis = await service.analyze(
            req.text, req.context, req.learning_language, req.base_language
        )
    except SnippetValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except Exception as e:  # noqa: BLE001
        raise _service_failure(e, "Failed to analyze snippet") from e
    return AnalyzeResponse(text=req.text, analysis=analysis)


@router.post("/flashcards", response_model=FlashcardResponse)
@limiter.limit(AI_RATE_LIMIT)
async def api_generate_flashcards(
    request: Request,
    req: FlashcardRequest,
    service: SnippetService = Depends(get_snippet_service),
) -> FlashcardResponse:
    """Suggest flashcards for a snippet and its translation."""
    if not req.snippet:
        raise HTTPException(status_code=400, detail="Snippet text is required")
    try:
        cards = await service.generate_flashcards(req.snippet, req.translation, req.language)
    except Exception as e:  # noqa: BLE001
        raise _service_failure(e, "Failed to generate flashcards") from e
    return FlashcardResponse(flashcards=cards)


@router.post("/quiz", response_model=QuizQuestion)
@limiter.limit(AI_RATE_LIMIT)
async def api_generate_quiz(
    request: Request,
    req: QuizRequest,
    service: SnippetService = Depends(get_snippet_service),
) -> QuizQuestion:
    """Write one multiple-choice question about a snippet."""
    if not req.snippet:
        raise HTTPException(status_code=400, detail="Snippet text is required")
    try:
        return await service.generate_quiz(req.snippet, req.translation, req.grammar, req.language)
    except Exception as e:  # noqa: BLE001
        raise _service_failure(e, "Failed to generate quiz") from e


@router.post("", response_model=SnippetOut, status_code=201)
async def api_create_snippet(
    req: SnippetCreateRequest,
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetOut:
    """Store a new snippet."""
    try:
        row = await service.create_snippet(req.model_dump())
    except SnippetValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except StoreError as e:
        raise _store_failure(e) from e
    return SnippetOut.from_row(row)


@router.get("/{snippet_id}", response_model=SnippetOut)
async def api_get_snippet(
    snippet_id: str,
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetOut:
    try:
        row = await service.get_snippet(snippet_id)
    except SnippetNotFoundError as e:
        raise _not_found(snippet_id) from e
    except StoreError as e:
        raise _store_failure(e) from e
    return SnippetOut.from_row(row)


@router.put("/{snippet_id}", response_model=SnippetOut)
async def api_update_snippet(
    snippet_id: str,
    req: SnippetUpdateRequest,
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetOut:
    """Partially update a snippet. Only fields present in the body are applied."""
    try:
        row = await service.update_snippet(snippet_id, req.model_dump(exclude_unset=True))
    except SnippetNotFoundError as e:
        raise _not_found(snippet_id) from e
    except SnippetValidationError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except StoreError as e:
        raise _store_failure(e) from e
    return SnippetOut.from_row(row)


@router.delete("/{snippet_id}", response_model=SnippetDeleted)
async def api_delete_snippet(
    snippet_id: str,
    service: SnippetService = Depends(get_snippet_service),
) -> SnippetDeleted:
    try:
        deleted_id = await service.delete_snippet(snippet_id)
    except SnippetNotFoundError as e:
        raise _not_found(snippet_id) from e
    except StoreError as e:
        raise _store_failure(e) from e
    return SnippetDeleted(message="Snippet deleted", id=deleted_id)
