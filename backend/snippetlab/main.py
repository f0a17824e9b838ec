from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from snippetlab import __version__
from snippetlab.db import init_db, ping
from snippetlab.ratelimit import STATUS_RATE_LIMIT, limiter
from snippetlab.routers import snippets as snippets_router
from snippetlab.schemas import AppStatus
from snippetlab.settings import settings

logger = logging.getLogger(__name__)


class TimeoutMiddleware(BaseHTTPMiddleware):
    """Enforce an upper bound on request handling time."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await asyncio.wait_for(
                call_next(request),
                timeout=settings.request_timeout_s,
            )
        except asyncio.TimeoutError:
            return JSONResponse(
                status_code=504,
                content={"detail": f"Request timed out after {settings.request_timeout_s:g} seconds"}
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the data directory and schema on startup."""
    try:
        logger.info("Starting snippet API...")
        settings.db_path.parent.mkdir(parents=True, exist_ok=True)
        init_db(settings.db_path)
        logger.info(
            f"Database ready at {settings.db_path}; "
            f"provider={settings.llm_provider.value} model={settings.resolved_llm_model}"
        )
    except Exception as e:
        logger.error(f"FATAL: Startup failed: {e}", exc_info=True)
        raise

    yield

    logger.info("Snippet API shut down")


app = FastAPI(title="Snippet lab", version=__version__, lifespan=lifespan)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Try again later."}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report malformed request bodies as 400 with a readable message."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg', 'invalid value')}" if location else err.get("msg", ""))
    detail = "; ".join(m for m in messages if m) or "Invalid request"
    logger.warning(f"Rejected request to {request.url.path}: {detail}")
    return JSONResponse(status_code=400, content={"detail": detail})


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TimeoutMiddleware)

app.include_router(snippets_router.router)


@app.get("/health")
@limiter.limit(STATUS_RATE_LIMIT)
def health_check(request: Request):
    """Health check with a database round-trip. 503 when the store is unavailable."""
    if not ping(settings.db_path):
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "db": "unavailable"}
        )
    return {"status": "healthy", "db": "ok"}


@app.get("/api/status", response_model=AppStatus)
@limiter.limit(STATUS_RATE_LIMIT)
def api_status(request: Request) -> AppStatus:
    return AppStatus(
        version=str(app.version),
        llm_provider=settings.llm_provider.value,
        llm_model=settings.resolved_llm_model,
        openai_key_present=bool(os.getenv("OPENAI_API_KEY")),
        anthropic_key_present=bool(os.getenv("ANTHROPIC_API_KEY")),
        ollama_base_url=settings.ollama_base_url,
        analysis_timeout_s=settings.analysis_timeout_s,
        db_ok=ping(settings.db_path),
    )


