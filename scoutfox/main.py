from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from structlog.contextvars import bind_contextvars, reset_contextvars

from scoutfox.api.routes import router
from scoutfox.dependencies import get_retrieval_cache, get_settings, get_telemetry
from scoutfox.logging_config import configure_application_logging
from scoutfox.services.errors import (
    ConfigurationError,
    ProviderRequestError,
    QuotaExceededError,
    RateLimitError,
    ResponseValidationError,
    ScoutFoxError,
    SourceTimeoutError,
)

LOGGER = logging.getLogger("scoutfox.api")

QUOTA_RETRY_AFTER_SECONDS = 3600


def health_check() -> dict[str, str]:
    return {"status": "ok"}


@asynccontextmanager
async def app_lifespan(_: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_application_logging(settings)
    # Creates the cache schema before the first request.
    get_retrieval_cache()
    yield


def error_status(exc: ScoutFoxError) -> int:
    if isinstance(exc, ConfigurationError):
        return 503
    if isinstance(exc, RateLimitError | QuotaExceededError):
        return 429
    if isinstance(exc, SourceTimeoutError):
        return 504
    if isinstance(exc, ResponseValidationError | ProviderRequestError):
        return 502
    return 500


async def scoutfox_error_handler(_: Request, exc: Exception) -> Response:
    assert isinstance(exc, ScoutFoxError)
    status_code = error_status(exc)
    headers: dict[str, str] = {}
    if isinstance(exc, RateLimitError):
        headers["Retry-After"] = str(exc.retry_after_seconds)
    elif isinstance(exc, QuotaExceededError):
        # Search and extraction absorb proxy quota errors; this covers any other caller.
        headers["Retry-After"] = str(QUOTA_RETRY_AFTER_SECONDS)

    LOGGER.warning(
        "request failed status=%s error_type=%s error=%s",
        status_code,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)}, headers=headers)


def create_app() -> FastAPI:
    app = FastAPI(title="ScoutFox API", version="0.1.0", lifespan=app_lifespan)

    async def request_context_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        telemetry = get_telemetry()
        incoming_request_id = request.headers.get("X-Request-ID")
        request_id = (
            incoming_request_id.strip()
            if isinstance(incoming_request_id, str) and incoming_request_id.strip()
            else str(uuid4())
        )
        context_tokens = bind_contextvars(
            http_request_id=request_id,
            http_method=request.method,
            http_path=request.url.path,
        )
        started_at = perf_counter()
        telemetry.emit(
            "http.request.start",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        try:
            response = await call_next(request)
        except Exception as exc:
            telemetry.emit(
                "http.request.error",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                duration_ms=int((perf_counter() - started_at) * 1000),
                error_type=type(exc).__name__,
            )
            raise
        else:
            response.headers["X-Request-ID"] = request_id
            telemetry.emit(
                "http.request.finish",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                duration_ms=int((perf_counter() - started_at) * 1000),
                status_code=response.status_code,
            )
            return response
        finally:
            reset_contextvars(**context_tokens)

    app.middleware("http")(request_context_middleware)
    app.add_exception_handler(ScoutFoxError, scoutfox_error_handler)
    app.include_router(router)
    app.add_api_route(
        "/health",
        health_check,
        methods=["GET"],
        tags=["system"],
        operation_id="health_check",
    )

    return app


app = create_app()
