"""Global exception handlers — map domain errors to HTTP responses."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse
import structlog

from lingorelay.domain.exceptions import (
    DomainError,
    PersistenceError,
    ProviderNotFoundError,
    QuotaExhaustedError,
    TranslationFailedError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all domain→HTTP exception mappings."""

    @app.exception_handler(ValidationError)
    async def handle_validation(request: Request, exc: ValidationError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=422,
            content={"success": False, "code": exc.code, "message": exc.message},
        )

    @app.exception_handler(ProviderNotFoundError)
    async def handle_not_found(request: Request, exc: ProviderNotFoundError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=404,
            content={"success": False, "code": exc.code, "message": exc.message},
        )

    @app.exception_handler(QuotaExhaustedError)
    async def handle_quota(request: Request, exc: QuotaExhaustedError) -> ORJSONResponse:
        headers: dict[str, str] = {}
        if exc.next_reset is not None:
            wait = (exc.next_reset - datetime.now(timezone.utc)).total_seconds()
            headers["Retry-After"] = str(max(0, int(wait)))
        return ORJSONResponse(
            status_code=429,
            content={
                "success": False,
                "code": exc.code,
                "message": exc.message,
                "nextReset": exc.next_reset.isoformat() if exc.next_reset else None,
            },
            headers=headers,
        )

    @app.exception_handler(TranslationFailedError)
    async def handle_translation_failed(
        request: Request, exc: TranslationFailedError
    ) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=502,
            content={
                "success": False,
                "code": exc.code,
                "message": exc.message,
                "translation": exc.placeholder,
            },
        )

    @app.exception_handler(PersistenceError)
    async def handle_persistence(request: Request, exc: PersistenceError) -> ORJSONResponse:
        logger.error("persistence_error_http", message=exc.message)
        return ORJSONResponse(
            status_code=503,
            content={"success": False, "code": exc.code, "message": exc.message},
        )

    @app.exception_handler(DomainError)
    async def handle_domain(request: Request, exc: DomainError) -> ORJSONResponse:
        return ORJSONResponse(
            status_code=400,
            content={"success": False, "code": exc.code, "message": exc.message},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("unhandled_exception", error=str(exc))
        return ORJSONResponse(
            status_code=500,
            content={
                "success": False,
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
            },
        )
