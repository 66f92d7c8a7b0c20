"""Health, Translation, Usage — REST routers."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from lingorelay.application.dtos import (
    BroadcastRequest,
    ErrorResponse,
    HealthResponse,
    SuccessResponse,
    TranslateRequest,
    TranslateResponse,
    UsageResponse,
)
from lingorelay.application.services import TranslationService
from lingorelay.config import Settings
from lingorelay.dependencies import get_app_settings, get_translation_service

logger = structlog.get_logger(__name__)


# ═══════════════════════════════════════════════════════════════
#  Health
# ═══════════════════════════════════════════════════════════════
health_router = APIRouter(tags=["Health"])


@health_router.get("/health", response_model=HealthResponse, response_model_by_alias=True)
async def health_check(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    service: TranslationService = Depends(get_translation_service),
) -> HealthResponse:
    degraded = service.gateway.quota.degraded
    return HealthResponse(
        status="degraded" if degraded else "healthy",
        environment=settings.app_env.value,
        timestamp=datetime.now(timezone.utc),
        uptime_seconds=round(time.monotonic() - request.app.state.started_at, 3),
        subscribers=service.hub.subscriber_count,
        quota_persistence="degraded" if degraded else "ok",
    )


@health_router.get("/metrics")
async def prometheus_metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )


# ═══════════════════════════════════════════════════════════════
#  Translation & projector
# ═══════════════════════════════════════════════════════════════
translation_router = APIRouter(tags=["Translation"])


async def _wait_for_disconnect(request: Request) -> None:
    while (await request.receive())["type"] != "http.disconnect":
        pass


@translation_router.post(
    "/translate",
    response_model=TranslateResponse,
    responses={429: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
async def translate(
    body: TranslateRequest,
    request: Request,
    service: TranslationService = Depends(get_translation_service),
) -> TranslateResponse | Response:
    """Translate text and broadcast the result to every live viewer.

    A client that hangs up first cancels the provider chain and the
    broadcast that would have followed it.
    """
    work = asyncio.create_task(service.translate(body.text))
    watcher = asyncio.create_task(_wait_for_disconnect(request))
    try:
        await asyncio.wait({work, watcher}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        watcher.cancel()
        if not work.done():
            work.cancel()
        await asyncio.gather(watcher, work, return_exceptions=True)

    if work.cancelled():
        logger.info("translate_client_disconnected")
        return Response(status_code=499)

    outcome = work.result()
    return TranslateResponse(
        translation=outcome.text,
        provider=outcome.provider,
        usage=await service.usage(),
    )


@translation_router.post("/broadcast-translation", response_model=SuccessResponse)
async def broadcast_translation(
    body: BroadcastRequest,
    service: TranslationService = Depends(get_translation_service),
) -> SuccessResponse:
    """Push an already-translated line to viewers without calling a provider."""
    await service.broadcast(body.translation)
    return SuccessResponse()


@translation_router.get("/get_translation", response_class=PlainTextResponse)
async def get_translation(
    service: TranslationService = Depends(get_translation_service),
) -> PlainTextResponse:
    return PlainTextResponse(service.current_text())


@translation_router.post("/clear_projector_text", response_model=SuccessResponse)
async def clear_projector_text(
    service: TranslationService = Depends(get_translation_service),
) -> SuccessResponse:
    await service.clear()
    return SuccessResponse()


# ═══════════════════════════════════════════════════════════════
#  Usage
# ═══════════════════════════════════════════════════════════════
usage_router = APIRouter(prefix="/api/usage", tags=["Usage"])


@usage_router.get("", response_model=UsageResponse, response_model_by_alias=True)
async def get_usage(
    service: TranslationService = Depends(get_translation_service),
) -> UsageResponse:
    return UsageResponse(data=await service.usage())


@usage_router.post(
    "/{provider}/reset",
    response_model=UsageResponse,
    response_model_by_alias=True,
    responses={404: {"model": ErrorResponse}},
)
async def reset_provider_usage(
    provider: str,
    service: TranslationService = Depends(get_translation_service),
) -> UsageResponse:
    """Start a fresh window for ``provider`` and re-enable it if it was disabled."""
    await service.reset_provider(provider)
    return UsageResponse(data=await service.usage())
