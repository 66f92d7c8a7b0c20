"""FastAPI application entry-point.

Assembles routers, middleware, exception handlers, and lifecycle hooks.
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator, Sequence

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from lingorelay.adapters.inbound.rest.routers import (
    health_router,
    translation_router,
    usage_router,
)
from lingorelay.adapters.inbound.ws import ws_router
from lingorelay.config import Settings, get_settings
from lingorelay.dependencies import build_container
from lingorelay.domain.exceptions import PersistenceError
from lingorelay.ports.outbound import TranslationProvider
from lingorelay.shared.errors import register_exception_handlers
from lingorelay.shared.middleware import (
    LoggingMiddleware,
    MetricsMiddleware,
    RequestIdMiddleware,
)
from lingorelay.shared.observability import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifecycle — startup & shutdown hooks."""
    settings: Settings = app.state.settings
    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.is_production,
    )

    container = build_container(settings, providers=app.state.providers_override)
    app.state.container = container
    app.state.started_at = time.monotonic()
    logger.info(
        "application_starting",
        env=settings.app_env.value,
        providers=[p.name for p in container.gateway.providers],
        persist_state=settings.persist_state,
    )

    try:
        await container.quota.load()
    except PersistenceError as exc:
        # Serve with in-memory counters; /api/usage reports degraded
        logger.error("quota_state_unavailable", error=exc.message)
    await container.hub.restore()

    yield

    await container.close()
    logger.info("application_shutdown")


def create_app(
    settings: Settings | None = None,
    *,
    providers: Sequence[TranslationProvider] | None = None,
) -> FastAPI:
    """Application factory — creates a fully configured FastAPI instance."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Live translation relay. Translates speaker text through a chain of "
            "quota-limited providers and broadcasts results to projector viewers "
            "over WebSocket."
        ),
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
    )

    # Store settings in app state for lifecycle access
    app.state.settings = settings
    app.state.providers_override = list(providers) if providers is not None else None

    # ── Middleware (order matters: first added = outermost) ───
    cors_origins = settings.cors_origins
    # CORSMiddleware does not allow ["*"] together with allow_credentials
    allow_all_origins = "*" in cors_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[] if allow_all_origins else cors_origins,
        allow_origin_regex=".*" if allow_all_origins else None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # ── Exception handlers ───────────────────────────────────
    register_exception_handlers(app)

    # ── REST routers ─────────────────────────────────────────
    app.include_router(health_router)
    app.include_router(translation_router)
    app.include_router(usage_router)

    # ── WebSocket routers ────────────────────────────────────
    app.include_router(ws_router)

    return app


# Uvicorn entry-point
app = create_app()
