"""Dependency injection container — wires adapters to ports.

The container is built once per application (inside the lifespan) and
stored on ``app.state``.  FastAPI's ``Depends()`` system uses the getters
below to hand the wired services to route handlers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import httpx
from fastapi import Depends
from starlette.requests import HTTPConnection

from lingorelay.adapters.outbound.broadcast import BroadcastHub
from lingorelay.adapters.outbound.persistence.repositories import (
    InMemoryBroadcastStateRepository,
    InMemoryQuotaSnapshotRepository,
    JsonQuotaSnapshotRepository,
    TextBroadcastStateRepository,
)
from lingorelay.adapters.outbound.translation import build_providers
from lingorelay.application.services import TranslationService
from lingorelay.config import Settings
from lingorelay.ports.outbound import (
    BroadcastStateRepository,
    QuotaSnapshotRepository,
    TranslationProvider,
)
from lingorelay.shared.providers import FailoverGateway, QuotaStore


# ── Container ────────────────────────────────────────────────
@dataclass
class Container:
    settings: Settings
    client: httpx.AsyncClient | None
    providers: list[TranslationProvider]
    quota: QuotaStore
    gateway: FailoverGateway
    hub: BroadcastHub
    service: TranslationService

    async def close(self) -> None:
        await self.hub.close()
        for provider in self.providers:
            await provider.close()
        if self.client is not None:
            await self.client.aclose()


def _repositories(settings: Settings) -> tuple[QuotaSnapshotRepository, BroadcastStateRepository]:
    if settings.persist_state:
        return (
            JsonQuotaSnapshotRepository(settings.quota_stats_path),
            TextBroadcastStateRepository(settings.projector_text_path),
        )
    return InMemoryQuotaSnapshotRepository(), InMemoryBroadcastStateRepository()


def build_container(
    settings: Settings,
    *,
    providers: Sequence[TranslationProvider] | None = None,
) -> Container:
    """Assemble the full object graph.

    ``providers`` replaces the settings-driven vendor adapters (used by tests
    and by deployments that plug in their own); no HTTP client is created then.
    """
    client: httpx.AsyncClient | None = None
    if providers is None:
        client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.free_provider_timeout_seconds),
            follow_redirects=True,
        )
        provider_list = build_providers(settings, client)
    else:
        provider_list = list(providers)

    quota_repo, broadcast_repo = _repositories(settings)
    quota = QuotaStore(
        [p.config for p in provider_list],
        quota_repo,
        window_seconds=settings.quota_window_seconds,
    )
    gateway = FailoverGateway(
        provider_list,
        quota,
        grace_s=settings.provider_timeout_grace_seconds,
    )
    hub = BroadcastHub(
        broadcast_repo,
        queue_size=settings.subscriber_queue_size,
        waiting_placeholder=settings.waiting_placeholder,
        failure_prefix=settings.failure_prefix,
    )
    return Container(
        settings=settings,
        client=client,
        providers=provider_list,
        quota=quota,
        gateway=gateway,
        hub=hub,
        service=TranslationService(gateway, hub),
    )


# ── Request-scoped getters ───────────────────────────────────
def get_container(conn: HTTPConnection) -> Container:
    return conn.app.state.container  # type: ignore[no-any-return]


def get_app_settings(container: Container = Depends(get_container)) -> Settings:
    return container.settings


def get_translation_service(
    container: Container = Depends(get_container),
) -> TranslationService:
    return container.service
