"""Translation provider adapters and their settings-driven assembly.

Each vendor call is isolated in its own adapter; the ``FailoverGateway``
owns ordering, quota and fallback.
"""

from __future__ import annotations

import httpx

from lingorelay.adapters.outbound.translation.libretranslate import LibreTranslateProvider
from lingorelay.adapters.outbound.translation.rapidapi import RapidAPIProvider
from lingorelay.config import Settings
from lingorelay.ports.outbound import TranslationProvider
from lingorelay.shared.providers.types import ProviderConfig, ProviderTier

RAPIDAPI_PRIMARY = "RapidAPI-Primary"
RAPIDAPI_SECONDARY = "RapidAPI-Secondary"
LIBRETRANSLATE = "LibreTranslate"

__all__ = [
    "LIBRETRANSLATE",
    "LibreTranslateProvider",
    "RAPIDAPI_PRIMARY",
    "RAPIDAPI_SECONDARY",
    "RapidAPIProvider",
    "build_provider_configs",
    "build_providers",
]


def build_provider_configs(
    *,
    max_requests_per_day: int = 1000,
    paid_timeout_s: float = 5.0,
    free_timeout_s: float = 10.0,
    priority_order: str = f"{RAPIDAPI_PRIMARY},{RAPIDAPI_SECONDARY},{LIBRETRANSLATE}",
) -> list[ProviderConfig]:
    """Build ProviderConfig list from settings values."""

    # Parse priority order (case-insensitive names, unlisted providers go last)
    priority_map: dict[str, int] = {}
    for idx, name in enumerate(priority_order.split(",")):
        if name.strip():
            priority_map[name.strip().lower()] = idx + 1

    def _priority(name: str, fallback: int) -> int:
        return priority_map.get(name.lower(), 100 + fallback)

    return [
        ProviderConfig(
            name=RAPIDAPI_PRIMARY,
            tier=ProviderTier.PAID,
            capacity=max_requests_per_day,
            priority=_priority(RAPIDAPI_PRIMARY, 1),
            timeout_s=paid_timeout_s,
        ),
        ProviderConfig(
            name=RAPIDAPI_SECONDARY,
            tier=ProviderTier.PAID,
            capacity=max_requests_per_day,
            priority=_priority(RAPIDAPI_SECONDARY, 2),
            timeout_s=paid_timeout_s,
        ),
        ProviderConfig(
            name=LIBRETRANSLATE,
            tier=ProviderTier.FREE,
            capacity=None,
            priority=_priority(LIBRETRANSLATE, 3),
            timeout_s=free_timeout_s,
        ),
    ]


def build_providers(settings: Settings, client: httpx.AsyncClient) -> list[TranslationProvider]:
    """Instantiate every configured provider against a shared HTTP client."""
    configs = {
        cfg.name: cfg
        for cfg in build_provider_configs(
            max_requests_per_day=settings.max_requests_per_day,
            paid_timeout_s=settings.paid_provider_timeout_seconds,
            free_timeout_s=settings.free_provider_timeout_seconds,
            priority_order=settings.provider_priority,
        )
    }
    languages = {
        "source_language": settings.source_language,
        "target_language": settings.target_language,
    }
    return [
        RapidAPIProvider(
            configs[RAPIDAPI_PRIMARY],
            client,
            host=settings.rapidapi_host,
            api_key=settings.rapidapi_key_primary,
            **languages,
        ),
        RapidAPIProvider(
            configs[RAPIDAPI_SECONDARY],
            client,
            host=settings.rapidapi_host,
            api_key=settings.rapidapi_key_secondary,
            **languages,
        ),
        LibreTranslateProvider(
            configs[LIBRETRANSLATE],
            client,
            endpoints=settings.libretranslate_mirrors,
            api_key=settings.libretranslate_api_key,
            **languages,
        ),
    ]
