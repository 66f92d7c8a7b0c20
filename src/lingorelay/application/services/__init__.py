"""Translation relay service.

Runs inbound text through the failover gateway, hands the outcome to the
broadcast hub, and turns terminal failures into domain errors the HTTP layer
knows how to present.  Overlapping requests are not ordered against each
other: whichever finishes its provider chain first is broadcast first.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from lingorelay.adapters.outbound.broadcast import BroadcastHub
from lingorelay.application.dtos import ProviderUsage, UsageData
from lingorelay.domain.enums import FailureReason
from lingorelay.domain.exceptions import (
    ProviderNotFoundError,
    QuotaExhaustedError,
    TranslationFailedError,
    ValidationError,
)
from lingorelay.domain.value_objects import Success
from lingorelay.shared.observability.metrics import TRANSLATIONS_TOTAL
from lingorelay.shared.providers.gateway import FailoverGateway

logger = structlog.get_logger(__name__)


class TranslationService:
    """Gateway → hub pipeline behind the HTTP endpoints."""

    def __init__(self, gateway: FailoverGateway, hub: BroadcastHub) -> None:
        self._gateway = gateway
        self._hub = hub

    @property
    def gateway(self) -> FailoverGateway:
        return self._gateway

    @property
    def hub(self) -> BroadcastHub:
        return self._hub

    async def translate(self, text: str) -> Success:
        """Translate ``text`` and broadcast the result.

        Raises:
            QuotaExhaustedError: no provider had quota left; nothing is
                broadcast.
            TranslationFailedError: every provider failed; the placeholder
                has already been broadcast.
        """
        outcome = await self._gateway.translate(text)

        if isinstance(outcome, Success):
            if not outcome.text:
                TRANSLATIONS_TOTAL.labels(status="empty").inc()
                return outcome
            await self._hub.publish(outcome)
            TRANSLATIONS_TOTAL.labels(status="success").inc()
            return outcome

        if outcome.reason is FailureReason.QUOTA_EXHAUSTED:
            TRANSLATIONS_TOTAL.labels(status="quota_exhausted").inc()
            next_reset = self._gateway.quota.earliest_reset()
            logger.warning(
                "translation_quota_exhausted",
                next_reset=next_reset.isoformat() if next_reset else None,
            )
            raise QuotaExhaustedError(next_reset)

        message = await self._hub.publish(outcome)
        TRANSLATIONS_TOTAL.labels(status="failed").inc()
        raise TranslationFailedError(message.content or "", outcome.reason.value)

    async def broadcast(self, translation: str) -> None:
        """Push already-translated text to viewers without calling a provider."""
        text = translation.strip()
        if not text:
            raise ValidationError("translation must not be blank")
        await self._hub.publish(Success(text))

    async def clear(self) -> None:
        await self._hub.clear()

    def current_text(self) -> str:
        return self._hub.current_text()

    async def usage(self) -> UsageData:
        quota = self._gateway.quota
        snapshot = await quota.snapshot()
        disabled = self._gateway.disabled
        return UsageData(
            stats={
                name: ProviderUsage.from_quota(q, quota.window, enabled=name not in disabled)
                for name, q in snapshot.items()
            },
            next_reset=quota.earliest_reset(),
            server_time=datetime.now(timezone.utc),
            degraded=quota.degraded,
        )

    async def reset_provider(self, provider: str) -> None:
        if provider not in self._gateway.quota.providers:
            raise ProviderNotFoundError(provider)
        await self._gateway.reset_provider(provider)
