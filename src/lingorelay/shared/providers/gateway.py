"""Failover gateway — the main entry-point for translation calls.

Walks the configured providers in strict priority order, skipping any that
are out of quota or disabled, and returns the first successful translation.
Providers are tried one at a time so a single request never spends quota on
more than the provider that answers it (plus any that failed before it).
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Sequence

import structlog

from lingorelay.domain.enums import FailureReason
from lingorelay.domain.exceptions import PersistenceError
from lingorelay.domain.value_objects import (
    AttemptFailure,
    AttemptResult,
    AttemptSuccess,
    Failure,
    Success,
    TranslationOutcome,
    TranslationRequest,
)
from lingorelay.shared.observability.metrics import (
    PROVIDER_ATTEMPTS,
    PROVIDER_LATENCY,
    PROVIDER_SKIPS,
)
from lingorelay.shared.providers.quota import QuotaStore

if TYPE_CHECKING:
    from lingorelay.ports.outbound import TranslationProvider

logger = structlog.get_logger(__name__)


class FailoverGateway:
    """Ordered, quota-aware fallback across translation providers.

    Usage::

        gateway = FailoverGateway(providers, quota_store)
        outcome = await gateway.translate("good morning")

    ``grace_s`` is added to each provider's own timeout as a hard backstop,
    so a provider that ignores its budget still cannot stall the chain.
    """

    def __init__(
        self,
        providers: Sequence[TranslationProvider],
        quota: QuotaStore,
        *,
        grace_s: float = 0.25,
    ) -> None:
        # sorted() is stable: equal priorities keep their configured order
        self._providers = sorted(providers, key=lambda p: p.config.priority)
        self._quota = quota
        self._grace = grace_s
        self._disabled: set[str] = set()

    @property
    def providers(self) -> list[TranslationProvider]:
        return list(self._providers)

    @property
    def quota(self) -> QuotaStore:
        return self._quota

    @property
    def disabled(self) -> frozenset[str]:
        """Providers switched off for this process after a configuration error."""
        return frozenset(self._disabled)

    # ── Main entry-point ─────────────────────────────────────
    async def translate(self, text: str) -> TranslationOutcome:
        """Translate ``text`` with the first provider that succeeds.

        Returns:
            ``Success`` from the first provider that answered, or a
            ``Failure`` carrying the last error seen.  When no provider
            could even be tried because every one was out of quota, the
            failure reason is ``QUOTA_EXHAUSTED``.
        """
        request = TranslationRequest(text)
        if request.is_empty:
            return Success("")

        attempted: list[str] = []
        exhausted: list[str] = []
        last: AttemptFailure | None = None

        for provider in self._providers:
            pid = provider.name

            if pid in self._disabled:
                PROVIDER_SKIPS.labels(provider=pid, reason="disabled").inc()
                continue

            if await self._quota.remaining(pid) <= 0:
                logger.debug("provider_quota_exhausted", provider=pid)
                PROVIDER_SKIPS.labels(provider=pid, reason="quota_exhausted").inc()
                exhausted.append(pid)
                continue

            attempted.append(pid)
            result = await self._attempt(provider, request.text)

            if result.consumed:
                await self._record(pid, result.remaining_hint)

            if isinstance(result, AttemptSuccess):
                if len(attempted) > 1:
                    logger.info(
                        "provider_failover_success",
                        provider=pid,
                        attempts=len(attempted),
                        failed_providers=attempted[:-1],
                    )
                return Success(result.text, provider=pid)

            last = result
            if result.reason.is_permanent:
                self._disabled.add(pid)
                logger.error(
                    "provider_disabled",
                    provider=pid,
                    reason=result.reason.value,
                    detail=result.detail,
                )

        if not attempted and exhausted:
            logger.warning("all_providers_quota_exhausted", providers=exhausted)
            return Failure(
                FailureReason.QUOTA_EXHAUSTED,
                detail=f"quota exhausted: {', '.join(exhausted)}",
                source_text=request.text,
            )

        if last is None:
            logger.error("no_provider_available", disabled=sorted(self._disabled))
            return Failure(
                FailureReason.MISCONFIGURED,
                detail="no provider available",
                source_text=request.text,
            )

        logger.warning(
            "all_providers_failed",
            attempted=attempted,
            last_reason=last.reason.value,
        )
        return Failure(last.reason, detail=last.detail, source_text=request.text)

    # ── Provider-level attempt ───────────────────────────────
    async def _attempt(self, provider: TranslationProvider, text: str) -> AttemptResult:
        pid = provider.name
        timeout = provider.timeout_s
        log = logger.bind(provider=pid)
        log.info("provider_attempt", timeout_s=timeout)

        start = time.monotonic()
        try:
            result = await asyncio.wait_for(
                provider.attempt(text, timeout),
                timeout=timeout + self._grace,
            )
        except asyncio.TimeoutError:
            result = AttemptFailure(FailureReason.TIMEOUT, f"Timeout after {timeout}s")
        except Exception as exc:
            # Providers report failures as values; anything raised is a bug
            log.exception("provider_unexpected_error", error=str(exc))
            result = AttemptFailure(FailureReason.BAD_RESPONSE, f"{type(exc).__name__}: {exc}")
        elapsed = time.monotonic() - start
        latency_ms = float(f"{elapsed * 1000:.1f}")

        PROVIDER_LATENCY.labels(provider=pid).observe(elapsed)
        if isinstance(result, AttemptSuccess):
            PROVIDER_ATTEMPTS.labels(provider=pid, outcome="success").inc()
            log.info("provider_request_success", latency_ms=latency_ms)
        else:
            PROVIDER_ATTEMPTS.labels(provider=pid, outcome=result.reason.value).inc()
            log.warning(
                "provider_request_failed",
                reason=result.reason.value,
                error=result.detail,
                latency_ms=latency_ms,
            )
        return result

    async def _record(self, provider: str, remaining_hint: int | None) -> None:
        try:
            await self._quota.record_attempt(provider, remaining_hint)
        except PersistenceError as exc:
            # Counted in memory; the store is flagged degraded
            logger.error("quota_record_not_persisted", provider=provider, error=exc.message)

    # ── Admin ────────────────────────────────────────────────
    async def reset_provider(self, provider: str) -> None:
        """Re-enable ``provider`` and give it a fresh quota window."""
        await self._quota.reset(provider)
        self._disabled.discard(provider)
        logger.info("provider_admin_reset", provider=provider)
