"""Quota store — tracks per-provider call budgets over a rolling window.

Counters live in memory and are written through to a durable snapshot after
every mutation.  Expired windows are rolled forward lazily on the next read
or write, so an idle process heals itself without a background timer.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Callable, Sequence

import structlog

from lingorelay.domain.entities import ProviderQuota
from lingorelay.domain.exceptions import CorruptStateError, PersistenceError
from lingorelay.shared.observability.metrics import QUOTA_REMAINING
from lingorelay.shared.providers.types import ProviderConfig

if TYPE_CHECKING:
    from lingorelay.ports.outbound import QuotaSnapshotRepository

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuotaStore:
    """Durable per-provider usage counters.

    Read-modify-write on one provider is serialised by that provider's lock;
    different providers never contend.  Snapshot writes are serialised by a
    separate write lock and always capture every provider's latest state.
    """

    def __init__(
        self,
        providers: Sequence[ProviderConfig],
        repository: QuotaSnapshotRepository,
        *,
        window_seconds: float = 86_400.0,
        clock: Clock = _utcnow,
    ) -> None:
        self._configs = {cfg.name: cfg for cfg in providers}
        self._repository = repository
        self._window = timedelta(seconds=window_seconds)
        self._clock = clock

        now = clock()
        self._quotas: dict[str, ProviderQuota] = {
            name: ProviderQuota.fresh(name, cfg.capacity, now)
            for name, cfg in self._configs.items()
        }
        self._locks: dict[str, asyncio.Lock] = {
            name: asyncio.Lock() for name in self._configs
        }
        self._write_lock = asyncio.Lock()
        self._degraded = False

    @property
    def window(self) -> timedelta:
        return self._window

    @property
    def degraded(self) -> bool:
        """True while the last snapshot write failed (counters held in memory only)."""
        return self._degraded

    @property
    def providers(self) -> list[str]:
        return list(self._configs)

    # ── Lifecycle ────────────────────────────────────────────
    async def load(self) -> None:
        """Restore counters from the durable snapshot and write them back.

        Missing or corrupt state starts every provider at full capacity.
        Raises ``PersistenceError`` on I/O failure; in-memory defaults stay
        usable so the caller may carry on without durability.
        """
        try:
            raw = await self._repository.load()
        except CorruptStateError as exc:
            logger.warning("quota_snapshot_corrupt", error=exc.message)
            raw = None
        except PersistenceError as exc:
            self._degraded = True
            logger.error("quota_snapshot_unreadable", error=exc.message)
            raise

        if raw is not None and not isinstance(raw, dict):
            logger.warning("quota_snapshot_corrupt", error="snapshot is not an object")
            raw = None

        now = self._clock()
        records = raw or {}
        restored = 0
        for name, cfg in self._configs.items():
            quota = ProviderQuota.fresh(name, cfg.capacity, now)
            if name in records:
                try:
                    quota = ProviderQuota.from_record(
                        name, cfg.capacity, records[name], now
                    )
                    restored += 1
                except ValueError as exc:
                    logger.warning("quota_record_invalid", provider=name, error=str(exc))
            self._roll(quota, now)
            self._quotas[name] = quota
            self._publish_gauge(quota)

        logger.info(
            "quota_store_loaded",
            restored=restored,
            providers=len(self._configs),
            fresh=raw is None,
        )
        await self._persist()

    # ── Queries ──────────────────────────────────────────────
    async def remaining(self, provider: str) -> float:
        """Calls left for ``provider`` (``inf`` when unlimited).

        Rolls an expired window first, which writes the snapshot.
        """
        quota = self._get(provider)
        async with self._locks[provider]:
            if self._roll(quota, self._clock()):
                try:
                    await self._persist()
                except PersistenceError as exc:
                    logger.error("quota_reset_not_persisted", provider=provider, error=exc.message)
            return quota.remaining

    async def snapshot(self) -> dict[str, ProviderQuota]:
        """Copies of every provider's counters, with expired windows rolled."""
        result: dict[str, ProviderQuota] = {}
        for name in self._configs:
            await self.remaining(name)
            result[name] = self._quotas[name].copy()
        return result

    def next_reset(self, provider: str) -> datetime | None:
        return self._get(provider).next_reset(self._window)

    def earliest_reset(self) -> datetime | None:
        resets = [
            r for r in (q.next_reset(self._window) for q in self._quotas.values()) if r
        ]
        return min(resets) if resets else None

    # ── Mutations ────────────────────────────────────────────
    async def record_attempt(
        self, provider: str, remaining_hint: int | None = None
    ) -> ProviderQuota:
        """Count one completed call against ``provider`` and persist it.

        A provider-reported ``remaining_hint`` replaces the local decrement.
        Raises ``PersistenceError`` if the write fails; the in-memory count
        is kept either way.
        """
        quota = self._get(provider)
        async with self._locks[provider]:
            self._roll(quota, self._clock())
            quota.consume(remaining_hint)
            self._publish_gauge(quota)
            result = quota.copy()
            await self._persist()
        logger.debug(
            "quota_recorded",
            provider=provider,
            used=result.used,
            remaining=None if result.is_unlimited else int(result.remaining),
            hinted=remaining_hint is not None,
        )
        return result

    async def reset(self, provider: str) -> None:
        """Force a fresh window for ``provider`` (admin override)."""
        quota = self._get(provider)
        async with self._locks[provider]:
            quota.reset(self._clock())
            self._publish_gauge(quota)
            await self._persist()
        logger.info("quota_force_reset", provider=provider)

    # ── Internals ────────────────────────────────────────────
    def _get(self, provider: str) -> ProviderQuota:
        try:
            return self._quotas[provider]
        except KeyError:
            raise KeyError(f"unknown provider: {provider!r}") from None

    def _roll(self, quota: ProviderQuota, now: datetime) -> bool:
        """Reset ``quota`` if its window expired. Caller holds its lock."""
        if not quota.is_expired(now, self._window):
            return False
        logger.info(
            "quota_window_reset",
            provider=quota.provider,
            used=quota.used,
            window_start=quota.window_start.isoformat(),
        )
        quota.reset(now)
        self._publish_gauge(quota)
        return True

    async def _persist(self) -> None:
        async with self._write_lock:
            snapshot = {name: q.to_record() for name, q in self._quotas.items()}
            try:
                await self._repository.save(snapshot)
            except PersistenceError as exc:
                if not self._degraded:
                    logger.error("quota_persistence_degraded", error=exc.message)
                self._degraded = True
                raise
            if self._degraded:
                logger.info("quota_persistence_recovered")
                self._degraded = False

    @staticmethod
    def _publish_gauge(quota: ProviderQuota) -> None:
        if not quota.is_unlimited:
            QUOTA_REMAINING.labels(provider=quota.provider).set(quota.remaining)
