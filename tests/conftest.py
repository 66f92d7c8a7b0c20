"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Iterable

import pytest

from lingorelay.adapters.outbound.persistence.repositories import InMemoryQuotaSnapshotRepository
from lingorelay.domain.enums import FailureReason
from lingorelay.domain.exceptions import PersistenceError
from lingorelay.domain.value_objects import AttemptFailure, AttemptResult, AttemptSuccess
from lingorelay.ports.outbound import TranslationProvider
from lingorelay.shared.providers.quota import QuotaStore
from lingorelay.shared.providers.types import ProviderConfig, ProviderTier


class FakeProvider(TranslationProvider):
    """Provider that replays a script of results.

    Each script entry is an ``AttemptResult`` or a float (sleep that long,
    i.e. hang until cancelled by the caller's timeout).  The last entry
    repeats once the script runs out.
    """

    def __init__(
        self,
        name: str,
        script: Iterable[AttemptResult | float] = (),
        *,
        capacity: int | None = 2,
        priority: int = 1,
        timeout_s: float = 0.2,
        tier: ProviderTier = ProviderTier.PAID,
    ) -> None:
        super().__init__(
            ProviderConfig(
                name=name,
                tier=tier,
                capacity=capacity,
                priority=priority,
                timeout_s=timeout_s,
            )
        )
        self._script = list(script) or [AttemptSuccess(f"{name}:ok")]
        self.calls: list[str] = []
        self.closed = False

    async def attempt(self, text: str, timeout: float) -> AttemptResult:
        self.calls.append(text)
        step = self._script[min(len(self.calls) - 1, len(self._script) - 1)]
        if isinstance(step, (int, float)):
            await asyncio.sleep(step)
            return AttemptSuccess(f"{self.name}:late")
        return step

    async def close(self) -> None:
        self.closed = True


def ok(text: str, hint: int | None = None) -> AttemptSuccess:
    return AttemptSuccess(text, remaining_hint=hint)


def bad(consumed: bool = True) -> AttemptFailure:
    return AttemptFailure(FailureReason.BAD_RESPONSE, "HTTP 500", consumed=consumed)


def network() -> AttemptFailure:
    return AttemptFailure(FailureReason.NETWORK, "ConnectError: refused")


def misconfigured() -> AttemptFailure:
    return AttemptFailure(FailureReason.MISCONFIGURED, "configuration missing")


class FailingRepo(InMemoryQuotaSnapshotRepository):
    """Snapshot repository whose reads or writes can be made to fail."""

    def __init__(self, *, fail_load: Exception | None = None, fail_save: bool = False) -> None:
        super().__init__()
        self.fail_load = fail_load
        self.fail_save = fail_save

    async def load(self):
        if self.fail_load is not None:
            raise self.fail_load
        return await super().load()

    async def save(self, snapshot):
        if self.fail_save:
            raise PersistenceError("disk full")
        await super().save(snapshot)


class ManualClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def snapshot_repo() -> InMemoryQuotaSnapshotRepository:
    return InMemoryQuotaSnapshotRepository()


@pytest.fixture
def make_store(snapshot_repo, clock):
    def _make(providers: list[TranslationProvider], repo=None) -> QuotaStore:
        return QuotaStore(
            [p.config for p in providers],
            repo if repo is not None else snapshot_repo,
            window_seconds=86_400,
            clock=clock,
        )

    return _make
