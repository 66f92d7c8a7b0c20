"""Outbound ports — interfaces that infrastructure adapters must implement.

These are the *driven* ports in hexagonal architecture.  The domain and
application layers depend only on these abstractions, never on concrete
implementations (file stores, HTTP clients, etc.).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from lingorelay.domain.value_objects import AttemptResult
from lingorelay.shared.providers.types import ProviderConfig


# ═══════════════════════════════════════════════════════════════
#  Durable state ports
# ═══════════════════════════════════════════════════════════════
class QuotaSnapshotRepository(ABC):
    """Durable record of per-provider usage counters."""

    @abstractmethod
    async def load(self) -> dict[str, Any] | None:
        """Return the stored snapshot, ``None`` if nothing was stored.

        Raises ``CorruptStateError`` for undecodable content and
        ``PersistenceError`` for I/O failures.
        """
        ...

    @abstractmethod
    async def save(self, snapshot: dict[str, Any]) -> None: ...


class BroadcastStateRepository(ABC):
    """Durable copy of the last text shown to viewers."""

    @abstractmethod
    async def load(self) -> str | None: ...

    @abstractmethod
    async def save(self, text: str) -> None: ...


# ═══════════════════════════════════════════════════════════════
#  Translation provider port
# ═══════════════════════════════════════════════════════════════
class TranslationProvider(ABC):
    """One machine-translation vendor behind a uniform call.

    ``attempt`` never raises for provider trouble: every failure comes back
    as an ``AttemptFailure``.  Only cancellation propagates.
    """

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config

    @property
    def config(self) -> ProviderConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def capacity(self) -> int | None:
        return self._config.capacity

    @property
    def timeout_s(self) -> float:
        return self._config.timeout_s

    @abstractmethod
    async def attempt(self, text: str, timeout: float) -> AttemptResult: ...

    async def close(self) -> None:
        """Release any connection resources held by the provider."""
