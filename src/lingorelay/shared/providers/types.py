"""Core types for the provider failover framework."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ProviderTier(str, enum.Enum):
    """Cost class of a provider; drives its default timeout and priority."""

    PAID = "paid"
    FREE = "free"


@dataclass(frozen=True)
class ProviderConfig:
    """Static configuration for a single provider.

    Attributes:
        name:       Stable identifier, also the quota snapshot key.
        tier:       Paid (low-latency, metered) or free (best-effort mirrors).
        capacity:   Calls allowed per quota window (``None`` = unlimited).
        priority:   Lower = tried earlier.
        timeout_s:  Bound on a single attempt, in seconds.
    """

    name: str
    tier: ProviderTier = ProviderTier.PAID
    capacity: int | None = None
    priority: int = 10
    timeout_s: float = 5.0

    def __post_init__(self) -> None:
        if self.capacity is not None and self.capacity < 0:
            raise ValueError(f"capacity must be >= 0 for {self.name!r}")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be > 0 for {self.name!r}")

    @property
    def is_unlimited(self) -> bool:
        return self.capacity is None
