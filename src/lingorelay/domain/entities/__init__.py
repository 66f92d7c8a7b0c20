"""Domain entities — objects with identity and lifecycle.

Entities are *mutable* but expose controlled mutation methods that enforce
business invariants.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any

UNLIMITED = math.inf


def _parse_window_start(
    record: dict[str, Any], fallback: datetime | None = None
) -> datetime:
    raw = record.get("windowStart")
    if isinstance(raw, str):
        parsed = datetime.fromisoformat(raw)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    # Older snapshots stored epoch milliseconds under "lastReset"
    legacy = record.get("lastReset")
    if isinstance(legacy, (int, float)) and not isinstance(legacy, bool):
        return datetime.fromtimestamp(legacy / 1000.0, tz=timezone.utc)
    if fallback is not None:
        return fallback
    raise ValueError("missing windowStart")


# ═══════════════════════════════════════════════════════════════
#  ProviderQuota
# ═══════════════════════════════════════════════════════════════
@dataclass(slots=True)
class ProviderQuota:
    """Usage counters for one provider within the current rolling window.

    ``capacity`` of ``None`` marks an unlimited provider, whose
    ``remaining`` is pinned to ``UNLIMITED`` and never decrements.
    """

    provider: str
    capacity: int | None
    used: int
    remaining: float
    window_start: datetime

    @classmethod
    def fresh(cls, provider: str, capacity: int | None, now: datetime) -> ProviderQuota:
        return cls(
            provider=provider,
            capacity=capacity,
            used=0,
            remaining=UNLIMITED if capacity is None else capacity,
            window_start=now,
        )

    @classmethod
    def from_record(
        cls,
        provider: str,
        capacity: int | None,
        record: Any,
        now: datetime | None = None,
    ) -> ProviderQuota:
        """Rebuild from a persisted record, clamped to the current capacity.

        Unlimited records without a timestamp start their window at ``now``.
        Raises ``ValueError`` when the record is not usable.
        """
        if not isinstance(record, dict):
            raise ValueError(f"quota record for {provider!r} is not an object")

        used = record.get("used", 0)
        if isinstance(used, bool) or not isinstance(used, int) or used < 0:
            raise ValueError(f"invalid used counter for {provider!r}: {used!r}")

        window_start = _parse_window_start(
            record, fallback=now if capacity is None else None
        )

        if capacity is None:
            remaining: float = UNLIMITED
        else:
            raw = record.get("remaining")
            if raw is None:
                # Provider was unlimited when the snapshot was written
                remaining = capacity
            elif isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
                raise ValueError(f"invalid remaining counter for {provider!r}: {raw!r}")
            else:
                remaining = min(raw, capacity)

        return cls(
            provider=provider,
            capacity=capacity,
            used=used,
            remaining=remaining,
            window_start=window_start,
        )

    @property
    def is_unlimited(self) -> bool:
        return self.capacity is None

    @property
    def has_capacity(self) -> bool:
        return self.remaining > 0

    def is_expired(self, now: datetime, window: timedelta) -> bool:
        if self.is_unlimited:
            return False
        return now - self.window_start > window

    def next_reset(self, window: timedelta) -> datetime | None:
        if self.is_unlimited:
            return None
        return self.window_start + window

    # ── Mutations ────────────────────────────────────────────
    def reset(self, now: datetime) -> None:
        self.used = 0
        self.remaining = UNLIMITED if self.capacity is None else self.capacity
        self.window_start = now

    def consume(self, remaining_hint: int | None = None) -> None:
        """Count one completed call; the provider's own hint wins when given."""
        self.used += 1
        if self.is_unlimited:
            return
        if remaining_hint is not None:
            self.remaining = min(self.capacity, max(0, remaining_hint))
        else:
            self.remaining = max(0, int(self.remaining) - 1)

    # ── Serialisation ────────────────────────────────────────
    def to_record(self) -> dict[str, Any]:
        return {
            "used": self.used,
            "remaining": None if self.is_unlimited else int(self.remaining),
            "windowStart": self.window_start.isoformat(),
        }

    def copy(self) -> ProviderQuota:
        return replace(self)
