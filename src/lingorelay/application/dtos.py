"""Data Transfer Objects — Pydantic models for API boundaries.

DTOs handle serialisation, validation, and documentation.  They live in the
application layer because they are *not* domain objects — they adapt between
the external world and the domain.  Field names go out in camelCase to stay
compatible with the browser widget.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lingorelay.domain.entities import ProviderQuota


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ═══════════════════════════════════════════════════════════════
#  Common
# ═══════════════════════════════════════════════════════════════
class ErrorResponse(BaseModel):
    code: str
    message: str
    details: dict | None = None  # type: ignore[type-arg]


class HealthResponse(_CamelModel):
    status: str = "healthy"
    version: str = "0.1.0"
    environment: str = "development"
    timestamp: datetime
    uptime_seconds: float
    subscribers: int = 0
    quota_persistence: str = "ok"


class SuccessResponse(BaseModel):
    success: bool = True


# ═══════════════════════════════════════════════════════════════
#  Usage
# ═══════════════════════════════════════════════════════════════
class ProviderUsage(_CamelModel):
    used: int
    remaining: int | None = Field(None, description="null when unlimited")
    capacity: int | None = None
    window_start: datetime
    next_reset: datetime | None = None
    enabled: bool = True

    @classmethod
    def from_quota(
        cls, quota: ProviderQuota, window: timedelta, *, enabled: bool = True
    ) -> ProviderUsage:
        return cls(
            used=quota.used,
            remaining=None if quota.is_unlimited else int(quota.remaining),
            capacity=quota.capacity,
            window_start=quota.window_start,
            next_reset=quota.next_reset(window),
            enabled=enabled,
        )


class UsageData(_CamelModel):
    stats: dict[str, ProviderUsage]
    next_reset: datetime | None = None
    server_time: datetime
    degraded: bool = False


class UsageResponse(BaseModel):
    success: bool = True
    data: UsageData


# ═══════════════════════════════════════════════════════════════
#  Translation
# ═══════════════════════════════════════════════════════════════
class TranslateRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=5000)


class TranslateResponse(BaseModel):
    success: bool = True
    translation: str
    provider: str | None = None
    usage: UsageData


class BroadcastRequest(BaseModel):
    translation: str = Field(..., min_length=1, max_length=5000)
