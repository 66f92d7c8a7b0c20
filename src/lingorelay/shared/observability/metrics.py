"""Prometheus metrics for the translation relay."""

from __future__ import annotations

from prometheus_client import Counter, Histogram, Gauge


# ── HTTP metrics ─────────────────────────────────────────────
HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# ── Provider metrics ─────────────────────────────────────────
PROVIDER_ATTEMPTS = Counter(
    "translation_provider_attempts_total",
    "Provider attempts by outcome",
    ["provider", "outcome"],
)

PROVIDER_LATENCY = Histogram(
    "translation_provider_latency_seconds",
    "Provider attempt latency",
    ["provider"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0),
)

PROVIDER_SKIPS = Counter(
    "translation_provider_skips_total",
    "Providers skipped without an attempt",
    ["provider", "reason"],
)

QUOTA_REMAINING = Gauge(
    "translation_quota_remaining",
    "Calls left in the current window (capacity-limited providers only)",
    ["provider"],
)

TRANSLATIONS_TOTAL = Counter(
    "translations_total",
    "Translation requests by final status",
    ["status"],
)

# ── Broadcast metrics ────────────────────────────────────────
BROADCAST_SUBSCRIBERS = Gauge(
    "broadcast_subscribers",
    "Currently attached live viewers",
)

BROADCAST_MESSAGES = Counter(
    "broadcast_messages_total",
    "Messages fanned out to viewers",
    ["type"],
)

BROADCAST_DROPPED = Counter(
    "broadcast_dropped_messages_total",
    "Messages dropped from a full subscriber queue",
)
