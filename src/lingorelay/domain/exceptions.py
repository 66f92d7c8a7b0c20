"""Domain-specific exception hierarchy.

All exceptions inherit from ``DomainError`` so callers can catch the entire
family in one clause while still discriminating on subclass.
"""

from __future__ import annotations

from datetime import datetime


class DomainError(Exception):
    """Base class for all domain-layer errors."""

    def __init__(self, message: str, *, code: str = "DOMAIN_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(message)


# ── Validation ───────────────────────────────────────────────
class ValidationError(DomainError):
    """Input failed domain validation rules."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="VALIDATION_ERROR")


# ── Translation ──────────────────────────────────────────────
class QuotaExhaustedError(DomainError):
    """Every capacity-limited provider is at zero and no fallback is reachable."""

    def __init__(self, next_reset: datetime | None) -> None:
        self.next_reset = next_reset
        super().__init__("API quota exhausted", code="QUOTA_EXHAUSTED")


class ProviderNotFoundError(DomainError):
    def __init__(self, provider: str) -> None:
        super().__init__(f"Provider {provider!r} not found", code="PROVIDER_NOT_FOUND")


class TranslationFailedError(DomainError):
    """Every provider failed; carries the placeholder already shown to viewers."""

    def __init__(self, placeholder: str, reason: str) -> None:
        self.placeholder = placeholder
        self.reason = reason
        super().__init__(f"Translation failed ({reason})", code="TRANSLATION_FAILED")


# ── Persistence ──────────────────────────────────────────────
class PersistenceError(DomainError):
    def __init__(self, message: str) -> None:
        super().__init__(message, code="PERSISTENCE_ERROR")


class CorruptStateError(PersistenceError):
    """Durable state exists but cannot be decoded."""
