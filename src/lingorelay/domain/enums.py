"""Domain enumerations."""

from __future__ import annotations

import enum


class FailureReason(str, enum.Enum):
    """Why a provider attempt (or a whole translation) failed."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    BAD_RESPONSE = "bad_response"
    MISCONFIGURED = "misconfigured"
    QUOTA_EXHAUSTED = "quota_exhausted"

    @property
    def is_permanent(self) -> bool:
        """Misconfiguration does not heal within a process lifetime."""
        return self is FailureReason.MISCONFIGURED


class MessageType(str, enum.Enum):
    """Kinds of message pushed to live viewers."""

    TRANSLATION = "translation"
    CLEAR = "clear"
