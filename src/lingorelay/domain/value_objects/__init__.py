"""Domain value objects — immutable, self-validating types.

Value objects have *no identity*; two instances with equal fields are equal.
They enforce invariants at construction time so the rest of the domain can
trust their contents without re-checking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from lingorelay.domain.enums import FailureReason, MessageType


# ═══════════════════════════════════════════════════════════════
#  TranslationRequest
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True, slots=True)
class TranslationRequest:
    """Source text, stored trimmed."""

    text: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "text", (self.text or "").strip())

    @property
    def is_empty(self) -> bool:
        return not self.text


# ═══════════════════════════════════════════════════════════════
#  Provider attempt results
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True, slots=True)
class AttemptSuccess:
    """A provider returned a translation.

    ``remaining_hint`` is the provider's own count of calls left in the
    current window, when it reports one.
    """

    text: str
    remaining_hint: int | None = None

    @property
    def consumed(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class AttemptFailure:
    """A provider attempt failed.

    ``consumed`` is True when the remote answered (so the call counts
    against its quota) even though no usable translation came back.
    """

    reason: FailureReason
    detail: str = ""
    remaining_hint: int | None = None
    consumed: bool = False

    def __post_init__(self) -> None:
        if self.reason is FailureReason.MISCONFIGURED and self.consumed:
            raise ValueError("a misconfigured attempt never reaches the provider")


AttemptResult = Union[AttemptSuccess, AttemptFailure]


# ═══════════════════════════════════════════════════════════════
#  TranslationOutcome
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True, slots=True)
class Success:
    text: str
    provider: str | None = None


@dataclass(frozen=True, slots=True)
class Failure:
    reason: FailureReason
    detail: str = ""
    source_text: str = ""

    def placeholder(self, prefix: str) -> str:
        """User-visible stand-in, recognisably different from a translation."""
        return f"{prefix} {self.source_text}".strip()


TranslationOutcome = Union[Success, Failure]


# ═══════════════════════════════════════════════════════════════
#  BroadcastMessage
# ═══════════════════════════════════════════════════════════════
@dataclass(frozen=True, slots=True)
class BroadcastMessage:
    type: MessageType
    content: str | None = None

    def __post_init__(self) -> None:
        if self.type is MessageType.TRANSLATION and self.content is None:
            raise ValueError("translation messages carry content")
        if self.type is MessageType.CLEAR and self.content is not None:
            raise ValueError("clear messages carry no content")

    @classmethod
    def translation(cls, content: str) -> BroadcastMessage:
        return cls(MessageType.TRANSLATION, content)

    @classmethod
    def clear(cls) -> BroadcastMessage:
        return cls(MessageType.CLEAR)

    def to_dict(self) -> dict[str, Any]:
        if self.type is MessageType.CLEAR:
            return {"type": self.type.value}
        return {"type": self.type.value, "content": self.content}
