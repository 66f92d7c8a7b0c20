"""Shared plumbing for HTTP translation providers.

Subclasses implement the vendor call; this base enforces the time budget and
turns every ``httpx`` error into an ``AttemptFailure`` so nothing but
cancellation escapes ``attempt``.
"""

from __future__ import annotations

import asyncio
from abc import abstractmethod

import httpx

from lingorelay.domain.enums import FailureReason
from lingorelay.domain.value_objects import AttemptFailure, AttemptResult
from lingorelay.ports.outbound import TranslationProvider
from lingorelay.shared.providers.types import ProviderConfig


def classify_http_error(exc: httpx.HTTPError, *, prefix: str = "") -> AttemptFailure:
    """Map an ``httpx`` exception to the failure taxonomy."""
    detail = f"{prefix}{type(exc).__name__}: {exc}"
    if isinstance(exc, httpx.TimeoutException):
        return AttemptFailure(FailureReason.TIMEOUT, detail)
    if isinstance(exc, httpx.TransportError):
        return AttemptFailure(FailureReason.NETWORK, detail)
    return AttemptFailure(FailureReason.BAD_RESPONSE, detail)


class HttpTranslationProvider(TranslationProvider):
    """Provider that talks to its vendor through a shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient,
        *,
        source_language: str = "en",
        target_language: str = "fa",
    ) -> None:
        super().__init__(config)
        self._client = client
        self._source = source_language
        self._target = target_language

    async def attempt(self, text: str, timeout: float) -> AttemptResult:
        problem = self.configuration_problem()
        if problem:
            return AttemptFailure(FailureReason.MISCONFIGURED, problem)

        try:
            return await asyncio.wait_for(self._translate(text, timeout), timeout=timeout)
        except asyncio.TimeoutError:
            return AttemptFailure(FailureReason.TIMEOUT, f"Timeout after {timeout}s")
        except httpx.HTTPError as exc:
            return classify_http_error(exc)

    @abstractmethod
    def configuration_problem(self) -> str | None:
        """Describe missing configuration, or ``None`` when ready to call."""
        ...

    @abstractmethod
    async def _translate(self, text: str, timeout: float) -> AttemptResult:
        """Perform the vendor call; may raise ``httpx.HTTPError``."""
        ...
