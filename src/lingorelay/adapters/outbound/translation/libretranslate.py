"""LibreTranslate adapter — the free, unlimited last resort.

Public LibreTranslate instances come and go, so the provider walks an
ordered list of mirrors and reports one aggregate outcome.  All mirrors share
the single time budget handed to ``attempt``.
"""

from __future__ import annotations

import asyncio
from typing import Any, Sequence

import httpx
import structlog

from lingorelay.adapters.outbound.translation.base import (
    HttpTranslationProvider,
    classify_http_error,
)
from lingorelay.domain.enums import FailureReason
from lingorelay.domain.value_objects import AttemptFailure, AttemptResult, AttemptSuccess
from lingorelay.shared.providers.types import ProviderConfig

logger = structlog.get_logger(__name__)


class LibreTranslateProvider(HttpTranslationProvider):
    """Translation through the first LibreTranslate mirror that answers."""

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient,
        *,
        endpoints: Sequence[str],
        api_key: str = "",
        source_language: str = "en",
        target_language: str = "fa",
    ) -> None:
        super().__init__(
            config,
            client,
            source_language=source_language,
            target_language=target_language,
        )
        self._endpoints = tuple(e.rstrip("/") for e in endpoints if e.strip())
        self._api_key = api_key

    @property
    def endpoints(self) -> tuple[str, ...]:
        return self._endpoints

    def configuration_problem(self) -> str | None:
        if not self._endpoints:
            return "no LibreTranslate endpoints configured"
        return None

    async def _translate(self, text: str, timeout: float) -> AttemptResult:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        last = AttemptFailure(FailureReason.NETWORK, "no mirror tried")

        for endpoint in self._endpoints:
            budget = deadline - loop.time()
            if budget <= 0:
                return AttemptFailure(
                    FailureReason.TIMEOUT, f"Timeout after {timeout}s across mirrors"
                )
            try:
                result = await self._try_mirror(endpoint, text, budget)
            except httpx.HTTPError as exc:
                result = classify_http_error(exc, prefix=f"{endpoint}: ")

            if isinstance(result, AttemptSuccess):
                return result
            logger.info(
                "libretranslate_mirror_failed",
                endpoint=endpoint,
                reason=result.reason.value,
                error=result.detail,
            )
            last = result

        return last

    async def _try_mirror(self, endpoint: str, text: str, budget: float) -> AttemptResult:
        body: dict[str, Any] = {
            "q": text,
            "source": self._source,
            "target": self._target,
            "format": "text",
        }
        if self._api_key:
            body["api_key"] = self._api_key

        response = await self._client.post(
            f"{endpoint}/translate",
            json=body,
            timeout=budget,
        )
        if response.is_error:
            return AttemptFailure(
                FailureReason.BAD_RESPONSE, f"{endpoint}: HTTP {response.status_code}"
            )
        try:
            data = response.json()
        except ValueError:
            return AttemptFailure(FailureReason.BAD_RESPONSE, f"{endpoint}: response is not JSON")

        translated = data.get("translatedText") if isinstance(data, dict) else None
        if not isinstance(translated, str) or not translated.strip():
            return AttemptFailure(
                FailureReason.BAD_RESPONSE, f"{endpoint}: missing translatedText"
            )
        return AttemptSuccess(translated)
