"""RapidAPI translation adapter — the paid, metered tier.

Primary and secondary providers hit the same RapidAPI host with different
subscription keys, so each carries its own daily quota.
"""

from __future__ import annotations

import httpx

from lingorelay.adapters.outbound.translation.base import HttpTranslationProvider
from lingorelay.domain.enums import FailureReason
from lingorelay.domain.value_objects import AttemptFailure, AttemptResult, AttemptSuccess
from lingorelay.shared.providers.types import ProviderConfig

REMAINING_HEADER = "x-ratelimit-remaining"


def parse_remaining_hint(value: str | None) -> int | None:
    """Remaining-calls header as an int, ``None`` when absent or garbled."""
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


class RapidAPIProvider(HttpTranslationProvider):
    """Translation through a RapidAPI-hosted endpoint.

    Requires:
        - ``host``    (RAPIDAPI_HOST)
        - ``api_key`` (RAPIDAPI_KEY_PRIMARY / RAPIDAPI_KEY_SECONDARY)
    """

    def __init__(
        self,
        config: ProviderConfig,
        client: httpx.AsyncClient,
        *,
        host: str,
        api_key: str,
        source_language: str = "en",
        target_language: str = "fa",
    ) -> None:
        super().__init__(
            config,
            client,
            source_language=source_language,
            target_language=target_language,
        )
        self._host = host.strip()
        self._api_key = api_key.strip()

    def configuration_problem(self) -> str | None:
        if not self._host or not self._api_key:
            return f"{self.name} configuration missing"
        return None

    async def _translate(self, text: str, timeout: float) -> AttemptResult:
        response = await self._client.post(
            f"https://{self._host}/translate",
            headers={
                "X-RapidAPI-Host": self._host,
                "X-RapidAPI-Key": self._api_key,
            },
            data={
                "source_language": self._source,
                "target_language": self._target,
                "text": text,
            },
            timeout=timeout,
        )
        hint = parse_remaining_hint(response.headers.get(REMAINING_HEADER))

        if response.is_error:
            return AttemptFailure(
                FailureReason.BAD_RESPONSE,
                f"HTTP {response.status_code}",
                remaining_hint=hint,
                consumed=True,
            )

        try:
            data = response.json()
        except ValueError:
            return AttemptFailure(
                FailureReason.BAD_RESPONSE,
                "response is not JSON",
                remaining_hint=hint,
                consumed=True,
            )

        translated = None
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            translated = data["data"].get("translatedText")
        if not isinstance(translated, str) or not translated.strip():
            return AttemptFailure(
                FailureReason.BAD_RESPONSE,
                "missing data.translatedText",
                remaining_hint=hint,
                consumed=True,
            )

        return AttemptSuccess(translated, remaining_hint=hint)
