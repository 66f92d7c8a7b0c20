"""Lingorelay — Application Configuration."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, enum.Enum):
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class Settings(BaseSettings):
    """Centralised, validated configuration loaded from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────
    app_name: str = "lingorelay"
    app_env: Environment = Environment.DEVELOPMENT
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 3000
    log_level: str = "INFO"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # ── Language pair ────────────────────────────────────────
    source_language: str = "en"
    target_language: str = "fa"

    # ── Paid tier (RapidAPI) ─────────────────────────────────
    rapidapi_host: str = ""
    rapidapi_key_primary: str = ""
    rapidapi_key_secondary: str = ""
    max_requests_per_day: int = Field(1000, ge=0)
    rate_limit_window_ms: int = Field(86_400_000, gt=0)  # 24 hours

    # ── Free tier (LibreTranslate mirrors) ───────────────────
    libretranslate_endpoints: str = (
        "https://libretranslate.de,"
        "https://translate.argosopentech.com,"
        "https://libretranslate.com"
    )
    libretranslate_api_key: str = ""

    # ── Failover ─────────────────────────────────────────────
    provider_priority: str = "RapidAPI-Primary,RapidAPI-Secondary,LibreTranslate"
    paid_provider_timeout_seconds: float = Field(5.0, gt=0)
    free_provider_timeout_seconds: float = Field(10.0, gt=0)
    provider_timeout_grace_seconds: float = Field(0.25, ge=0)

    # ── Durable state ────────────────────────────────────────
    persist_state: bool = True
    state_dir: Path = Path(".")
    quota_stats_file: str = "api_usage_stats.json"
    projector_text_file: str = "projector_text.txt"

    # ── Broadcast ────────────────────────────────────────────
    waiting_placeholder: str = "در حال انتظار برای ترجمه..."
    failure_prefix: str = "[Translation failed]"
    subscriber_queue_size: int = Field(32, ge=1)

    # ── Derived helpers ──────────────────────────────────────
    @property
    def is_production(self) -> bool:
        return self.app_env == Environment.PRODUCTION

    @property
    def quota_window_seconds(self) -> float:
        return self.rate_limit_window_ms / 1000.0

    @property
    def quota_stats_path(self) -> Path:
        return self.state_dir / self.quota_stats_file

    @property
    def projector_text_path(self) -> Path:
        return self.state_dir / self.projector_text_file

    @property
    def libretranslate_mirrors(self) -> tuple[str, ...]:
        return tuple(
            e.strip().rstrip("/") for e in self.libretranslate_endpoints.split(",") if e.strip()
        )

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def _guard_production_credentials(self) -> Settings:
        """Warn when production would run on the free tier only."""
        if self.app_env == Environment.PRODUCTION:
            if not self.rapidapi_host or not (
                self.rapidapi_key_primary or self.rapidapi_key_secondary
            ):
                import warnings
                warnings.warn(
                    "no RapidAPI credentials configured — only the free tier will be used",
                    UserWarning,
                    stacklevel=2,
                )
        return self


def get_settings(**overrides: Any) -> Settings:
    """Factory that allows test-time overrides."""
    return Settings(**overrides)
