"""Configuration models for the WeChat MP article source."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, PositiveInt, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Environment settings for fetching and caching articles."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    request_timeout_seconds: PositiveInt = Field(
        10,
        alias="MP_REQUEST_TIMEOUT_SECONDS",
        description="Timeout for a single article page request (seconds).",
    )
    user_agent: str = Field(DEFAULT_USER_AGENT, alias="MP_USER_AGENT", description="User-Agent header for page requests.")
    cache_ttl_seconds: PositiveInt = Field(
        3600,
        alias="MP_CACHE_TTL_SECONDS",
        description="How long a fetched article stays cached (seconds).",
    )
    redis_url: Optional[str] = Field(
        None,
        alias="MP_REDIS_URL",
        description="Redis DSN for the article cache; caching is disabled when unset.",
    )
    structlog_level: str = Field("INFO", alias="STRUCTLOG_LEVEL", description="Structured log level.")
    log_json: bool = Field(False, alias="LOG_JSON", description="Emit logs as JSON lines.")

    @field_validator("user_agent")
    @classmethod
    def _validate_user_agent(cls, value: str) -> str:
        agent = value.strip()
        if not agent:
            raise ValueError("MP_USER_AGENT must not be blank.")
        return agent

    @field_validator("redis_url")
    @classmethod
    def _validate_redis_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        if "://" not in value:
            raise ValueError("MP_REDIS_URL must be a valid DSN string.")
        return value.strip()


@lru_cache()
def get_settings() -> Settings:
    """Return a Settings instance built from the environment."""
    try:
        return Settings()
    except ValidationError as exc:
        raise RuntimeError(f"Environment validation failed: {exc}") from exc


def reset_settings_cache() -> None:
    """Clear the Settings LRU cache (for tests)."""
    get_settings.cache_clear()  # type: ignore[attr-defined]
