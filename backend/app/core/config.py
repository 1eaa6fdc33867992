# File: app/core/config.py
"""
Application Configuration
"""
from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # App
    APP_NAME: str = Field(default="Clan Portal")
    ENV: Literal["dev", "staging", "prod"] = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # API
    API_PREFIX: str = Field(default="/api", description="Root API prefix")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    # Clash of Clans upstream
    COC_API_BASE: str = Field(default="https://api.clashofclans.com/v1")
    COC_TOKEN: str | None = Field(
        default=None,
        description="Bearer token from the Clash of Clans developer portal",
    )
    COC_TIMEOUT: float = Field(default=20.0, description="Upstream timeout, seconds")

    # Dashboard defaults
    DEFAULT_CLAN_TAG: str | None = Field(
        default=None,
        description="Clan used when a request carries no ?tag=",
    )
    WARLOG_LIMIT: int = Field(default=10, ge=1)
    RAIDS_LIMIT: int = Field(default=10, ge=1)


@lru_cache
def get_settings() -> Settings:
    """FastAPI dependency returning the process settings."""
    return Settings()
