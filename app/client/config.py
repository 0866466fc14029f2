"""Client configuration loaded from ERP_* environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Validated client settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="ERP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    API_URL: str = "http://localhost:3001"
    APP_NAME: str = "Plataforma ERP"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: Literal["development", "staging", "production", "test"] = "development"
    DEBUG: bool = False
    REQUEST_TIMEOUT_SEC: float = 30.0
    TOKEN_FILE: str | None = None

    @field_validator("API_URL")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        s = v.strip().lower()
        if not (s.startswith("http://") or s.startswith("https://")):
            raise ValueError("ERP_API_URL must use http or https (e.g. http://localhost:3001)")
        return v.strip().rstrip("/")

    @field_validator("REQUEST_TIMEOUT_SEC")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0 or v > 300:
            raise ValueError("ERP_REQUEST_TIMEOUT_SEC must be greater than 0 and at most 300")
        return v


@lru_cache
def get_client_settings() -> ClientSettings:
    """Return cached client settings."""
    return ClientSettings()
