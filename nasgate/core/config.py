"""Application configuration loaded from environment variables."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Allowed URL schemes for DATABASE_URL (module-level so validators can use it).
VALID_DATABASE_URL_PREFIXES = (
    "sqlite://",
    "sqlite+pysqlite://",
    "postgresql://",
    "postgresql+psycopg2://",
    "postgres://",
)

SUPPORTED_LANGUAGES = ("en", "es")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# The project checkout the server runs from; never exposed even when nested under SHARE_ROOT.
DEFAULT_INSTALL_DIR = Path(__file__).resolve().parents[2]


def _normalize_dir(value: str | Path) -> str:
    return os.path.normpath(os.path.abspath(os.path.expanduser(str(value))))


class Settings(BaseSettings):
    """Validated application settings from env and optional .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    APP_ENV: Literal["dev", "prod"] = "dev"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 7070

    DATABASE_URL: str = "sqlite:///./data/nasgate.db"

    # Shared tree. Defaults to the directory containing the installation, like a NAS share
    # where the server is dropped next to the data it serves.
    SHARE_ROOT: str = str(DEFAULT_INSTALL_DIR.parent)
    INSTALL_DIR: str = str(DEFAULT_INSTALL_DIR)

    # Session cookie (HS256-signed token). When unset a random per-process secret is used.
    SESSION_SECRET: SecretStr | None = None
    SESSION_COOKIE_NAME: str = "nas-session"
    SESSION_MAX_AGE_HOURS: int = 24
    SESSION_COOKIE_SECURE: bool = False

    # Fixed-window rate limits per limiter class
    AUTH_RATE_WINDOW_SEC: float = 15 * 60
    AUTH_RATE_MAX: int = 10
    API_RATE_WINDOW_SEC: float = 15 * 60
    API_RATE_MAX: int = 1000
    FILE_RATE_WINDOW_SEC: float = 60
    FILE_RATE_MAX: int = 500
    RATE_SWEEP_INTERVAL_SEC: float = 5 * 60

    DEFAULT_LANGUAGE: str = "en"

    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"

    @field_validator("DATABASE_URL")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must be set and non-empty")
        if not any(v.strip().startswith(prefix) for prefix in VALID_DATABASE_URL_PREFIXES):
            raise ValueError(
                "DATABASE_URL must be a SQLite or PostgreSQL URL (e.g. sqlite:///./data/nasgate.db)"
            )
        return v.strip()

    @field_validator("PORT")
    @classmethod
    def validate_port(cls, v: int) -> int:
        if v < 1 or v > 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return v

    @field_validator("SHARE_ROOT")
    @classmethod
    def validate_share_root(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SHARE_ROOT must be set and non-empty")
        root = _normalize_dir(v.strip())
        if not os.path.isdir(root):
            raise ValueError(f"SHARE_ROOT must be an existing directory: {root}")
        return root

    @field_validator("INSTALL_DIR")
    @classmethod
    def validate_install_dir(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("INSTALL_DIR must be set and non-empty")
        return _normalize_dir(v.strip())

    @field_validator("SESSION_SECRET")
    @classmethod
    def validate_session_secret(cls, v: SecretStr | None) -> SecretStr | None:
        if v is not None and not v.get_secret_value().strip():
            raise ValueError("SESSION_SECRET must be non-empty when set")
        return v

    @field_validator("SESSION_COOKIE_NAME")
    @classmethod
    def validate_cookie_name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("SESSION_COOKIE_NAME must be set and non-empty")
        return v.strip()

    @field_validator("SESSION_MAX_AGE_HOURS")
    @classmethod
    def validate_session_max_age(cls, v: int) -> int:
        if v < 1 or v > 720:
            raise ValueError("SESSION_MAX_AGE_HOURS must be between 1 and 720 (30 days)")
        return v

    @field_validator(
        "AUTH_RATE_WINDOW_SEC",
        "API_RATE_WINDOW_SEC",
        "FILE_RATE_WINDOW_SEC",
        "RATE_SWEEP_INTERVAL_SEC",
    )
    @classmethod
    def validate_positive_seconds(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Rate limit windows and sweep interval must be greater than 0")
        return v

    @field_validator("AUTH_RATE_MAX", "API_RATE_MAX", "FILE_RATE_MAX")
    @classmethod
    def validate_rate_max(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Rate limit maximums must be at least 1")
        return v

    @field_validator("DEFAULT_LANGUAGE")
    @classmethod
    def validate_default_language(cls, v: str) -> str:
        lang = v.strip().lower()
        if lang not in SUPPORTED_LANGUAGES:
            raise ValueError(f"DEFAULT_LANGUAGE must be one of {', '.join(SUPPORTED_LANGUAGES)}")
        return lang

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance (safe to call from dependencies)."""
    return Settings()
