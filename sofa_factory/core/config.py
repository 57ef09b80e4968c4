"""Human-friendly configuration loader.

``AppSettings`` centralises every environment variable the factory manager
relies on. Values are read once (see ``get_settings``) from the process
environment or a local ``.env`` file, so the app boots on a fresh machine
without extra setup.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Sofa Factory Manager"
    BASE_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2])
    DATA_DIR: Path = Field(default_factory=lambda: Path(__file__).resolve().parents[2] / "data")
    TZ: str = "Asia/Kolkata"

    # Local single-device app: an empty key leaves the API open.
    API_KEY: str = Field(default="", validation_alias=AliasChoices("API_KEY", "API_TOKEN"))

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # SQLite under the data folder unless DATABASE_URL points elsewhere.
    DB_URL: str = Field(default="", validation_alias=AliasChoices("DATABASE_URL", "DB_URL"))

    HOST: str = "127.0.0.1"
    PORT: int = 8089

    COMPANY_NAME: str = "Sofa Factory"
    CURRENCY: str = "INR"
    NOTIFICATIONS_ENABLED: bool = True
    PRODUCTION_LEAD_DAYS: int = 7

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> str:
        return str(value or "INFO").strip().upper()

    @property
    def database_url(self) -> str:
        return self.DB_URL or f"sqlite:///{self.DATA_DIR / 'factory.db'}"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


settings = get_settings()
