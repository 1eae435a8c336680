"""Human-friendly configuration loader.

``AppSettings`` centralises every environment variable the service relies on.

*What:* Which settings exist and what do they control?
*When:* They are read once, the first time ``get_settings`` is called.
*Why:* Centralising configuration keeps magic numbers (slot count, scanner
delay) out of the business logic.
*How:* ``pydantic-settings`` reads the process environment and optional
``.env`` files, falling back to the defaults below.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Environment-driven application configuration."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Pack Tracker"
    LOG_LEVEL: str = "INFO"

    # ``TZ`` decides what "today" means for uniqueness checks and the sold-out
    # report. Slot timestamps themselves are always stored in UTC.
    TZ: str = "America/Chicago"

    # Optional folder for the scanner preference file. Leave unset to keep the
    # preference in memory only.
    DATA_DIR: Path | None = None

    # X-API-Key must match this (if set)
    API_KEY: str = ""

    HOST: str = "0.0.0.0"
    PORT: int = 8089

    # ---- Inventory layout
    SLOT_COUNT: int = Field(default=20, ge=1)

    # ---- Scanner behaviour
    # Quiet period (milliseconds) between the completion signal of a scan and
    # the automatic submit.
    SCANNER_DELAY_MS: int = 500

    # JSON file mapping 5-digit game prefixes to {name, price, type}.
    GAME_CATALOG_PATH: Path | None = None

    @field_validator("TZ")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.TZ)

    @property
    def preferences_path(self) -> Path | None:
        if self.DATA_DIR is None:
            return None
        return self.DATA_DIR / "scanner.json"


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    settings = AppSettings()
    if settings.DATA_DIR is not None:
        settings.DATA_DIR.mkdir(parents=True, exist_ok=True)
    return settings


__all__ = ["AppSettings", "get_settings"]
