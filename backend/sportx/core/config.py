from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import AnyUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "catalog.json"

_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    debug: bool = Field(False, description="Enable debug logging for every component")
    environment: str = Field(
        default="development",
        description="Runtime environment (development|staging|production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum loguru level emitted when debug mode is off",
    )
    local_storage_url: str = Field(
        default="sqlite:///../data/sportx-storage.db",
        description="SQLAlchemy URL of the persistent storage shared by every context of the origin",
    )
    session_storage_url: str = Field(
        default="sqlite://",
        description="SQLAlchemy URL of the per-session storage area (in-memory by default)",
    )
    storage_poll_interval_seconds: float = Field(
        default=0.5,
        description="Delay between two polls of the storage change log",
        gt=0,
    )
    catalog_base_url: AnyUrl | None = Field(
        default=None,
        description="Base URL of the sport catalog API; the local catalog file is used when unset",
    )
    catalog_events_path: str = Field(
        default="/events",
        description="Relative path for the catalog events endpoint",
    )
    catalog_path: str | None = Field(
        default=str(DEFAULT_CATALOG_PATH),
        description="Local JSON catalog used when no catalog_base_url is configured",
    )
    catalog_timeout_seconds: float = Field(
        default=10.0,
        description="HTTP timeout applied to catalog requests",
        gt=0,
    )
    betslip_storage_key: str = Field(
        default="betslip",
        description="Storage key under which the betslip is persisted",
        min_length=1,
    )
    input_debounce_ms: int = Field(
        default=20,
        description="Idle gap (milliseconds) before a burst of input/change events is emitted",
        ge=0,
    )
    message_allowed_origins: list[str] | str = Field(
        default_factory=list,
        description="Origins accepted by message event listeners (list or comma-separated string)",
    )

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(sorted(_LOG_LEVELS))}"
            )
        return normalized

    @field_validator("message_allowed_origins", mode="after")
    @classmethod
    def _parse_allowed_origins(cls, value: Any) -> list[str]:
        if value in (None, "", []):
            return []
        if isinstance(value, str):
            candidate = value.strip()
            if not candidate:
                return []
            return [
                item for item in (part.strip() for part in candidate.split(",")) if item
            ]
        if isinstance(value, (list, tuple, set)):
            return [str(item).strip() for item in value if str(item).strip()]
        raise ValueError(
            "MESSAGE_ALLOWED_ORIGINS must be provided as a list or comma-separated string"
        )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


@lru_cache
def get_settings() -> Settings:
    return Settings()
