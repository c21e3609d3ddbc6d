"""Settings shared by the portal API and the admin CLI.

Values come from the environment (or a ``.env`` file). Each service subclasses
``BaseSettings`` and declares the fields it requires, so a missing variable
fails at startup with a ValidationError instead of on first use.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings as PydanticBaseSettings, SettingsConfigDict

LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

# Hosted Postgres providers hand out URLs without an async driver
_DRIVER_PREFIXES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
}


class BaseSettings(PydanticBaseSettings):
    """Logging settings every portal process understands."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    service_name: str = Field(default="unknown", description="Bound to every log entry")
    log_format: Literal["json", "console"] = Field(default="console")
    log_level: str = Field(default="INFO", description="DEBUG, INFO, WARNING or ERROR")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {sorted(LOG_LEVELS)}")
        return level


def async_database_url(url: str) -> str:
    """Point a plain Postgres URL at the asyncpg driver; other URLs pass through."""
    for prefix, replacement in _DRIVER_PREFIXES.items():
        if url.startswith(prefix):
            return replacement + url[len(prefix) :]
    return url


def database_url_field():
    return Field(
        ...,
        description="Async SQLAlchemy URL of the portal database",
        examples=[
            "postgresql+asyncpg://portal:secret@db:5432/portal",
            "sqlite+aiosqlite:///./portal.db",
        ],
    )


def capability_override_field(name: str):
    """Optional schema capability override; None keeps what detection found."""
    return Field(
        default=None,
        description=f"Force the '{name}' schema capability instead of detecting it",
    )
