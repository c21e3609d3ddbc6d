"""API service configuration.

Requires: DATABASE_URL
Optional: SCHEMA_* capability overrides, DASHBOARD_* list sizes
"""

from functools import lru_cache

from pydantic import Field, field_validator

from portal_shared.config import (
    BaseSettings,
    async_database_url,
    capability_override_field,
    database_url_field,
)


class Settings(BaseSettings):
    """API service settings."""

    # Required
    database_url: str = database_url_field()

    # Schema capability detection
    schema_detect_on_startup: bool = Field(
        default=True,
        description="Inspect the database at startup to learn which schema shape is deployed",
    )
    schema_has_cancellation_audit: bool | None = capability_override_field(
        "has_cancellation_audit"
    )
    schema_accepts_cancelled_status: bool | None = capability_override_field(
        "accepts_cancelled_status"
    )
    schema_has_budget_columns: bool | None = capability_override_field("has_budget_columns")

    # Dashboard list sizes
    dashboard_recent_projects: int = Field(default=5, ge=1)
    dashboard_recent_invoices: int = Field(default=3, ge=1)
    dashboard_recent_activity: int = Field(default=5, ge=1)

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        return async_database_url(v)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Validates required env vars on first call.
    Raises ValidationError if DATABASE_URL is missing.
    """
    return Settings()
