"""Tests for settings loading."""

from pydantic import ValidationError
import pytest

from portal_api.config import Settings
from portal_shared.config import async_database_url


@pytest.mark.parametrize(
    "url,expected",
    [
        ("postgres://u:p@db:5432/portal", "postgresql+asyncpg://u:p@db:5432/portal"),
        ("postgresql://u:p@db/portal", "postgresql+asyncpg://u:p@db/portal"),
        ("postgresql+asyncpg://u:p@db/portal", "postgresql+asyncpg://u:p@db/portal"),
        ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
    ],
)
def test_async_database_url(url, expected):
    assert async_database_url(url) == expected


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@db/portal")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("SCHEMA_ACCEPTS_CANCELLED_STATUS", "false")
    monkeypatch.setenv("DASHBOARD_RECENT_INVOICES", "10")

    settings = Settings(_env_file=None)

    assert settings.database_url == "postgresql+asyncpg://u:p@db/portal"
    assert settings.log_level == "DEBUG"
    assert settings.schema_accepts_cancelled_status is False
    assert settings.schema_has_budget_columns is None
    assert settings.dashboard_recent_invoices == 10  # noqa: PLR2004


def test_database_url_required(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    with pytest.raises(ValidationError):
        Settings(_env_file=None)


def test_invalid_log_level(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "chatty")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
