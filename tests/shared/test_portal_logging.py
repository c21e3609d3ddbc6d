"""Tests for the shared logging configuration."""

from decimal import Decimal
import json
import logging
import re

import pytest
import structlog

from portal_shared.logging_config import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from portal_shared.models import BudgetStatus


def strip_ansi(text):
    ansi_escape = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")
    return ansi_escape.sub("", text)


def parse_json_lines(output):
    return [json.loads(line) for line in output.strip().split("\n") if line.strip()]


def find_event(output, name):
    return next((e for e in parse_json_lines(output) if e.get("event") == name), None)


@pytest.fixture(autouse=True)
def reset_logging():
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    yield
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestLoggingSetup:
    def test_json_format(self, capsys):
        setup_logging(service_name="api", log_format="json", log_level="INFO")

        structlog.get_logger().info("project_created", project_id="p-1", attempts=2)

        entry = find_event(capsys.readouterr().out, "project_created")
        assert entry is not None
        assert entry["service"] == "api"
        assert entry["project_id"] == "p-1"
        assert entry["attempts"] == 2  # noqa: PLR2004
        assert entry["level"] == "info"
        assert entry["timestamp"].endswith("Z")

    def test_console_format(self, capsys):
        setup_logging(service_name="cli", log_format="console", log_level="INFO")

        structlog.get_logger().info("capabilities_resolved", has_budget_columns=True)

        output = strip_ansi(capsys.readouterr().out)
        assert "capabilities_resolved" in output
        assert "has_budget_columns=True" in output

    def test_reads_environment(self, monkeypatch, capsys):
        monkeypatch.setenv("SERVICE_NAME", "env_service")
        monkeypatch.setenv("LOG_FORMAT", "json")
        monkeypatch.setenv("LOG_LEVEL", "debug")

        setup_logging()
        structlog.get_logger().debug("debug_event")

        entry = find_event(capsys.readouterr().out, "debug_event")
        assert entry is not None
        assert entry["service"] == "env_service"
        assert entry["level"] == "debug"

    def test_level_filtering(self, capsys):
        setup_logging(service_name="cli", log_format="console", log_level="WARNING")

        logger = structlog.get_logger()
        logger.info("info_event")
        logger.warning("warning_event")

        output = strip_ansi(capsys.readouterr().out)
        assert "info_event" not in output
        assert "warning_event" in output

    def test_noisy_loggers_capped(self):
        setup_logging(service_name="api", log_format="json", log_level="INFO")
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

        setup_logging(service_name="api", log_format="json", log_level="ERROR")
        assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR


class TestDomainValues:
    def test_decimal_and_enum_rendering(self, capsys):
        setup_logging(service_name="api", log_format="json", log_level="INFO")

        structlog.get_logger().info(
            "budget_action_applied",
            amount=Decimal("7000.50"),
            budget_status=BudgetStatus.COUNTER_PROPOSED,
        )

        entry = find_event(capsys.readouterr().out, "budget_action_applied")
        assert entry["amount"] == "7000.50"
        assert entry["budget_status"] == "COUNTER_PROPOSED"

    def test_exception_info(self, capsys):
        setup_logging(service_name="api", log_format="json", log_level="INFO")

        try:
            raise ValueError("store exploded")
        except ValueError as e:
            structlog.get_logger().error("error_event", error=str(e), exc_info=True)

        entry = find_event(capsys.readouterr().out, "error_event")
        assert entry["error"] == "store exploded"
        assert "ValueError" in entry["exception"]


class TestRequestContext:
    def test_correlation_id_bound(self, capsys):
        setup_logging(service_name="api", log_format="json", log_level="INFO")

        bind_request_context("req_123", method="PUT", path="/api/projects/p-1/budget")
        structlog.get_logger().info("inside_request")

        assert structlog.contextvars.get_contextvars()["correlation_id"] == "req_123"
        entry = find_event(capsys.readouterr().out, "inside_request")
        assert entry["correlation_id"] == "req_123"
        assert entry["method"] == "PUT"

    def test_clear_keeps_service(self, capsys):
        setup_logging(service_name="api", log_format="json", log_level="INFO")
        bind_request_context("req_123", path="/health")

        clear_request_context()
        structlog.get_logger().info("after_request")

        assert "correlation_id" not in structlog.contextvars.get_contextvars()
        entry = find_event(capsys.readouterr().out, "after_request")
        assert entry["service"] == "api"
        assert "path" not in entry

    def test_get_logger(self):
        setup_logging(service_name="api")
        assert hasattr(get_logger("portal_api.engagement"), "info")
