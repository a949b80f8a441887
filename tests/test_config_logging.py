"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging
from collections.abc import Generator

import pytest
import structlog

from saas_backend.config import AppSettings, logging_configure


@pytest.fixture(autouse=True)
def _restore_logging() -> Generator[None, None, None]:
    """Restore root logger state after each test."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)
    structlog.reset_defaults()


def test_production_emits_json_errors_only(capfd: pytest.CaptureFixture[str]) -> None:
    logging_configure(AppSettings(_env_file=None, environment="production"))
    log = structlog.stdlib.get_logger("saas_backend.test")

    log.warning("quiet warning")
    log.error("loud failure", error_code="DATABASE_ERROR")

    captured = capfd.readouterr()
    lines = [line for line in captured.err.splitlines() if line.strip()]
    assert len(lines) == 1
    parsed = json.loads(lines[0])
    assert parsed["event"] == "loud failure"
    assert parsed["error_code"] == "DATABASE_ERROR"
    assert parsed["level"] == "error"
    assert "timestamp" in parsed


def test_development_uses_configured_level() -> None:
    logging_configure(AppSettings(_env_file=None, environment="development", log_level="debug"))

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("uvicorn.access").level == logging.WARNING


def test_bound_trace_id_is_merged_into_events(capfd: pytest.CaptureFixture[str]) -> None:
    logging_configure(AppSettings(_env_file=None, environment="production"))
    structlog.contextvars.bind_contextvars(trace_id="trace-abc")
    try:
        structlog.stdlib.get_logger("saas_backend.test").error("with trace")
    finally:
        structlog.contextvars.clear_contextvars()

    parsed = json.loads(capfd.readouterr().err.strip())
    assert parsed["trace_id"] == "trace-abc"


def test_repeated_configuration_keeps_single_root_handler() -> None:
    settings = AppSettings(_env_file=None)

    logging_configure(settings)
    logging_configure(settings)

    assert len(logging.getLogger().handlers) == 1
