"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
import logging.handlers
from datetime import datetime
from io import StringIO
from pathlib import Path
from typing import Any

import pytest
import structlog

from teamdash.config import LoggingConfig
from teamdash.logging import (
    add_correlation_id,
    bind_project_context,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Reset logging configuration before each test."""
    root = logging.getLogger()
    root.handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()
    set_correlation_id(None)


@pytest.fixture
def capture_stream() -> StringIO:
    return StringIO()


@pytest.fixture
def json_config() -> LoggingConfig:
    return LoggingConfig(level="INFO", format="json", file=None)


def capture(config: LoggingConfig, stream: StringIO) -> None:
    """Configure logging and redirect the stdout handler into ``stream``."""
    setup_logging(config)
    logging.getLogger().handlers[0].stream = stream


def read_entry(stream: StringIO) -> dict[str, Any]:
    return json.loads(stream.getvalue().strip())


def reset_stream(stream: StringIO) -> None:
    stream.truncate(0)
    stream.seek(0)


def test_json_output_format(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that JSON format produces valid JSON output."""
    capture(json_config, capture_stream)

    get_logger("teamdash.orchestrator.engine").info(
        "assignment_accepted", candidate_id="c-1", attempts=1
    )

    log_entry = read_entry(capture_stream)
    assert log_entry["event"] == "assignment_accepted"
    assert log_entry["candidate_id"] == "c-1"
    assert log_entry["attempts"] == 1
    assert log_entry["level"] == "info"
    assert log_entry["logger"] == "teamdash.orchestrator.engine"
    datetime.fromisoformat(log_entry["timestamp"].replace("Z", "+00:00"))


def test_console_output_format(capture_stream: StringIO) -> None:
    """Test that console format produces human-readable output."""
    capture(LoggingConfig(level="DEBUG", format="console"), capture_stream)

    get_logger("test.module").debug("kickoff_step", step="roster")

    output = capture_stream.getvalue()
    assert "kickoff_step" in output
    assert "roster" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_log_level_filtering(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that log level filtering works correctly."""
    capture(json_config, capture_stream)
    logger = get_logger("test.module")

    logger.debug("debug_message")
    assert capture_stream.getvalue() == ""

    logger.info("info_message")
    assert "info_message" in capture_stream.getvalue()

    reset_stream(capture_stream)
    logger.warning("warning_message")
    assert "warning_message" in capture_stream.getvalue()


def test_correlation_id_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that correlation ID is added to log entries."""
    capture(json_config, capture_stream)
    logger = get_logger("test.module")

    set_correlation_id("corr-12345")
    assert get_correlation_id() == "corr-12345"
    logger.info("with_correlation")
    assert read_entry(capture_stream)["correlation_id"] == "corr-12345"

    set_correlation_id(None)
    reset_stream(capture_stream)
    logger.info("without_correlation")
    assert "correlation_id" not in read_entry(capture_stream)


def test_correlation_id_processor() -> None:
    """Test the correlation ID processor directly."""
    event_dict: dict[str, Any] = {"event": "test"}

    assert "correlation_id" not in add_correlation_id(None, "", event_dict.copy())

    set_correlation_id("test-id")
    assert add_correlation_id(None, "", event_dict.copy())["correlation_id"] == "test-id"


def test_project_context_binding(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that project and assignment identifiers are bound to every logger."""
    capture(json_config, capture_stream)

    bind_project_context(project_id="P-1", assignment_id="A-2")
    get_logger("module1").info("event1")
    first = read_entry(capture_stream)

    reset_stream(capture_stream)
    get_logger("module2").info("event2")
    second = read_entry(capture_stream)

    for entry in (first, second):
        assert entry["project_id"] == "P-1"
        assert entry["assignment_id"] == "A-2"


def test_project_context_without_assignment(
    json_config: LoggingConfig, capture_stream: StringIO
) -> None:
    capture(json_config, capture_stream)

    bind_project_context(project_id="P-9")
    get_logger("test.module").info("project_event")

    entry = read_entry(capture_stream)
    assert entry["project_id"] == "P-9"
    assert "assignment_id" not in entry


def test_file_rotation_handler_configuration(tmp_path: Path) -> None:
    """Test that file rotation handler is configured correctly."""
    log_file = tmp_path / "logs" / "teamdash.log"
    setup_logging(
        LoggingConfig(
            level="INFO",
            format="json",
            file=log_file,
            rotation_size_mb=10,
            retention_count=3,
        )
    )

    assert log_file.parent.exists()
    root = logging.getLogger()
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 10 * 1024 * 1024
    assert handler.backupCount == 3

    get_logger("test.module").info("file_write", data="test")
    handler.flush()

    log_entry = json.loads(log_file.read_text().strip())
    assert log_entry["event"] == "file_write"
    assert log_entry["data"] == "test"


def test_exception_formatting(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that exceptions are formatted correctly in logs."""
    capture(json_config, capture_stream)

    try:
        raise RuntimeError("storage unavailable")
    except RuntimeError:
        get_logger("test.module").exception("kickoff_step_failed")

    lines = capture_stream.getvalue().splitlines()
    assert len(lines) == 1
    log_entry = json.loads(lines[0])
    assert log_entry["event"] == "kickoff_step_failed"
    assert log_entry["level"] == "error"
    assert "RuntimeError: storage unavailable" in log_entry["exception"]
    assert "Traceback" in log_entry["exception"]


def test_stdlib_records_rendered_as_json(
    json_config: LoggingConfig, capture_stream: StringIO
) -> None:
    capture(json_config, capture_stream)
    set_correlation_id("corr-7")

    try:
        raise ConnectionError("pool exhausted")
    except ConnectionError:
        logging.getLogger("sqlalchemy.pool").warning("connection %s lost", "c-3", exc_info=True)

    lines = capture_stream.getvalue().splitlines()
    assert len(lines) == 1
    log_entry = json.loads(lines[0])
    assert log_entry["event"] == "connection c-3 lost"
    assert log_entry["level"] == "warning"
    assert log_entry["logger"] == "sqlalchemy.pool"
    assert log_entry["correlation_id"] == "corr-7"
    assert "ConnectionError: pool exhausted" in log_entry["exception"]


def test_setup_replaces_previous_handlers(json_config: LoggingConfig) -> None:
    setup_logging(json_config)
    setup_logging(json_config)

    assert len(logging.getLogger().handlers) == 1
