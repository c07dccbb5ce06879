"""Unit tests for logging configuration."""

from __future__ import annotations

import json
import logging
import logging.handlers
from io import StringIO
from pathlib import Path

import pytest
import structlog

from gerrit_bridge.config import LoggingConfig
from gerrit_bridge.logging import bind_revision_context, get_logger, setup_logging


@pytest.fixture(autouse=True)
def reset_logging() -> None:
    """Reset logging configuration before each test."""
    root = logging.getLogger()
    root.handlers.clear()
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def capture_stream() -> StringIO:
    """Create a StringIO stream for capturing log output."""
    return StringIO()


@pytest.fixture
def json_config() -> LoggingConfig:
    """Create a LoggingConfig for JSON output."""
    return LoggingConfig(level="INFO", format="json", file=None)


def _capture(stream: StringIO) -> None:
    logging.getLogger().handlers[0].stream = stream


def test_json_output_format(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that JSON format produces valid JSON output."""
    setup_logging(json_config)
    _capture(capture_stream)

    logger = get_logger("gerrit_bridge.facade")
    logger.info("file_list_fetched", change_id="I8473b95", file_count=3)

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["event"] == "file_list_fetched"
    assert log_entry["change_id"] == "I8473b95"
    assert log_entry["file_count"] == 3
    assert log_entry["level"] == "info"
    assert log_entry["logger"] == "gerrit_bridge.facade"
    assert "timestamp" in log_entry


def test_console_output_format(capture_stream: StringIO) -> None:
    """Test that console format produces human-readable output."""
    setup_logging(LoggingConfig(level="DEBUG", format="console"))
    _capture(capture_stream)

    get_logger("test.module").debug("gerrit_request", method="GET")

    output = capture_stream.getvalue()
    assert "gerrit_request" in output
    assert "GET" in output
    with pytest.raises(json.JSONDecodeError):
        json.loads(output.strip())


def test_log_level_filtering(json_config: LoggingConfig, capture_stream: StringIO) -> None:
    """Test that log level filtering works correctly."""
    setup_logging(json_config)
    _capture(capture_stream)

    logger = get_logger("test.module")
    logger.debug("debug_message")
    assert capture_stream.getvalue() == ""

    logger.warning("warning_message")
    assert "warning_message" in capture_stream.getvalue()


def test_revision_context_binding(
    json_config: LoggingConfig, capture_stream: StringIO
) -> None:
    """Test that revision context is bound to subsequent logs."""
    setup_logging(json_config)
    _capture(capture_stream)

    bind_revision_context(project="tools/sonar", change_id="I8473b95", revision_id="3")
    get_logger("test.module").info("review_submitted")

    log_entry = json.loads(capture_stream.getvalue().strip())
    assert log_entry["project"] == "tools/sonar"
    assert log_entry["change_id"] == "I8473b95"
    assert log_entry["revision_id"] == "3"


def test_file_rotation_handler_configuration(tmp_path: Path) -> None:
    """Test that file rotation handler is configured correctly."""
    log_file = tmp_path / "logs" / "gerrit-bridge.log"
    config = LoggingConfig(
        level="INFO",
        format="json",
        file=log_file,
        rotation_size_mb=10,
        retention_count=3,
    )

    setup_logging(config)

    assert log_file.exists()
    root = logging.getLogger()
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.maxBytes == 10 * 1024 * 1024
    assert handler.backupCount == 3

    get_logger("test.module").info("test_file_write", data="test")
    handler.flush()

    log_entry = json.loads(log_file.read_text().strip())
    assert log_entry["event"] == "test_file_write"
    assert log_entry["data"] == "test"
