"""Tests for structured logging configuration."""

import logging

import pytest
import structlog
from structlog.testing import capture_logs

from auditvault.core.context import create_context, request_context
from auditvault.core.logging import (
    LogContext,
    add_environment_info,
    add_request_context,
    drop_color_message_key,
    get_logger,
    log_exception,
    setup_logging,
)


class TestProcessors:
    def test_add_request_context(self):
        ctx = create_context(actor="Maria")

        with request_context(ctx):
            event_dict = add_request_context(None, "info", {"event": "test"})

        assert event_dict["actor"] == "Maria"
        assert event_dict["request_id"] == str(ctx.request_id)
        assert event_dict["correlation_id"] == str(ctx.correlation_id)

    def test_add_request_context_without_context(self):
        assert add_request_context(None, "info", {"event": "test"}) == {"event": "test"}

    def test_add_environment_info(self):
        event_dict = add_environment_info(None, "info", {"event": "test"})

        assert "environment" in event_dict

    def test_drop_color_message_key(self):
        event_dict = drop_color_message_key(None, "info", {"event": "x", "color_message": "y"})

        assert event_dict == {"event": "x"}


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestSetupLogging:
    def test_configures_root_logger(self):
        setup_logging(log_level="WARNING", json_format=True)

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING

    def test_get_logger_returns_bound_logger(self):
        logger = get_logger("auditvault.test")

        assert hasattr(logger, "info")


class TestHelpers:
    def test_log_context_binds_and_unbinds(self):
        with LogContext(operation="batch_deletion", batch_size=100):
            bound = structlog.contextvars.get_contextvars()
            assert bound["operation"] == "batch_deletion"
            assert bound["batch_size"] == 100

        assert "operation" not in structlog.contextvars.get_contextvars()

    def test_log_exception(self):
        with capture_logs() as logs:
            log_exception(structlog.get_logger(), ValueError("boom"), operation="export")

        assert logs[0]["event"] == "exception_occurred"
        assert logs[0]["error_type"] == "ValueError"
        assert logs[0]["error_message"] == "boom"
        assert logs[0]["operation"] == "export"
