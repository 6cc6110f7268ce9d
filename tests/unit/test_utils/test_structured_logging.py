"""Tests for structured logging helpers."""

import logging
import pytest
from unittest.mock import MagicMock, patch

from propertysearch.utils.logging import (
    StructuredLogger,
    correlation_context,
    get_correlation_id,
    log_timing,
    mask_sensitive_data,
    sanitize_search_text,
)


@pytest.mark.unit
def test_correlation_context_restores_previous():
    assert get_correlation_id() is None

    with correlation_context() as outer:
        assert outer.startswith("req_")
        with correlation_context("req_inner") as inner:
            assert get_correlation_id() == inner
        assert get_correlation_id() == outer

    assert get_correlation_id() is None


@pytest.mark.unit
def test_structured_logger_extra_fields(freeze_time_fixture):
    """Test structured fields, timestamp and correlation ID are attached."""
    base = MagicMock(spec=logging.Logger)
    logger = StructuredLogger(base)

    with correlation_context("req_abc"):
        logger.info("Listing search completed", total=12)

    message = base.info.call_args.args[0]
    extra = base.info.call_args.kwargs["extra"]
    assert message == "Listing search completed"
    assert extra["timestamp"] == "2024-12-09T12:00:00+00:00"
    assert extra["correlation_id"] == "req_abc"
    assert extra["total"] == 12


@pytest.mark.unit
def test_mask_sensitive_data():
    masked = mask_sensitive_data("call +91 98470 12345 or mail agent@example.com")

    assert "agent@example.com" not in masked
    assert "[REDACTED_EMAIL]" in masked
    assert "[REDACTED_PHONE]" in masked


@pytest.mark.unit
def test_sanitize_search_text_truncates():
    text = "villa " * 40

    sanitized = sanitize_search_text(text, max_length=20)

    assert sanitized.endswith("...")
    assert len(sanitized) == 23
    assert sanitize_search_text(None) is None


@pytest.mark.unit
def test_sanitize_search_text_disabled():
    with patch("propertysearch.utils.logging.LoggingConfig.LOG_SEARCH_TEXT", False):
        assert sanitize_search_text("kochi") is None


@pytest.mark.unit
def test_log_timing_logs_completion():
    logger = MagicMock(spec=StructuredLogger)

    with log_timing("listing_search", logger=logger, page=2):
        pass

    logger.debug.assert_called_once()
    completed = logger.info.call_args
    assert completed.args[0] == "Completed listing_search"
    assert completed.kwargs["page"] == 2
    assert "processing_time_ms" in completed.kwargs


@pytest.mark.unit
def test_log_timing_warns_on_slow_operation():
    logger = MagicMock(spec=StructuredLogger)

    with patch("propertysearch.utils.logging.LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS", -1):
        with log_timing("listing_search", logger=logger):
            pass

    logger.warning.assert_called_once()
