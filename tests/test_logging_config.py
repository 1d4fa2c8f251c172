"""Tests for logging configuration."""

import logging

from common.logging_config import (
    RegionContextFilter,
    SensitiveDataFilter,
    mask_sensitive,
    set_region,
    setup_logging,
)


def _record(msg, args=None):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


class TestSensitiveDataFilter:
    """Test masking of credentials in log records."""

    def test_masks_bearer_token(self):
        record = _record("Authorization: Bearer abc123")

        SensitiveDataFilter().filter(record)

        assert "abc123" not in record.msg
        assert "***MASKED***" in record.msg

    def test_masks_secret_in_args(self):
        record = _record("bus config %s", ("secret=hunter2",))

        SensitiveDataFilter().filter(record)

        assert record.args == ("secret=***MASKED***",)

    def test_non_string_args_untouched(self):
        record = _record("attempt %d of %s", (3, "token: xyz"))

        SensitiveDataFilter().filter(record)

        assert record.args == (3, "token: ***MASKED***")

    def test_leaves_plain_messages(self):
        message = "Applied UPDATE [path=orders/42, source_region=eu]"

        assert mask_sensitive(message) == message


class TestSetupLogging:
    """Test component logger setup."""

    def test_single_handler(self):
        logger = setup_logging("regionsync-test-component", log_level="DEBUG")
        again = setup_logging("regionsync-test-component")

        assert logger is again
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_region_in_every_line(self):
        logger = setup_logging("regionsync-test-region", log_level="INFO", region="us")
        handler = logger.handlers[0]

        record = _record("hello")
        for log_filter in handler.filters:
            log_filter.filter(record)
        assert "[region=us]" in handler.format(record)

        set_region(logger, "eu")
        region_filter = next(f for f in handler.filters if isinstance(f, RegionContextFilter))
        assert region_filter.region == "eu"
