import logging
from unittest.mock import Mock

import httpx

from app.mirror.errors import UpstreamError
from app.utils.exception_logging import (
    format_exception_message,
    format_exception_stack,
    log_exception_with_details,
)


class BrokenStrException(Exception):
    """An exception that breaks when __str__ is called."""

    def __str__(self):
        raise RuntimeError("Cannot convert to string!")

    def __repr__(self):
        return "BrokenStrException(cannot convert to string)"


class BrokenReprException(Exception):
    """An exception that breaks when both __str__ and __repr__ are called."""

    def __str__(self):
        raise RuntimeError("Cannot convert to string!")

    def __repr__(self):
        raise RuntimeError("Cannot convert to repr!")


def _wrapped_upstream_error() -> UpstreamError:
    try:
        try:
            raise httpx.ConnectError("Connection refused")
        except httpx.ConnectError as e:
            raise UpstreamError("Request to https://github.com/x failed") from e
    except UpstreamError as e:
        return e


class TestLogExceptionWithDetails:
    """Test cases for log_exception_with_details function."""

    def setup_method(self):
        self.logger = Mock(spec=logging.Logger)

    def test_normal_exception_logging(self):
        exception = ValueError("Normal test error")

        log_exception_with_details(self.logger, "[TEST]", exception)

        self.logger.log.assert_called_once_with(
            logging.ERROR,
            "[TEST] ValueError: Normal test error",
            exc_info=exception,
        )

    def test_exception_with_custom_level(self):
        exception = ValueError("Warning level error")

        log_exception_with_details(self.logger, "[TEST]", exception, logging.WARNING)

        self.logger.log.assert_called_once_with(
            logging.WARNING,
            "[TEST] ValueError: Warning level error",
            exc_info=exception,
        )

    def test_cause_included(self):
        exception = _wrapped_upstream_error()

        log_exception_with_details(self.logger, "[Mirror]", exception)

        message = self.logger.log.call_args[0][1]
        assert message == (
            "[Mirror] UpstreamError: Request to https://github.com/x failed "
            "(caused by ConnectError: Connection refused)"
        )

    def test_broken_str_exception(self):
        """Should not raise even if str() fails."""
        exception = BrokenStrException()

        log_exception_with_details(self.logger, "[TEST]", exception)

        self.logger.log.assert_called_once_with(
            logging.ERROR,
            "[TEST] BrokenStrException: BrokenStrException(cannot convert to string)",
            exc_info=exception,
        )

    def test_none_prefix(self):
        exception = ValueError("x")

        log_exception_with_details(self.logger, None, exception)

        assert self.logger.log.call_args[0][1] == " ValueError: x"


class TestFormatExceptionMessage:
    """Test cases for format_exception_message function."""

    def test_normal_exception_formatting(self):
        assert format_exception_message(ValueError("Test error")) == "Test error"

    def test_empty_message_uses_type(self):
        assert format_exception_message(httpx.ReadTimeout("")) == "ReadTimeout"

    def test_none_exception_formatting(self):
        assert format_exception_message(None) == "None"

    def test_broken_repr_exception_formatting(self):
        result = format_exception_message(BrokenReprException())

        assert result == "<BrokenReprException object (string conversion failed)>"

    def test_cause_formatting(self):
        result = format_exception_message(_wrapped_upstream_error())

        assert result.endswith("(caused by ConnectError: Connection refused)")

    def test_unicode_exception_formatting(self):
        result = format_exception_message(ValueError("Unicode: 🚫 Ärger"))

        assert result == "Unicode: 🚫 Ärger"


class TestFormatExceptionStack:
    def test_traceback_includes_cause(self):
        stack = format_exception_stack(_wrapped_upstream_error())

        assert stack.startswith("Traceback")
        assert "httpx.ConnectError: Connection refused" in stack
        assert "app.mirror.errors.UpstreamError" in stack

    def test_exception_never_raised(self):
        stack = format_exception_stack(RuntimeError("not raised"))

        assert stack == "RuntimeError: not raised\n"
