"""
Utility functions for logging and describing exceptions at the request boundary.
"""

import logging
import traceback


def _safe_str(obj) -> str:
    """
    Safely convert an object to string, handling cases where __str__ or __repr__ might fail.
    """
    try:
        return str(obj)
    except Exception:
        try:
            return repr(obj)
        except Exception:
            return f"<{type(obj).__name__} object (string conversion failed)>"


def format_exception_message(exception: BaseException) -> str:
    """
    Describe an exception as ``Type: message``, followed by its direct cause when it
    wraps one (e.g. an httpx error behind an upstream failure).

    Args:
        exception: The exception to format

    Returns:
        A formatted string describing the exception
    """
    if exception is None:
        return "None"

    message = _safe_str(exception) or type(exception).__name__
    cause = exception.__cause__
    if cause is not None:
        cause_message = _safe_str(cause) or "no details"
        message = f"{message} (caused by {type(cause).__name__}: {cause_message})"
    return message


def format_exception_stack(exception: BaseException) -> str:
    """Full traceback text, including chained causes."""
    try:
        return "".join(
            traceback.format_exception(
                type(exception), exception, exception.__traceback__
            )
        )
    except Exception:
        return format_exception_message(exception)


def log_exception_with_details(
    logger: logging.Logger,
    prefix: str,
    exception: BaseException,
    level: int = logging.ERROR,
) -> None:
    """
    Log an exception with its type, message and cause; the traceback is attached as exc_info.

    Args:
        logger: The logger instance to use
        prefix: Prefix for the log message (e.g., "[Mirror]")
        exception: The exception to log
        level: The logging level to use (default: ERROR)
    """
    safe_prefix = _safe_str(prefix) if prefix is not None else ""
    message = (
        f"{safe_prefix} {type(exception).__name__}: "
        f"{format_exception_message(exception)}"
    )
    logger.log(level, message, exc_info=exception)
