"""
Centralized logging and error classification for the streaming client.

This module provides decorators and helpers that standardize how stream
sessions and HTTP calls are logged, so every operation reports the same
structured fields.

Features:
- Structured logging with contextual information
- Error classification into debug codes and categories
- Performance timing for async operations
- Context-bound loggers for per-session logging
"""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from .exceptions import TransportError

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Type variables for generic decorators
P = ParamSpec("P")
T = TypeVar("T")
AsyncCallable = Callable[P, Awaitable[T]]

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Set the stdlib level that structlog's level filter reads."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown logging level '{level}'")
    logging.basicConfig(format="%(message)s")
    logging.getLogger("shamela_stream").setLevel(numeric_level)


class StreamErrorHandler:
    """Maps exceptions onto debug codes and log categories."""

    @staticmethod
    def classify_error(error: Exception) -> tuple[str, str]:
        """
        Classify an error for structured logging.

        Args:
            error: The exception to classify

        Returns:
            Tuple of (debug_code, error_category)
        """
        if isinstance(error, TransportError):
            return error.debug_code, "transport_error"
        if isinstance(error, ValidationError):
            return "E-DEC-001", "validation_error"
        if isinstance(error, TimeoutError | httpx.TimeoutException):
            return "E-NET-002", "timeout_error"
        if isinstance(error, ConnectionError | OSError | httpx.TransportError):
            return "E-NET-003", "connection_error"
        if isinstance(error, ValueError | TypeError):
            return "E-ARG-001", "parameter_error"
        return "E-UNK-001", "unknown_error"

    @staticmethod
    def log_error(
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Log an error with its classification and any extra context."""
        debug_code, error_category = StreamErrorHandler.classify_error(error)
        logger.error(
            "Operation failed",
            operation=operation,
            error_type=type(error).__name__,
            error_category=error_category,
            debug_code=debug_code,
            error_message=str(error),
            **(context or {}),
        )


def log_operation(
    operation: str,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator for logging async operations with structured context.

    Args:
        operation: Description of the operation being performed

    Returns:
        Decorated function with start, completion and failure logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation_logger = logger.bind(
                operation=operation,
                function=func.__name__,
            )

            operation_logger.info("Operation started")
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
                duration = round((time.perf_counter() - start_time) * 1000, 2)
                operation_logger.info(
                    "Operation completed successfully", duration_ms=duration
                )
                return result

            except Exception as e:
                debug_code, error_category = StreamErrorHandler.classify_error(e)
                duration = round((time.perf_counter() - start_time) * 1000, 2)
                operation_logger.error(
                    "Operation failed",
                    error_type=type(e).__name__,
                    error_category=error_category,
                    debug_code=debug_code,
                    error_message=str(e),
                    duration_ms=duration,
                )
                raise

        return wrapper
    return decorator


@asynccontextmanager
async def operation_context(
    operation: str,
    *,
    context: dict[str, Any] | None = None,
):
    """
    Async context manager for operation logging.

    Cancellation is logged as such and re-raised untouched.

    Args:
        operation: Description of the operation
        context: Additional context for logging

    Yields:
        Bound logger for the operation
    """
    operation_logger = logger.bind(
        operation=operation,
        **(context or {}),
    )

    operation_logger.info("Operation started")
    start_time = time.perf_counter()

    def _duration_ms() -> float:
        return round((time.perf_counter() - start_time) * 1000, 2)

    try:
        yield operation_logger
        operation_logger.info(
            "Operation completed successfully", duration_ms=_duration_ms()
        )

    except Exception as e:
        debug_code, error_category = StreamErrorHandler.classify_error(e)
        operation_logger.error(
            "Operation failed",
            error_type=type(e).__name__,
            error_category=error_category,
            debug_code=debug_code,
            error_message=str(e),
            duration_ms=_duration_ms(),
        )
        raise

    except BaseException:
        operation_logger.info("Operation cancelled", duration_ms=_duration_ms())
        raise


class ContextualLogger:
    """Logger that keeps a session's context on every line it writes."""

    def __init__(self, base_context: dict[str, Any] | None = None):
        self.base_context = base_context or {}
        self._logger = logger.bind(**self.base_context)

    def warning(self, message: str, **context: Any) -> None:
        self._logger.warning(message, **context)

    def debug(self, message: str, **context: Any) -> None:
        self._logger.debug(message, **context)
