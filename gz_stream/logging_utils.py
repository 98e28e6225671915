"""
Centralized logging and error handling utilities for gz-stream.

This module provides the structlog setup plus decorators and helpers that
standardize how streaming operations are logged and how their failures are
classified before they reach a caller's error callback.

Features:
- Structured logging with contextual information
- Error classification along the streaming error taxonomy
- Performance timing for async operations
"""

from __future__ import annotations

import functools
import json
import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any, ParamSpec, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from .exceptions import ChatStreamError, StreamTransportError

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
    """Apply the configured level to the stdlib root logger."""
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown logging level '{level}'")
    logging.basicConfig(level=numeric_level, format="%(message)s")
    logging.getLogger().setLevel(numeric_level)


class StreamErrorHandler:
    """Centralized stream error handling with structured logging."""

    @staticmethod
    def classify_error(error: Exception) -> str:
        """
        Classify an error into a streaming error category.

        Args:
            error: The exception to classify

        Returns:
            The error category name
        """
        if isinstance(error, ChatStreamError):
            return "stream_error"
        if isinstance(error, ValidationError):
            return "validation_error"
        if isinstance(error, TimeoutError | httpx.TimeoutException):
            return "timeout_error"
        if isinstance(error, httpx.TransportError | ConnectionError | OSError):
            return "transport_error"
        if isinstance(error, json.JSONDecodeError | UnicodeDecodeError):
            return "decode_error"
        return "unknown_error"

    @staticmethod
    def create_stream_error(
        error: Exception,
        operation: str,
        context: dict[str, Any] | None = None,
    ) -> ChatStreamError:
        """
        Wrap an exception in a ChatStreamError and log it with context.

        Args:
            error: Original exception
            operation: Description of the operation that failed
            context: Additional context for logging

        Returns:
            ChatStreamError (StreamTransportError for network failures)
        """
        category = StreamErrorHandler.classify_error(error)
        context = context or {}

        logger.error(
            "Operation failed",
            operation=operation,
            error_type=type(error).__name__,
            error_category=category,
            error_message=str(error),
            **context,
        )

        if isinstance(error, ChatStreamError):
            return error

        message = str(error) or type(error).__name__
        response_data = {
            "operation": operation,
            "error_category": category,
            "original_error_type": type(error).__name__,
            **context,
        }
        if category in ("transport_error", "timeout_error"):
            return StreamTransportError(message, response_data=response_data)
        return ChatStreamError(message, response_data=response_data)


def log_operation(
    operation: str,
) -> Callable[[AsyncCallable[P, T]], AsyncCallable[P, T]]:
    """
    Decorator that logs start, completion and failure of an async operation.

    Args:
        operation: Description of the operation being performed

    Returns:
        Decorated function with logging
    """
    def decorator(func: AsyncCallable[P, T]) -> AsyncCallable[P, T]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            operation_logger = logger.bind(
                operation=operation,
                function=func.__name__,
            )
            operation_logger.debug("Operation started")
            start_time = time.perf_counter()

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                operation_logger.error(
                    "Operation failed",
                    error_type=type(e).__name__,
                    error_message=str(e),
                    duration_ms=_elapsed_ms(start_time),
                )
                raise

            operation_logger.debug(
                "Operation completed successfully",
                duration_ms=_elapsed_ms(start_time),
            )
            return result

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

    operation_logger.debug("Operation started")
    start_time = time.perf_counter()

    try:
        yield operation_logger
    except Exception as e:
        operation_logger.error(
            "Operation failed",
            error_type=type(e).__name__,
            error_message=str(e),
            duration_ms=_elapsed_ms(start_time),
        )
        raise

    operation_logger.debug(
        "Operation completed successfully",
        duration_ms=_elapsed_ms(start_time),
    )


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
