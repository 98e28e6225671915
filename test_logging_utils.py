#!/usr/bin/env python3
"""
Test script for logging utilities.

This validates that the centralized logging and error handling works correctly.
"""

import json
import logging

import httpx
import pytest
from pydantic import ValidationError

from gz_stream.exceptions import ChatStreamError, RateLimitError, StreamTransportError
from gz_stream.logging_utils import (
    StreamErrorHandler,
    configure_logging,
    log_operation,
    operation_context,
)


class TestStreamErrorHandler:
    """Test the StreamErrorHandler class."""

    def test_classify_timeout_error(self):
        assert StreamErrorHandler.classify_error(TimeoutError("slow")) == "timeout_error"
        assert StreamErrorHandler.classify_error(httpx.ReadTimeout("slow")) == "timeout_error"

    def test_classify_transport_error(self):
        assert StreamErrorHandler.classify_error(httpx.ConnectError("down")) == "transport_error"
        assert StreamErrorHandler.classify_error(ConnectionError("reset")) == "transport_error"

    def test_classify_decode_error(self):
        try:
            json.loads("{nope")
        except json.JSONDecodeError as e:
            assert StreamErrorHandler.classify_error(e) == "decode_error"

    def test_classify_validation_error(self):
        validation_error = ValidationError.from_exception_data(
            "ValidationError", [{"type": "missing", "loc": ("field",), "input": {}}]
        )
        assert StreamErrorHandler.classify_error(validation_error) == "validation_error"

    def test_classify_stream_and_unknown_errors(self):
        assert StreamErrorHandler.classify_error(RateLimitError("slow down")) == "stream_error"
        assert StreamErrorHandler.classify_error(RuntimeError("?")) == "unknown_error"

    def test_create_stream_error_for_transport_failure(self):
        error = StreamErrorHandler.create_stream_error(
            httpx.ConnectError("connection refused"),
            "chat_stream",
            {"url": "http://test"},
        )

        assert isinstance(error, StreamTransportError)
        assert str(error) == "connection refused"
        assert error.response_data["operation"] == "chat_stream"
        assert error.response_data["error_category"] == "transport_error"
        assert error.response_data["url"] == "http://test"

    def test_create_stream_error_passes_stream_errors_through(self):
        original = ChatStreamError("Request failed", status_code=500)
        assert StreamErrorHandler.create_stream_error(original, "chat_stream") is original

    def test_create_stream_error_uses_type_name_for_empty_message(self):
        error = StreamErrorHandler.create_stream_error(RuntimeError(), "chat_stream")

        assert type(error) is ChatStreamError
        assert str(error) == "RuntimeError"


class TestDecorators:
    """Test logging decorators and context managers."""

    @pytest.mark.asyncio
    async def test_log_operation_success(self):

        @log_operation("test_operation")
        async def successful_function(value):
            return value * 2

        assert await successful_function(21) == 42
        assert successful_function.__name__ == "successful_function"

    @pytest.mark.asyncio
    async def test_log_operation_with_error(self):

        @log_operation("test_operation")
        async def failing_function():
            raise ValueError("Test error")

        with pytest.raises(ValueError, match="Test error"):
            await failing_function()

    @pytest.mark.asyncio
    async def test_operation_context_success(self):
        async with operation_context("test_context", context={"key": "value"}) as op_logger:
            assert op_logger is not None

    @pytest.mark.asyncio
    async def test_operation_context_reraises(self):
        with pytest.raises(RuntimeError, match="boom"):
            async with operation_context("test_context"):
                raise RuntimeError("boom")


def test_configure_logging():
    configure_logging("debug")
    assert logging.getLogger().level == logging.DEBUG

    configure_logging("INFO")
    assert logging.getLogger().level == logging.INFO

    with pytest.raises(ValueError, match="Unknown logging level"):
        configure_logging("chatty")
