"""
Chat streaming client.

Posts a chat request to the backend, feeds the streamed body through
StreamParser and dispatches the resulting events to callbacks.
"""

from __future__ import annotations

import inspect
import json
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from .config import Configuration
from .exceptions import ChatStreamError, RateLimitError
from .logging_utils import StreamErrorHandler, log_operation, operation_context
from .models import ChatErrorResponse, ChatMessage, ChatRequest, RateLimitInfo
from .rate_limiting.responses import (
    LIMIT_HEADER,
    RATE_LIMIT_STATUS,
    REMAINING_HEADER,
    RESET_HEADER,
)
from .streaming.models import StreamEvent, StreamEventType
from .streaming.parser import StreamParser, extract_json_blocks

logger = structlog.get_logger(__name__)

# Constants
DEFAULT_BASE_URL = "http://localhost:3000/api/chat"
DEFAULT_TIMEOUT = 120.0
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_LIMIT = 10


@dataclass
class StreamCallbacks:
    """Callbacks for streaming events; each may be a plain or async function."""
    on_start: Callable[[dict[str, Any]], Any] | None = None
    on_text: Callable[[str, str], Any] | None = None
    on_json: Callable[[Any, bool, str], Any] | None = None
    on_done: Callable[[str], Any] | None = None
    on_error: Callable[[str], Any] | None = None
    on_rate_limit: Callable[[RateLimitInfo], Any] | None = None


@dataclass
class StreamResult:
    """Collected outcome of a whole stream."""
    full_text: str = ""
    json: list[Any] = field(default_factory=list)


async def _invoke(callback: Callable[..., Any] | None, *args: Any) -> None:
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


def _header_int(headers: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(headers.get(name) or default)
    except ValueError:
        return default


class ChatClient:
    """
    Streaming client for the chat endpoint.

    Stream-level problems never raise: HTTP errors, transport failures and
    error events all end up in on_error, and stream() returns the error.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        api_token: str | None = None,
    ):
        self.base_url = base_url
        self.api_token = api_token
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout, connect=connect_timeout)
        )

    @classmethod
    def from_configuration(
        cls,
        configuration: Configuration,
        http_client: httpx.AsyncClient | None = None,
    ) -> ChatClient:
        """Create a client from the chat.client section of config.yaml."""
        client_config = configuration.get_chat_client_config()
        return cls(
            base_url=client_config["base_url"],
            http_client=http_client,
            timeout=client_config["timeout"],
            connect_timeout=client_config["connect_timeout"],
            api_token=configuration.chat_api_token,
        )

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self._http.aclose()

    def _request_headers(self) -> dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    @log_operation("chat_stream")
    async def stream(
        self,
        request: ChatRequest | dict[str, Any],
        callbacks: StreamCallbacks,
    ) -> ChatStreamError | None:
        """
        Send a chat request and stream the response into callbacks.

        Args:
            request: ChatRequest or its wire-format dict
            callbacks: Event callbacks

        Returns:
            The error reported to on_error, or None if the stream succeeded

        Raises:
            ValidationError: If a dict request does not match ChatRequest
        """
        if not isinstance(request, ChatRequest):
            request = ChatRequest.model_validate(request)

        parser = StreamParser()
        stream_error: ChatStreamError | None = None

        try:
            async with self._http.stream(
                "POST",
                self.base_url,
                json=request.to_payload(),
                headers=self._request_headers(),
            ) as response:
                await self._report_rate_limit(response, callbacks)

                if not response.is_success:
                    stream_error = await self._read_error_response(response)
                    await _invoke(callbacks.on_error, str(stream_error))
                    return stream_error

                async for chunk in response.aiter_text():
                    for event in parser.parse_chunk(chunk):
                        error = await self._dispatch(event, parser, callbacks)
                        if error is not None and stream_error is None:
                            stream_error = error

        except (httpx.HTTPError, OSError, TimeoutError) as e:
            stream_error = StreamErrorHandler.create_stream_error(
                e, "chat_stream", {"url": self.base_url}
            )
            await _invoke(callbacks.on_error, str(stream_error))

        return stream_error

    async def send_message(
        self,
        message: str,
        callbacks: StreamCallbacks,
        **options: Any,
    ) -> ChatStreamError | None:
        """Send a single user message (convenience method)."""
        request = ChatRequest(
            messages=[ChatMessage(role="user", content=message)],
            **options,
        )
        return await self.stream(request, callbacks)

    async def continue_conversation(
        self,
        messages: list[ChatMessage | dict[str, Any]],
        callbacks: StreamCallbacks,
        **options: Any,
    ) -> ChatStreamError | None:
        """Continue a conversation with message history."""
        request = ChatRequest(messages=messages, **options)
        return await self.stream(request, callbacks)

    async def _report_rate_limit(
        self, response: httpx.Response, callbacks: StreamCallbacks
    ) -> None:
        remaining = response.headers.get(REMAINING_HEADER)
        if remaining is None or callbacks.on_rate_limit is None:
            return

        try:
            remaining_value = int(remaining)
        except ValueError:
            logger.warning("Ignoring malformed rate limit header", value=remaining)
            return

        info = RateLimitInfo(
            limit=_header_int(response.headers, LIMIT_HEADER, DEFAULT_LIMIT),
            remaining=remaining_value,
            reset=_header_int(response.headers, RESET_HEADER, 0),
        )
        await _invoke(callbacks.on_rate_limit, info)

    async def _read_error_response(self, response: httpx.Response) -> ChatStreamError:
        await response.aread()
        try:
            body = ChatErrorResponse.model_validate(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
            body = ChatErrorResponse()

        logger.warning(
            "Chat request failed",
            status_code=response.status_code,
            error=body.error,
            message=body.message,
        )

        response_data = body.model_dump(by_alias=True, exclude_none=True)
        if response.status_code == RATE_LIMIT_STATUS:
            return RateLimitError(
                body.error,
                retry_after=body.retry_after,
                status_code=response.status_code,
                response_data=response_data,
            )
        return ChatStreamError(
            body.error,
            status_code=response.status_code,
            response_data=response_data,
        )

    async def _dispatch(
        self,
        event: StreamEvent,
        parser: StreamParser,
        callbacks: StreamCallbacks,
    ) -> ChatStreamError | None:
        full_text = event.full_text or parser.full_text

        if event.type == StreamEventType.START:
            await _invoke(callbacks.on_start, event.data)
        elif event.type == StreamEventType.TEXT:
            await _invoke(callbacks.on_text, event.text or "", full_text)
        elif event.type == StreamEventType.JSON:
            await _invoke(
                callbacks.on_json, event.json, event.json_complete, full_text
            )
        elif event.type == StreamEventType.DONE:
            await _invoke(callbacks.on_done, full_text)
        elif event.type == StreamEventType.ERROR:
            message = event.error or "Stream error"
            logger.warning("Stream reported an error", error=message)
            await _invoke(callbacks.on_error, message)
            return ChatStreamError(message, response_data=event.data)

        return None


async def stream_to_result(
    request: ChatRequest | dict[str, Any],
    client: ChatClient | None = None,
) -> StreamResult:
    """
    Stream a request to completion and collect the result.

    Returns:
        StreamResult with the full text and every complete JSON block

    Raises:
        ChatStreamError: If the request failed or the stream reported an error
        RateLimitError: If the endpoint answered 429
    """
    result = StreamResult()

    def track_text(_text: str, full_text: str) -> None:
        result.full_text = full_text

    def track_json(_value: Any, _is_complete: bool, full_text: str) -> None:
        result.full_text = full_text

    def track_done(full_text: str) -> None:
        result.full_text = full_text

    callbacks = StreamCallbacks(
        on_text=track_text, on_json=track_json, on_done=track_done
    )

    base_url = client.base_url if client is not None else DEFAULT_BASE_URL
    async with operation_context("stream_to_result", context={"url": base_url}):
        if client is None:
            async with ChatClient() as owned_client:
                error = await owned_client.stream(request, callbacks)
        else:
            error = await client.stream(request, callbacks)

        if error is not None:
            raise error

    result.json = [
        block.parsed
        for block in extract_json_blocks(result.full_text)
        if block.is_complete and block.decoded
    ]
    return result
