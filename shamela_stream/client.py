"""
HTTP transport for the chat stream endpoints.

Opens the ``POST`` event-stream request and hands its lines to a
``StreamSession``. Connection-level timeout policy lives here, in the
``httpx`` client; everything after the first line is the session's job.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Any

import httpx

from .config import Configuration
from .exceptions import UnexpectedResponseError, from_httpx_error, status_error
from .logging_utils import StreamErrorHandler, configure_logging, log_operation
from .models import ChatRequest, ConfirmFactCheckRequest
from .streaming.aggregator import StreamSink
from .streaming.models import MessageSnapshot
from .streaming.parser import DEFAULT_PREVIEW_CHARS, EventDecoder
from .streaming.session import StreamSession

EXPECTED_CONTENT_TYPES = ("text/event-stream", "stream", "json")


class ChatStreamClient:
    """Streaming client for the chat, guest chat and fact-check endpoints."""

    def __init__(
        self,
        config: dict[str, Any],
        api_token: str | None = None,
        *,
        preview_chars: int = DEFAULT_PREVIEW_CHARS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        # Validate required configuration parameters
        required_keys = ["base_url", "request_timeout", "connect_timeout", "endpoints"]
        for key in required_keys:
            if key not in config:
                raise ValueError(
                    f"Required API configuration parameter '{key}' not found. "
                    "All API parameters must be explicitly configured."
                )

        self.config: dict[str, Any] = config
        self.endpoints: dict[str, str] = config["endpoints"]
        self.preview_chars = preview_chars

        headers = {"Accept": "text/event-stream"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"

        self.client: httpx.AsyncClient = httpx.AsyncClient(
            base_url=config["base_url"],
            headers=headers,
            timeout=httpx.Timeout(
                config["request_timeout"], connect=config["connect_timeout"]
            ),
            transport=transport,
        )

    @classmethod
    def from_configuration(
        cls, configuration: Configuration, **kwargs: Any
    ) -> ChatStreamClient:
        """Build a client from YAML config and the environment token."""
        logging_config = configuration.get_logging_config()
        configure_logging(logging_config.get("level", "INFO"))

        streaming_config = configuration.get_streaming_config()
        kwargs.setdefault("preview_chars", streaming_config["log_preview_chars"])
        return cls(
            configuration.get_api_config(),
            configuration.api_token,
            **kwargs,
        )

    async def stream_lines(
        self, path: str, payload: dict[str, Any]
    ) -> AsyncGenerator[str]:
        """
        Open a streaming POST and yield the response body line by line.

        Raises:
            TransportError: For connection failures, timeouts, non-2xx
                statuses, and responses that are not event streams.
        """
        try:
            async with self.client.stream("POST", path, json=payload) as response:
                # FAIL FAST: Ensure streaming response is valid
                if not response.is_success:
                    error_body = (await response.aread()).decode(errors="replace")
                    raise status_error(response.status_code, error_body or None)

                content_type = response.headers.get("content-type", "")
                if not any(t in content_type for t in EXPECTED_CONTENT_TYPES):
                    raise UnexpectedResponseError(
                        f"Expected streaming response, got content-type: "
                        f"{content_type}"
                    )

                async for line in response.aiter_lines():
                    yield line

        except httpx.HTTPError as e:
            error = from_httpx_error(e)
            StreamErrorHandler.log_error(error, "stream_lines", {"path": path})
            raise error from e

    def open_session(
        self,
        request: ChatRequest | ConfirmFactCheckRequest,
        sink: StreamSink | None = None,
        *,
        guest: bool = False,
    ) -> StreamSession:
        """
        Prepare a session without running it.

        The request is sent when the session's ``run`` starts reading, so a
        caller can keep the session around to cancel it.
        """
        if isinstance(request, ConfirmFactCheckRequest):
            path = self.endpoints["confirm_fact_check"]
        elif guest:
            path = self.endpoints["guest_chat"]
        else:
            path = self.endpoints["chat"]

        return StreamSession(
            self.stream_lines(path, request.to_payload()),
            sink,
            decoder=EventDecoder(preview_chars=self.preview_chars),
            context={"endpoint": path},
        )

    @log_operation("stream_message")
    async def stream_message(
        self,
        request: ChatRequest,
        sink: StreamSink | None = None,
        *,
        guest: bool = False,
    ) -> MessageSnapshot:
        """Send a chat message and stream the answer into ``sink``."""
        return await self.open_session(request, sink, guest=guest).run()

    @log_operation("confirm_fact_check")
    async def confirm_fact_check(
        self,
        request: ConfirmFactCheckRequest,
        sink: StreamSink | None = None,
    ) -> MessageSnapshot:
        """Fact-check reviewed OCR text and stream the verdict into ``sink``."""
        return await self.open_session(request, sink).run()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> ChatStreamClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
