"""
Client library for the ShamelaGPT streaming chat API.

This package provides:
- An httpx transport for the chat, guest chat and fact-check streams
- SSE framing and typed event decoding
- Chunk aggregation into provisional and final message snapshots
- Extraction of the trailing sources section into citations
"""

from __future__ import annotations

from .client import ChatStreamClient
from .config import Configuration
from .exceptions import (
    HttpStatusError,
    IncompleteStreamError,
    NetworkError,
    NoConnectionError,
    ShamelaStreamError,
    StreamStateError,
    StreamTimeoutError,
    TooManyRequestsError,
    TransportError,
    UnauthorizedError,
    UnexpectedResponseError,
)
from .models import ChatRequest, ConfirmFactCheckRequest
from .sources import AssembledAnswer, Source, extract
from .streaming import (
    CallbackSink,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    EventDecoder,
    MessageSnapshot,
    MetadataEvent,
    StreamAggregator,
    StreamEvent,
    StreamSession,
    StreamSink,
    ThinkingEvent,
)

__all__ = [
    "AssembledAnswer",
    "CallbackSink",
    "ChatRequest",
    "ChatStreamClient",
    "ChunkEvent",
    "ConfirmFactCheckRequest",
    "Configuration",
    "DoneEvent",
    "ErrorEvent",
    "EventDecoder",
    "HttpStatusError",
    "IncompleteStreamError",
    "MessageSnapshot",
    "MetadataEvent",
    "NetworkError",
    "NoConnectionError",
    "ShamelaStreamError",
    "Source",
    "StreamAggregator",
    "StreamEvent",
    "StreamSession",
    "StreamSink",
    "StreamStateError",
    "StreamTimeoutError",
    "ThinkingEvent",
    "TooManyRequestsError",
    "TransportError",
    "UnauthorizedError",
    "UnexpectedResponseError",
    "extract",
]
