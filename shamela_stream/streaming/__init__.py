"""
Streaming pipeline for chat answers.

This package contains:
- SSE line framing
- Event decoding with per-line recovery
- Chunk aggregation into message snapshots
- Per-message stream sessions
"""

from __future__ import annotations

from .aggregator import CallbackSink, StreamAggregator, StreamSink
from .framer import frame, split_lines
from .models import (
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    MessageSnapshot,
    MetadataEvent,
    StreamEvent,
    ThinkingEvent,
)
from .parser import EventDecoder
from .session import StreamSession

__all__ = [
    "CallbackSink",
    "ChunkEvent",
    "DoneEvent",
    "ErrorEvent",
    "EventDecoder",
    "MessageSnapshot",
    "MetadataEvent",
    "StreamAggregator",
    "StreamEvent",
    "StreamSession",
    "StreamSink",
    "ThinkingEvent",
    "frame",
    "split_lines",
]
