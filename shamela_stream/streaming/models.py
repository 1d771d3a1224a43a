"""
Streaming dataclasses for the chat event pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from ..sources.models import AssembledAnswer


class StreamEventType(Enum):
    """Wire values of the ``type`` discriminator."""
    METADATA = "metadata"
    THINKING = "thinking"
    CHUNK = "chunk"
    DONE = "done"


class RawStreamEvent(BaseModel):
    """One decoded ``data:`` payload before it is mapped to a typed event."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    type: str
    content: str | None = None
    session_id: str | None = None
    thread_id: str | None = None
    full_answer: str | None = None


@dataclass(frozen=True)
class MetadataEvent:
    """Carries the conversation continuity id."""
    thread_id: str


@dataclass(frozen=True)
class ThinkingEvent:
    """Progress status shown while the answer is being prepared."""
    text: str


@dataclass(frozen=True)
class ChunkEvent:
    """Incremental fragment of the answer."""
    text: str


@dataclass(frozen=True)
class DoneEvent:
    """Terminal event, optionally carrying the whole answer."""
    full_answer: str | None = None


@dataclass(frozen=True)
class ErrorEvent:
    """Terminal transport failure."""
    cause: Exception


StreamEvent = MetadataEvent | ThinkingEvent | ChunkEvent | DoneEvent | ErrorEvent


@dataclass(frozen=True)
class MessageSnapshot:
    """State of the assistant message handed to the sink."""
    id: str
    text: str
    is_final: bool

    def assembled(self) -> AssembledAnswer:
        """Split the snapshot text into prose and parsed sources."""
        from ..sources.extractor import extract

        return extract(self.text)


@dataclass
class AggregatorState:
    """Mutable per-session state, confined to one aggregator."""
    assembled_text: str = ""
    thread_id: str | None = None
    latest_thinking: str | None = None
    message_id: str | None = None
    chunk_count: int = 0
    first_chunk_time: float | None = None
    last_chunk_time: float | None = None
    finished: bool = False

    def update_timing(self, timestamp: float) -> None:
        """Update timing information for chunk latency tracking."""
        if self.first_chunk_time is None:
            self.first_chunk_time = timestamp
        self.last_chunk_time = timestamp
        self.chunk_count += 1

    @property
    def streaming_duration(self) -> float:
        """Time between the first and last chunk."""
        if self.first_chunk_time is None or self.last_chunk_time is None:
            return 0.0
        return self.last_chunk_time - self.first_chunk_time
