"""
Folds stream events into message snapshots.

One aggregator serves exactly one session; its state is never shared.
"""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from ..exceptions import StreamStateError
from .models import (
    AggregatorState,
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    MessageSnapshot,
    MetadataEvent,
    StreamEvent,
    ThinkingEvent,
)


class StreamSink:
    """Receiver of aggregator output. Subclass and override what you need."""

    def on_snapshot(self, snapshot: MessageSnapshot) -> None:
        pass

    def on_thread_id(self, thread_id: str) -> None:
        pass

    def on_thinking(self, text: str) -> None:
        pass


@dataclass
class CallbackSink(StreamSink):
    """Sink built from plain callables; any of them may be omitted."""
    snapshot: Callable[[MessageSnapshot], None] | None = None
    thread_id: Callable[[str], None] | None = None
    thinking: Callable[[str], None] | None = None

    def on_snapshot(self, snapshot: MessageSnapshot) -> None:
        if self.snapshot is not None:
            self.snapshot(snapshot)

    def on_thread_id(self, thread_id: str) -> None:
        if self.thread_id is not None:
            self.thread_id(thread_id)

    def on_thinking(self, text: str) -> None:
        if self.thinking is not None:
            self.thinking(text)


class StreamAggregator:
    """
    Assembles the answer for one stream session.

    Chunks are concatenated in arrival order and every chunk produces a
    provisional snapshot under a message id fixed at the first chunk. The
    ``done`` event produces the final snapshot; an error event discards the
    partial text and raises its cause.
    """

    def __init__(self, sink: StreamSink | None = None):
        self.sink = sink or StreamSink()
        self.state = AggregatorState()

    @property
    def is_finished(self) -> bool:
        return self.state.finished

    def process_event(self, event: StreamEvent) -> MessageSnapshot | None:
        """
        Apply one event and return the snapshot it produced, if any.

        Raises:
            StreamStateError: If the session already saw its terminal event.
            Exception: The cause carried by an ErrorEvent.
        """
        if self.state.finished:
            raise StreamStateError(
                f"Stream already finished, got {type(event).__name__}"
            )

        if isinstance(event, ChunkEvent):
            return self._apply_chunk(event)

        if isinstance(event, MetadataEvent):
            if event.thread_id != self.state.thread_id:
                self.state.thread_id = event.thread_id
                self.sink.on_thread_id(event.thread_id)
            return None

        if isinstance(event, ThinkingEvent):
            if event.text != self.state.latest_thinking:
                self.state.latest_thinking = event.text
                self.sink.on_thinking(event.text)
            return None

        if isinstance(event, DoneEvent):
            return self._apply_done(event)

        if isinstance(event, ErrorEvent):
            self.reset()
            self.state.finished = True
            raise event.cause

        raise TypeError(f"Unsupported stream event: {event!r}")

    def _apply_chunk(self, event: ChunkEvent) -> MessageSnapshot:
        self.state.update_timing(time.time())
        self.state.assembled_text += event.text
        snapshot = MessageSnapshot(
            id=self._message_id(),
            text=self.state.assembled_text,
            is_final=False,
        )
        self.sink.on_snapshot(snapshot)
        return snapshot

    def _apply_done(self, event: DoneEvent) -> MessageSnapshot:
        final_text = event.full_answer or self.state.assembled_text
        snapshot = MessageSnapshot(
            id=self._message_id(),
            text=final_text,
            is_final=True,
        )
        self.state.finished = True
        self.sink.on_snapshot(snapshot)
        return snapshot

    def _message_id(self) -> str:
        if self.state.message_id is None:
            self.state.message_id = str(uuid.uuid4())
        return self.state.message_id

    def reset(self) -> None:
        """Discard all state for this session."""
        self.state = AggregatorState()
