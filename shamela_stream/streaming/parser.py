"""
SSE event decoding with per-line error recovery.

A malformed payload never ends the stream: it is logged and skipped, and
decoding continues with the next line or block.
"""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator

import structlog
from pydantic import ValidationError

from .framer import DATA_PREFIX
from .models import (
    ChunkEvent,
    DoneEvent,
    MetadataEvent,
    RawStreamEvent,
    StreamEvent,
    StreamEventType,
    ThinkingEvent,
)

DONE_SENTINEL = "[DONE]"
DEFAULT_PREVIEW_CHARS = 100

logger = structlog.get_logger(__name__)


def extract_payloads(lines: list[str]) -> list[str]:
    """Pull the payload strings out of one event block."""
    payloads = []
    for raw_line in lines:
        line = raw_line.strip()
        if line.startswith(DATA_PREFIX):
            payload = line[len(DATA_PREFIX):].strip()
        elif line.startswith("{") and line.endswith("}"):
            # Guest streams sometimes send bare JSON without the prefix
            payload = line
        else:
            continue
        if payload:
            payloads.append(payload)
    return payloads


def to_stream_event(raw: RawStreamEvent) -> StreamEvent | None:
    """Map a decoded payload onto a typed event, or None if it carries nothing."""
    try:
        event_type = StreamEventType(raw.type)
    except ValueError:
        return None

    if event_type is StreamEventType.METADATA:
        thread_id = raw.thread_id or raw.session_id
        return MetadataEvent(thread_id=thread_id) if thread_id else None

    if event_type is StreamEventType.THINKING:
        text = (raw.content or "").strip()
        return ThinkingEvent(text=text) if text else None

    if event_type is StreamEventType.CHUNK:
        return ChunkEvent(text=raw.content or "")

    return DoneEvent(full_answer=raw.full_answer or raw.content)


class EventDecoder:
    """Decodes framed SSE blocks into typed stream events."""

    def __init__(self, preview_chars: int = DEFAULT_PREVIEW_CHARS):
        self.preview_chars = preview_chars
        self.stats = {
            'total_events': 0,
            'ignored_events': 0,
            'dropped_lines': 0,
            'combined_recoveries': 0,
        }

    async def decode(
        self, blocks: AsyncIterable[list[str]]
    ) -> AsyncIterator[StreamEvent]:
        """Decode every block in order, yielding events as they appear."""
        async for block in blocks:
            for event in self.decode_block(block):
                yield event

    def decode_block(self, lines: list[str]) -> list[StreamEvent]:
        """
        Decode one block.

        The ``[DONE]`` sentinel ends the block with a ``DoneEvent`` that
        carries no answer.

        Each payload is tried on its own first. When one fails, the block's
        payloads are joined and tried as a single object, which covers a JSON
        document spread over several ``data:`` lines; on success that one
        event stands for the whole block.
        """
        payloads = extract_payloads(lines)
        events: list[StreamEvent] = []

        for payload in payloads:
            if payload == DONE_SENTINEL:
                # End of stream without a payload; the aggregator falls back
                # to the chunks received so far
                self.stats['total_events'] += 1
                events.append(DoneEvent(full_answer=None))
                return events

            try:
                raw = RawStreamEvent.model_validate_json(payload)
            except ValidationError:
                combined = self._decode_combined(payloads)
                if combined is not None:
                    self.stats['combined_recoveries'] += 1
                    self._append(events, combined)
                    return events

                self.stats['dropped_lines'] += 1
                logger.debug(
                    "Failed to parse SSE data",
                    preview=payload[:self.preview_chars],
                )
                continue

            self._append(events, raw)

        return events

    def _decode_combined(self, payloads: list[str]) -> RawStreamEvent | None:
        if len(payloads) < 2:
            return None
        try:
            return RawStreamEvent.model_validate_json("".join(payloads))
        except ValidationError:
            return None

    def _append(self, events: list[StreamEvent], raw: RawStreamEvent) -> None:
        event = to_stream_event(raw)
        if event is None:
            self.stats['ignored_events'] += 1
            return
        self.stats['total_events'] += 1
        events.append(event)

    def get_stats(self) -> dict[str, int]:
        """Get decoding statistics for monitoring."""
        return self.stats.copy()

    def reset_stats(self) -> None:
        """Reset statistics counters."""
        self.stats = {
            'total_events': 0,
            'ignored_events': 0,
            'dropped_lines': 0,
            'combined_recoveries': 0,
        }
