"""
One stream session: transport lines in, snapshots out.

The session is a single cooperative consumer. Its only suspension point is
reading the next line from the transport, so cancelling the task that runs
it stops the read promptly.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import AsyncIterable, AsyncIterator

import httpx

from ..exceptions import IncompleteStreamError, TransportError, as_transport_error
from ..logging_utils import ContextualLogger, operation_context
from .aggregator import StreamAggregator, StreamSink
from .framer import frame
from .models import ChunkEvent, DoneEvent, ErrorEvent, MessageSnapshot, StreamEvent
from .parser import EventDecoder

READ_ERRORS = (httpx.HTTPError, TransportError, OSError, TimeoutError)


async def _aclose(stream: object) -> None:
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


class StreamSession:
    """
    Drives framer, decoder and aggregator for a single user message.

    Create one per message and discard it after ``run`` returns or raises.
    Nothing is persisted here; what to keep after a failure or cancellation
    is the caller's decision.
    """

    def __init__(
        self,
        lines: AsyncIterable[str],
        sink: StreamSink | None = None,
        *,
        decoder: EventDecoder | None = None,
        context: dict[str, str] | None = None,
    ):
        self.session_id = str(uuid.uuid4())
        self._lines = lines
        self.decoder = decoder or EventDecoder()
        self.aggregator = StreamAggregator(sink)
        self._context = {"session_id": self.session_id, **(context or {})}
        self._log = ContextualLogger(self._context)
        self._task: asyncio.Task | None = None
        self._cancelled = False

    @property
    def thread_id(self) -> str | None:
        return self.aggregator.state.thread_id

    @property
    def latest_thinking(self) -> str | None:
        return self.aggregator.state.latest_thinking

    @property
    def is_finished(self) -> bool:
        return self.aggregator.is_finished

    @property
    def was_cancelled(self) -> bool:
        return self._cancelled

    async def run(self) -> MessageSnapshot:
        """
        Consume the stream until its terminal event.

        Returns:
            The final snapshot.

        Raises:
            TransportError: If the transport fails or closes early.
            asyncio.CancelledError: If the session is cancelled; no final
                snapshot is emitted in that case.
        """
        if self._task is not None:
            raise RuntimeError("StreamSession.run() may only be called once")
        self._task = asyncio.current_task()

        blocks = frame(self._lines)
        decoded = self.decoder.decode(blocks)
        events = self._with_terminal_event(decoded)

        try:
            async with operation_context("stream_session", context=self._context):
                async for event in events:
                    snapshot = self.aggregator.process_event(event)
                    if isinstance(event, DoneEvent):
                        self._log.debug(
                            "Stream finished",
                            thread_id=self.thread_id,
                            chunks=self.aggregator.state.chunk_count,
                            decoder_stats=self.decoder.get_stats(),
                        )
                        return snapshot
        except asyncio.CancelledError:
            self._cancelled = True
            self.aggregator.reset()
            raise
        finally:
            for stream in (events, decoded, blocks, self._lines):
                await _aclose(stream)

        # Unreachable: the event stream always ends with a terminal event
        raise IncompleteStreamError("Stream ended before done event")

    async def _with_terminal_event(
        self, events: AsyncIterable[StreamEvent]
    ) -> AsyncIterator[StreamEvent]:
        """
        Guarantee the event stream ends with ``done`` or an ErrorEvent.

        Read failures become an ErrorEvent. A clean end of input without a
        decodable ``done`` still finishes the answer from the chunks received
        so far; only a stream that produced no chunk at all is incomplete.
        """
        received_chunk = False
        try:
            async for event in events:
                if isinstance(event, ChunkEvent):
                    received_chunk = True
                yield event
        except READ_ERRORS as e:
            yield ErrorEvent(cause=as_transport_error(e))
            return

        if received_chunk:
            self._log.warning(
                "Stream ended without done event, finishing with assembled text",
                chunks=self.aggregator.state.chunk_count,
            )
            yield DoneEvent(full_answer=None)
        else:
            yield ErrorEvent(
                cause=IncompleteStreamError("Stream ended before any answer text")
            )

    def cancel(self) -> bool:
        """
        Cancel the task running this session.

        Returns:
            True if a running task was asked to cancel.
        """
        if self._task is None or self._task.done():
            return False
        return self._task.cancel()
