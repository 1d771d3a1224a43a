#!/usr/bin/env python3
"""
Tests for folding stream events into message snapshots.
"""

import pytest

from shamela_stream.exceptions import NetworkError, StreamStateError
from shamela_stream.streaming.aggregator import CallbackSink, StreamAggregator, StreamSink
from shamela_stream.streaming.models import (
    ChunkEvent,
    DoneEvent,
    ErrorEvent,
    MetadataEvent,
    ThinkingEvent,
)


class RecordingSink(StreamSink):
    """Sink that records everything it receives."""

    def __init__(self):
        self.snapshots = []
        self.thread_ids = []
        self.thinking = []

    def on_snapshot(self, snapshot):
        self.snapshots.append(snapshot)

    def on_thread_id(self, thread_id):
        self.thread_ids.append(thread_id)

    def on_thinking(self, text):
        self.thinking.append(text)


class TestChunkAggregation:
    """Test chunk concatenation and provisional snapshots."""

    def test_chunks_concatenate_without_separators(self):
        sink = RecordingSink()
        aggregator = StreamAggregator(sink)
        texts = ["Prayer", " is ", "", "one of\nthe five", " pillars."]

        for text in texts:
            aggregator.process_event(ChunkEvent(text))

        assert aggregator.state.assembled_text == "".join(texts)
        assert [s.text for s in sink.snapshots] == [
            "Prayer",
            "Prayer is ",
            "Prayer is ",
            "Prayer is one of\nthe five",
            "Prayer is one of\nthe five pillars.",
        ]
        assert all(not s.is_final for s in sink.snapshots)

    def test_message_id_is_stable_across_session(self):
        sink = RecordingSink()
        aggregator = StreamAggregator(sink)
        aggregator.process_event(ChunkEvent("a"))
        aggregator.process_event(ChunkEvent("b"))
        final = aggregator.process_event(DoneEvent(None))

        ids = {s.id for s in sink.snapshots}
        assert len(ids) == 1
        assert final.id in ids

    def test_done_without_full_answer_uses_assembled_text(self):
        aggregator = StreamAggregator()
        aggregator.process_event(ChunkEvent("Hello "))
        aggregator.process_event(ChunkEvent("world"))
        final = aggregator.process_event(DoneEvent(None))

        assert final.text == "Hello world"
        assert final.is_final

    def test_empty_full_answer_falls_back_to_assembled_text(self):
        aggregator = StreamAggregator()
        aggregator.process_event(ChunkEvent("kept"))
        assert aggregator.process_event(DoneEvent("")).text == "kept"

    def test_full_answer_takes_precedence_over_chunks(self):
        sink = RecordingSink()
        aggregator = StreamAggregator(sink)
        aggregator.process_event(ChunkEvent("draft that differs"))
        final = aggregator.process_event(DoneEvent("The verbatim final answer."))

        assert final.text == "The verbatim final answer."
        assert sink.snapshots[-1] == final
        assert aggregator.is_finished

    def test_done_without_chunks_still_gets_an_id(self):
        aggregator = StreamAggregator()
        final = aggregator.process_event(DoneEvent("Only the final"))
        assert final.id
        assert final.text == "Only the final"


class TestSideChannels:
    """Test metadata and thinking updates."""

    def test_metadata_last_wins(self):
        sink = RecordingSink()
        aggregator = StreamAggregator(sink)
        aggregator.process_event(MetadataEvent("a"))
        aggregator.process_event(ChunkEvent("text"))
        aggregator.process_event(MetadataEvent("b"))
        aggregator.process_event(DoneEvent(None))

        assert aggregator.state.thread_id == "b"
        assert sink.thread_ids == ["a", "b"]

    def test_repeated_metadata_notifies_once(self):
        sink = RecordingSink()
        aggregator = StreamAggregator(sink)
        aggregator.process_event(MetadataEvent("same"))
        aggregator.process_event(MetadataEvent("same"))
        assert sink.thread_ids == ["same"]

    def test_thinking_replaces_previous_status(self):
        sink = RecordingSink()
        aggregator = StreamAggregator(sink)
        aggregator.process_event(ThinkingEvent("Searching sources..."))
        aggregator.process_event(ThinkingEvent("Reading Sahih Bukhari..."))

        assert aggregator.state.latest_thinking == "Reading Sahih Bukhari..."
        assert sink.thinking == ["Searching sources...", "Reading Sahih Bukhari..."]
        assert sink.snapshots == []

    def test_callback_sink_with_partial_callbacks(self):
        seen = []
        aggregator = StreamAggregator(CallbackSink(thread_id=seen.append))
        aggregator.process_event(MetadataEvent("t"))
        aggregator.process_event(ThinkingEvent("ignored"))
        aggregator.process_event(ChunkEvent("ignored too"))
        assert seen == ["t"]


class TestTermination:
    """Test error and terminal-state handling."""

    def test_error_event_raises_cause_and_discards_text(self):
        aggregator = StreamAggregator()
        aggregator.process_event(ChunkEvent("partial"))
        cause = NetworkError("connection reset")

        with pytest.raises(NetworkError, match="connection reset"):
            aggregator.process_event(ErrorEvent(cause))

        assert aggregator.state.assembled_text == ""
        assert aggregator.is_finished

    def test_events_after_done_are_rejected(self):
        aggregator = StreamAggregator()
        aggregator.process_event(DoneEvent("x"))
        with pytest.raises(StreamStateError):
            aggregator.process_event(ChunkEvent("late"))

    def test_reset_clears_state(self):
        aggregator = StreamAggregator()
        aggregator.process_event(MetadataEvent("t"))
        aggregator.process_event(ChunkEvent("x"))
        aggregator.reset()
        assert aggregator.state.assembled_text == ""
        assert aggregator.state.thread_id is None
        assert aggregator.state.message_id is None

    def test_final_snapshot_parses_sources(self):
        aggregator = StreamAggregator()
        final = aggregator.process_event(DoneEvent(
            "Answer.\n\nSources:\n\n"
            "* **book_name:** Sahih Bukhari, **source_url:** https://shamela.ws/book/1/52"
        ))
        answer = final.assembled()
        assert answer.clean_content == "Answer."
        assert answer.sources[0].title == "Sahih Bukhari"
        assert answer.sources[0].page == 52
