"""
SSE line framing.

Turns transport chunks into lines, and lines into event blocks.
"""

from __future__ import annotations

import codecs
from collections.abc import AsyncIterable, AsyncIterator

DATA_PREFIX = "data:"


def is_complete_payload(trimmed: str) -> bool:
    """Whether a single trimmed line looks like a whole JSON event."""
    return trimmed.endswith("}") and (
        trimmed.startswith("{") or trimmed.startswith(DATA_PREFIX)
    )


async def frame(lines: AsyncIterable[str]) -> AsyncIterator[list[str]]:
    """
    Group lines into event blocks.

    A blank line closes the pending block. A line that already holds a
    complete JSON object closes it as well, for servers that never send the
    blank delimiter. Whatever is pending at end of input is flushed.
    """
    buffer: list[str] = []

    async for line in lines:
        trimmed = line.strip()

        if not trimmed:
            if buffer:
                yield buffer
                buffer = []
            continue

        buffer.append(line)
        if is_complete_payload(trimmed):
            yield buffer
            buffer = []

    if buffer:
        yield buffer


async def split_lines(
    chunks: AsyncIterable[str | bytes],
    encoding: str = "utf-8",
) -> AsyncIterator[str]:
    """
    Split raw transport chunks into lines.

    Bytes are decoded incrementally so a multi-byte character split across
    chunks survives. Accepts ``\\n``, ``\\r\\n`` and ``\\r`` terminators.
    """
    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    buffer = ""

    async for chunk in chunks:
        text = decoder.decode(chunk) if isinstance(chunk, bytes) else chunk
        buffer += text

        # A trailing \r may be the first half of \r\n; wait for more input
        while True:
            cut = _find_terminator(buffer)
            if cut is None:
                break
            end, width = cut
            yield buffer[:end]
            buffer = buffer[end + width:]

    buffer += decoder.decode(b"", final=True)
    # Only a lone trailing \r can be left as a terminator here
    if buffer.endswith("\r"):
        yield buffer[:-1]
    elif buffer:
        yield buffer


def _find_terminator(buffer: str) -> tuple[int, int] | None:
    for index, char in enumerate(buffer):
        if char == "\n":
            return index, 1
        if char == "\r":
            if index + 1 == len(buffer):
                return None
            return index, 2 if buffer[index + 1] == "\n" else 1
    return None
