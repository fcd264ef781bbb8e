"""Incremental reader for newline-delimited JSON chat streams.

Bytes arrive in arbitrary pieces. They are decoded incrementally, so a
multi-byte character split across reads is not mangled, and only complete
lines are parsed. A trailing partial line waits for the next read.
"""

import codecs
import logging
from collections.abc import AsyncIterable, Callable

from pydantic import ValidationError

from docchat.models.schemas import (
    ChunkRecord,
    ErrorRecord,
    SessionRecord,
    StreamRecord,
    stream_record_adapter,
)

logger = logging.getLogger(__name__)


class StreamError(Exception):
    """An ``error`` record ended the stream."""

    pass


class RecordDecoder:
    """Reassembles NDJSON records from a byte stream."""

    def __init__(self) -> None:
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> list[StreamRecord]:
        """Consume one read and return the records it completed."""
        self._buffer += self._decoder.decode(data)
        *lines, self._buffer = self._buffer.split("\n")
        return self._parse(lines)

    def flush(self) -> list[StreamRecord]:
        """Parse whatever is left once the body has ended."""
        self._buffer += self._decoder.decode(b"", final=True)
        lines, self._buffer = [self._buffer], ""
        return self._parse(lines)

    def _parse(self, lines: list[str]) -> list[StreamRecord]:
        records: list[StreamRecord] = []
        for line in lines:
            if not line.strip():
                continue
            try:
                records.append(stream_record_adapter.validate_json(line))
            except ValidationError as e:
                logger.warning(f"Skipping malformed stream line {line!r}: {e}")
        return records


class StreamResult:
    """What a consumed stream produced."""

    def __init__(self) -> None:
        self.text = ""
        self.session: SessionRecord | None = None


async def consume_stream(
    chunks: AsyncIterable[bytes],
    on_chunk: Callable[[str], None] | None = None,
) -> StreamResult:
    """Read a chat stream to the end.

    Args:
        chunks: Raw body pieces as they arrive.
        on_chunk: Called with the accumulated text after every chunk record.

    Returns:
        The accumulated reply text and the session record, if one was sent.

    Raises:
        StreamError: When an error record arrives; later records are ignored.
    """
    decoder = RecordDecoder()
    result = StreamResult()

    def dispatch(records: list[StreamRecord]) -> None:
        for record in records:
            if isinstance(record, ErrorRecord):
                raise StreamError(record.message)
            if isinstance(record, SessionRecord):
                result.session = record
            elif isinstance(record, ChunkRecord):
                result.text += record.text
                if on_chunk:
                    on_chunk(result.text)

    async for data in chunks:
        dispatch(decoder.feed(data))
    dispatch(decoder.flush())
    return result
