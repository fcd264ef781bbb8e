"""Newline-delimited JSON relay for streamed model output.

Each record is one JSON object on its own line, tagged by ``type``:
``chunk`` carries a text delta, ``session`` a new session id and greeting,
``error`` a terminal message. Nothing is written after an error record.
"""

import logging
from collections.abc import AsyncGenerator, AsyncIterable

from pydantic import BaseModel

from docchat.models.schemas import ChunkRecord, ErrorRecord, SessionRecord

logger = logging.getLogger(__name__)

NDJSON_MEDIA_TYPE = "application/x-ndjson"


def encode_record(record: BaseModel) -> str:
    """Serialize one record as a complete NDJSON line."""
    return record.model_dump_json(by_alias=True) + "\n"


async def relay_fragments(fragments: AsyncIterable[str]) -> AsyncGenerator[str]:
    """Convert upstream text fragments into NDJSON lines.

    Fragments keep their order and each becomes one ``chunk`` record. If the
    upstream iterator raises, a single ``error`` record ends the stream.

    Args:
        fragments: Async iterable of text deltas.

    Yields:
        Encoded record lines.
    """
    try:
        async for text in fragments:
            if text:
                yield encode_record(ChunkRecord(text=text))
    except Exception as e:
        logger.error(f"Upstream stream failed: {e}")
        yield encode_record(ErrorRecord(message=str(e) or "An internal server error occurred."))


async def relay_session(session_id: str, greeting: str) -> AsyncGenerator[str]:
    """Single-record stream announcing a new session."""
    yield encode_record(SessionRecord(session_id=session_id, message=greeting))
