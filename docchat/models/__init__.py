"""Pydantic models for API requests, responses and stream records.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ChatMessage: Individual message in the client transcript
    - ChatRequest: Incoming chat request payload
    - ChunkRecord / SessionRecord / ErrorRecord: NDJSON stream records
    - SummarizeRequest / SummarizeResponse: Context summary payloads
    - DocumentUploadResponse: Extracted document text
"""

from docchat.models.schemas import (
    START_SESSION_MESSAGE,
    ChatMessage,
    ChatRequest,
    ChunkRecord,
    DocumentUploadResponse,
    ErrorRecord,
    Role,
    SessionRecord,
    StreamRecord,
    SummarizeRequest,
    SummarizeResponse,
    stream_record_adapter,
)

__all__ = [
    "START_SESSION_MESSAGE",
    "ChatMessage",
    "ChatRequest",
    "ChunkRecord",
    "DocumentUploadResponse",
    "ErrorRecord",
    "Role",
    "SessionRecord",
    "StreamRecord",
    "SummarizeRequest",
    "SummarizeResponse",
    "stream_record_adapter",
]
