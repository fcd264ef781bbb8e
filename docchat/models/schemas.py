from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

START_SESSION_MESSAGE = "__START_SESSION__"


class Role(str, Enum):
    """Speaker of a transcript entry."""

    USER = "user"
    MODEL = "model"


class ChatMessage(BaseModel):
    """A single entry in the client-owned transcript.

    Attributes:
        role: Who wrote the message.
        content: The message text (markdown for model messages).
    """

    role: Role
    content: str


class ChatRequest(BaseModel):
    """Request payload for the chat endpoint.

    Attributes:
        message: User's message, or the start-session sentinel.
        context: Grounding text; sent only when starting a session.
        session_id: Session returned by the start call.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., min_length=1)
    context: str | None = None
    session_id: str | None = Field(None, alias="sessionId")

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v

    @property
    def starts_session(self) -> bool:
        return self.message == START_SESSION_MESSAGE


class ChunkRecord(BaseModel):
    """One text delta of a streamed reply."""

    type: Literal["chunk"] = "chunk"
    text: str


class SessionRecord(BaseModel):
    """Answer to a start-session call."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["session"] = "session"
    session_id: str = Field(..., alias="sessionId")
    message: str


class ErrorRecord(BaseModel):
    """Terminal error; no records follow it."""

    type: Literal["error"] = "error"
    message: str


StreamRecord = Annotated[
    ChunkRecord | SessionRecord | ErrorRecord,
    Field(discriminator="type"),
]

stream_record_adapter: TypeAdapter[StreamRecord] = TypeAdapter(StreamRecord)


class SummarizeRequest(BaseModel):
    """Request payload for the summarize endpoint."""

    context: str = Field(..., min_length=1)

    @field_validator("context", mode="before")
    @classmethod
    def strip_context(cls, v: str) -> str:
        if isinstance(v, str):
            return v.strip()
        return v


class SummarizeResponse(BaseModel):
    summary: str


class DocumentUploadResponse(BaseModel):
    """Response after document text extraction.

    Attributes:
        filename: Name of the uploaded file.
        content: Extracted plain text.
        pages: Number of pages (1 for non-paginated formats).
        metadata: Document properties such as title and author (PDF only).
    """

    filename: str
    content: str
    pages: int
    metadata: dict[str, str] = Field(default_factory=dict)
