"""HTTP client the chat page uses to talk to the API."""

import json
import logging
import os
from collections.abc import Callable

import httpx

from docchat.models.schemas import (
    START_SESSION_MESSAGE,
    DocumentUploadResponse,
    SummarizeResponse,
)
from docchat.ui.stream_consumer import StreamError, StreamResult, consume_stream

logger = logging.getLogger(__name__)

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")

TIMEOUT_MESSAGE = (
    "The request timed out. This can happen with very large documents. "
    "Please try reducing the context size or rephrasing the question."
)
GATEWAY_TIMEOUT_STATUSES = (502, 504)


class ChatClientError(Exception):
    """A request failed; the message is fit to show to the user."""

    pass


def describe_error_response(response: httpx.Response) -> str:
    """Turn a non-OK response into a user-facing message.

    Gateway timeouts get actionable guidance. Otherwise the server's error
    payload is used when it has one.
    """
    if response.status_code in GATEWAY_TIMEOUT_STATUSES:
        return TIMEOUT_MESSAGE

    message = f"Server error: {response.status_code} {response.reason_phrase}"
    try:
        data = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return message

    if isinstance(data, dict):
        if data.get("type") == "error" and data.get("message"):
            return str(data["message"])
        if isinstance(data.get("detail"), str):
            return data["detail"]
    return message


class SessionStart:
    def __init__(self, session_id: str, greeting: str) -> None:
        self.session_id = session_id
        self.greeting = greeting


class ChatApiClient:
    """Async client for the chat, summarize and upload endpoints."""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _stream_chat(
        self,
        body: dict,
        on_text: Callable[[str], None] | None = None,
    ) -> StreamResult:
        async with self._client() as client:
            try:
                async with client.stream(
                    "POST",
                    "/chat",
                    json=body,
                    headers={"Accept": "application/x-ndjson"},
                ) as response:
                    if response.is_error:
                        await response.aread()
                        raise ChatClientError(describe_error_response(response))
                    return await consume_stream(response.aiter_bytes(), on_text)
            except StreamError as e:
                raise ChatClientError(str(e)) from e
            except httpx.RequestError as e:
                raise ChatClientError(f"Connection failed: {e}") from e

    async def start_session(self, context: str | None = None) -> SessionStart:
        """Open a chat session, sending the document context with it.

        Returns:
            The new session id and the assistant's greeting.
        """
        body: dict = {"message": START_SESSION_MESSAGE}
        if context and context.strip():
            body["context"] = context
        result = await self._stream_chat(body)
        if result.session is None:
            raise ChatClientError("The server did not return a session.")
        return SessionStart(result.session.session_id, result.session.message)

    async def send_message(
        self,
        session_id: str,
        message: str,
        on_text: Callable[[str], None] | None = None,
    ) -> str:
        """Send a message and stream the reply.

        Args:
            session_id: Session returned by start_session.
            message: The user's message.
            on_text: Called with the reply so far after every chunk.

        Returns:
            The complete reply text.
        """
        result = await self._stream_chat(
            {"message": message, "sessionId": session_id},
            on_text,
        )
        return result.text

    async def end_session(self, session_id: str) -> None:
        async with self._client() as client:
            try:
                await client.delete(f"/chat/sessions/{session_id}")
            except httpx.RequestError as e:
                logger.warning(f"Could not close session {session_id}: {e}")

    async def summarize(self, context: str) -> str:
        async with self._client() as client:
            try:
                response = await client.post("/summarize", json={"context": context})
            except httpx.RequestError as e:
                raise ChatClientError(f"Connection failed: {e}") from e
        if response.is_error:
            raise ChatClientError(describe_error_response(response))
        return SummarizeResponse.model_validate(response.json()).summary

    async def extract_document(
        self,
        filename: str,
        content: bytes,
        content_type: str | None = None,
    ) -> DocumentUploadResponse:
        """Upload a file and get its extracted text back."""
        async with self._client() as client:
            try:
                response = await client.post(
                    "/upload/document",
                    files={"file": (filename, content, content_type or "application/octet-stream")},
                )
            except httpx.RequestError as e:
                raise ChatClientError(f"Connection failed: {e}") from e
        if response.is_error:
            raise ChatClientError(describe_error_response(response))
        return DocumentUploadResponse.model_validate(response.json())
