"""Pytest fixtures and shared test configuration.

Fixtures:
    - fake_agent_service: Stand-in for the hosted model that records every
      prompt it is sent
    - sessions: Small session registry
    - app: FastAPI app wired to the fake service and registry
    - async_client: HTTPX client for API testing
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from docchat.agent.chat_agent import ModelError, get_agent_service
from docchat.agent.config import SessionConfig
from docchat.agent.sessions import ChatSession, SessionRegistry
from docchat.api.app import create_app


class FakeAgentService:
    """Replays canned fragments instead of calling a model."""

    def __init__(self) -> None:
        self.conversation_contexts: list[str | None] = []
        self.prompts: list[str] = []
        self.replies: list[str] = ["Key risk: ", "revenue decline."]
        self.fail_after: int | None = None
        self.summary_error: str | None = None

    def create_conversation(self, context: str | None = None) -> object:
        self.conversation_contexts.append(context)
        return object()

    async def stream_reply(self, session: ChatSession, message: str) -> AsyncGenerator[str]:
        prompt, fresh_context = session.prepare_turn(message)
        self.prompts.append(prompt)
        for i, text in enumerate(self.replies):
            if self.fail_after is not None and i >= self.fail_after:
                raise ModelError("Quota exceeded")
            yield text
        if fresh_context:
            session.mark_context_injected()

    async def summarize(self, context: str) -> str:
        if self.summary_error:
            raise ModelError(self.summary_error)
        return f"Summary of {len(context)} chars"


@pytest.fixture
def fake_agent_service() -> FakeAgentService:
    return FakeAgentService()


@pytest.fixture
def sessions() -> SessionRegistry:
    return SessionRegistry(SessionConfig(ttl_seconds=600, max_sessions=10))


@pytest.fixture
def app(fake_agent_service: FakeAgentService, sessions: SessionRegistry) -> FastAPI:
    """Application served from the fake model and a fresh registry."""
    application = create_app(sessions)
    application.dependency_overrides[get_agent_service] = lambda: fake_agent_service
    return application


@pytest.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
