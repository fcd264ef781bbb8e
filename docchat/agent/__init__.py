"""Agno agent logic for the hosted chat model.

Handles conversation handles, per-session state and context threading.

Responsibilities:
    - Agent initialization with Gemini or OpenAI-compatible models
    - Session registry with expiry and bounded capacity
    - Sending uploaded context to the model exactly once per session
    - Streaming token generation and context summaries

Maintains clean separation from the HTTP layer.
"""

from docchat.agent.chat_agent import AgentService, ModelError, get_agent_service
from docchat.agent.config import (
    AgentConfig,
    ConfigurationError,
    SessionConfig,
    get_agent_config,
)
from docchat.agent.sessions import ChatSession, SessionNotFoundError, SessionRegistry

__all__ = [
    "AgentConfig",
    "AgentService",
    "ChatSession",
    "ConfigurationError",
    "ModelError",
    "SessionConfig",
    "SessionNotFoundError",
    "SessionRegistry",
    "get_agent_config",
    "get_agent_service",
]
