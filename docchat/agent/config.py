"""Agent and session configuration with environment variable loading.

Pydantic-based configuration for the hosted chat model and the session
registry. Gemini is the default provider; any OpenAI-compatible API can be
used by setting LLM_PROVIDER=openai and, optionally, LLM_BASE_URL.
"""

import os
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

# Load environment variables from .env file
load_dotenv()

MISSING_API_KEY_MESSAGE = "API_KEY is not set on the server."


class ConfigurationError(Exception):
    """Raised when the server is missing required configuration."""

    pass


def _api_key_from_env() -> str:
    for name in ("API_KEY", "GOOGLE_API_KEY", "LLM_API_KEY"):
        value = os.getenv(name)
        if value:
            return value
    return ""


class AgentConfig(BaseModel):
    """Configuration for the chat model.

    Attributes:
        api_key: Credential for the hosted model.
        provider: Model provider, "gemini" or "openai".
        base_url: API base URL for OpenAI-compatible providers.
        model_name: Model identifier to use.
        temperature: Sampling temperature for ordinary turns.
        grounded_temperature: Temperature for the turn that injects context.
        summary_temperature: Temperature for context summaries.
        fast_thinking_budget: Reasoning budget for latency-sensitive calls.
        max_tokens: Maximum tokens in a generated response.
        num_history_runs: Prior runs replayed into each model call.
    """

    api_key: str = Field(
        default_factory=_api_key_from_env,
        description="API key for the LLM provider",
    )
    provider: Literal["gemini", "openai"] = Field(
        default_factory=lambda: os.getenv("LLM_PROVIDER", "gemini").lower(),
        description="Model provider",
    )
    base_url: str | None = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL") or None,
        description="API base URL (OpenAI-compatible providers only)",
    )
    model_name: str = Field(
        default_factory=lambda: os.getenv("LLM_MODEL", "gemini-2.5-flash"),
        description="Model to use",
    )
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    grounded_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    summary_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    fast_thinking_budget: int = Field(
        default=0,
        ge=0,
        description="Thinking budget when large context is sent (0 disables thinking)",
    )
    max_tokens: int = Field(default=4096, ge=1, le=128000)
    num_history_runs: int = Field(default=50, ge=1)

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        """Validate that API key is provided and non-empty."""
        if not v or not v.strip():
            raise ValueError(MISSING_API_KEY_MESSAGE)
        return v.strip()


class SessionConfig(BaseModel):
    """Limits for the in-process session registry."""

    ttl_seconds: float = Field(
        default_factory=lambda: float(os.getenv("SESSION_TTL_SECONDS", "3600")),
        gt=0,
        description="Idle time after which a session expires",
    )
    max_sessions: int = Field(
        default_factory=lambda: int(os.getenv("MAX_SESSIONS", "500")),
        ge=1,
        description="Maximum number of live sessions before LRU eviction",
    )


def get_agent_config() -> AgentConfig:
    """Create agent configuration from environment.

    Returns:
        Configured AgentConfig instance.

    Raises:
        ConfigurationError: If no API key is set or a value is invalid.
    """
    try:
        return AgentConfig()
    except ValidationError as e:
        if any(err["loc"] == ("api_key",) for err in e.errors()):
            raise ConfigurationError(MISSING_API_KEY_MESSAGE) from e
        raise ConfigurationError(f"Invalid agent configuration: {e}") from e


def get_session_config() -> SessionConfig:
    """Create session registry configuration from environment."""
    return SessionConfig()
