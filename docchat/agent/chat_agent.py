"""Agno agent service: conversation handles, streaming replies, summaries.

Core module for talking to the hosted model.

Architecture Decisions:

1. **One Agent per session** - Each chat session owns an agno Agent backed by
   its own InMemoryDb. The agent replays the session's history on every call,
   so the context only has to be sent once, on the first question. Dropping
   the session from the registry drops its history with it.

2. **Per-turn model settings** - The turn that carries the uploaded context
   is the slow one. It runs with thinking disabled and a lower temperature to
   stay inside the platform's request-duration limit. Later turns switch back
   to the default settings.

3. **Singleton Service** - Configuration is read once and reused across
   requests. A missing API key is not cached, so every request keeps failing
   with the same configuration error until the key is set.

4. **Streaming Generator** - Agno yields run events with metadata. We forward
   only the content deltas, giving the relay a plain async iterator of text.
   Agno does not raise when the model fails: a streamed run ends with a
   RunError event and a plain run returns with an error status. Both are
   turned into ModelError here. Failed runs are left out of agno's history,
   so a retried first turn carries the context only once.
"""

import logging
from collections.abc import AsyncGenerator

from agno.agent import Agent
from agno.db.in_memory import InMemoryDb
from agno.models.base import Model
from agno.models.google import Gemini
from agno.models.openai import OpenAIChat
from agno.run.agent import RunEvent
from agno.run.base import RunStatus

from docchat.agent.config import AgentConfig, get_agent_config
from docchat.agent.sessions import ChatSession

logger = logging.getLogger(__name__)

GREETING = (
    "I am ready to discuss risk management and strategic planning. "
    "How can I assist you?"
)

GROUNDED_INSTRUCTIONS = [
    "You are an expert AI assistant specializing in risk management and strategic planning.",
    "The first message of the conversation contains a context document and a question.",
    "Answer questions based *only* on the information provided in the context.",
    "Your answers should be professional, insightful, and directly reference the source material.",
]

GENERAL_INSTRUCTIONS = [
    "You are an expert AI assistant specializing in risk management and strategic planning.",
    "Answer the user's questions with professional, insightful, and well-reasoned responses.",
    "Do not mention that you are an AI.",
]

SUMMARY_PROMPT = """You are an expert document analyst. Create a concise summary of the following text for a risk management expert.

**Instructions:**
1.  Extract **only** the most critical information: key risks, strategic goals, core financial data, and major stakeholders.
2.  The summary **must be extremely dense, factual, and under 800 words.**
3.  The purpose of this summary is to be used as fast, efficient context for a chatbot. It must be significantly shorter than the original.
4.  Omit all conversational fluff, introductions, and conclusions that don't add factual value. Get straight to the key points.

DOCUMENT TEXT:
---
{context}"""


class ModelError(Exception):
    """Raised when the hosted model fails to produce a response."""

    pass


FALLBACK_ERROR_MESSAGE = "The model failed to respond."


class AgentService:
    """Service for creating and driving agno chat agents."""

    def __init__(self, config: AgentConfig | None = None) -> None:
        """Initialize the agent service.

        Args:
            config: Optional agent configuration.
                    Loads from environment if not provided.
        """
        self._config = config or get_agent_config()

    def _create_model(self, temperature: float, fast: bool = False) -> Model:
        """Create the model client for one call.

        Args:
            temperature: Sampling temperature.
            fast: Disable extended reasoning for lower latency.

        Returns:
            Configured agno model.
        """
        if self._config.provider == "openai":
            return OpenAIChat(
                id=self._config.model_name,
                api_key=self._config.api_key,
                base_url=self._config.base_url,
                temperature=temperature,
                max_tokens=self._config.max_tokens,
            )

        return Gemini(
            id=self._config.model_name,
            api_key=self._config.api_key,
            temperature=temperature,
            max_output_tokens=self._config.max_tokens,
            thinking_budget=self._config.fast_thinking_budget if fast else None,
        )

    def create_conversation(self, context: str | None = None) -> Agent:
        """Create the conversation handle for a new session.

        Args:
            context: Grounding text the session was started with, if any.

        Returns:
            Agent with its own in-memory history.
        """
        grounded = bool(context and context.strip())
        return Agent(
            model=self._create_model(self._config.temperature),
            db=InMemoryDb(),
            description="A risk management assistant grounded in uploaded documents.",
            instructions=GROUNDED_INSTRUCTIONS if grounded else GENERAL_INSTRUCTIONS,
            add_history_to_context=True,
            num_history_runs=self._config.num_history_runs,
            markdown=True,
        )

    async def stream_reply(
        self,
        session: ChatSession,
        message: str,
    ) -> AsyncGenerator[str]:
        """Stream the model's reply to a message within a session.

        Pending context is prepended to this turn only, and is marked as sent
        once the reply has streamed completely.

        Args:
            session: The caller's chat session.
            message: The user's message.

        Yields:
            Response text chunks as they arrive.

        Raises:
            ModelError: If the upstream call fails at any point.
        """
        prompt, fresh_context = session.prepare_turn(message)
        agent: Agent = session.conversation
        if fresh_context:
            agent.model = self._create_model(self._config.grounded_temperature, fast=True)
        else:
            agent.model = self._create_model(self._config.temperature)

        try:
            async for event in agent.arun(prompt, session_id=session.session_id, stream=True):
                kind = getattr(event, "event", None)
                if kind == RunEvent.run_error:
                    raise ModelError(event.content or FALLBACK_ERROR_MESSAGE)
                if kind != RunEvent.run_content:
                    continue
                if isinstance(event.content, str) and event.content:
                    yield event.content
        except ModelError as e:
            logger.error(f"Model run failed for session {session.session_id}: {e}")
            raise
        except Exception as e:
            logger.error(f"Model stream failed for session {session.session_id}: {e}")
            raise ModelError(str(e) or FALLBACK_ERROR_MESSAGE) from e

        if fresh_context:
            session.mark_context_injected()

    async def summarize(self, context: str) -> str:
        """Condense context text into a short, dense summary.

        Args:
            context: The merged document text.

        Returns:
            Summary text.

        Raises:
            ModelError: If the upstream call fails.
        """
        agent = Agent(
            model=self._create_model(self._config.summary_temperature, fast=True),
            markdown=True,
        )
        try:
            response = await agent.arun(SUMMARY_PROMPT.format(context=context))
        except Exception as e:
            logger.error(f"Summarization failed: {e}")
            raise ModelError(str(e) or FALLBACK_ERROR_MESSAGE) from e

        if response.status == RunStatus.error:
            logger.error(f"Summarization failed: {response.content}")
            raise ModelError(response.content or FALLBACK_ERROR_MESSAGE)

        return response.content or ""


# Module-level singleton instance
_agent_service: AgentService | None = None


def get_agent_service() -> AgentService:
    """Get or create the global agent service.

    Returns:
        The AgentService instance.

    Raises:
        ConfigurationError: If the model credential is missing.
    """
    global _agent_service
    if _agent_service is None:
        _agent_service = AgentService()
    return _agent_service
