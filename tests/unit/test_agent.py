"""Unit tests for AgentConfig and AgentService.

Tests configuration validation, per-turn model settings and the rule that
context is sent to the model exactly once per session.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from agno.models.google import Gemini
from agno.models.response import ModelResponse
from agno.run.agent import RunEvent
from agno.run.base import RunStatus
from pydantic import ValidationError

from docchat.agent.config import (
    MISSING_API_KEY_MESSAGE,
    AgentConfig,
    ConfigurationError,
    get_agent_config,
)
from docchat.agent.sessions import ChatSession

API_KEY_VARS = ("API_KEY", "GOOGLE_API_KEY", "LLM_API_KEY")


class FakeAgent:
    """Records what each run was sent and which model it ran with."""

    def __init__(self, fragments: list[str] | None = None, error: Exception | None = None) -> None:
        self.fragments = fragments if fragments is not None else ["Revenue ", "risk."]
        self.error = error
        self.model = None
        self.runs: list[tuple[str, object]] = []

    def arun(self, prompt: str, session_id: str | None = None, stream: bool = False):
        self.runs.append((prompt, self.model))

        async def events():
            for text in self.fragments:
                yield SimpleNamespace(event=RunEvent.run_content, content=text)
            if self.error:
                raise self.error
            yield SimpleNamespace(event="RunCompleted", content="".join(self.fragments))

        return events()


async def collect(stream) -> list[str]:
    return [text async for text in stream]


class TestAgentConfig:
    """Tests for AgentConfig validation."""

    def test_valid_config_with_all_fields(self) -> None:
        """Config accepts valid values for all fields."""
        config = AgentConfig(
            api_key="test-key-12345",
            provider="openai",
            model_name="gpt-4o",
            temperature=0.5,
            max_tokens=2048,
        )

        assert config.api_key == "test-key-12345"
        assert config.provider == "openai"
        assert config.model_name == "gpt-4o"
        assert config.temperature == 0.5
        assert config.max_tokens == 2048

    def test_config_with_default_values(self) -> None:
        """Generation defaults match the chat and summary settings."""
        with patch.dict("os.environ", {"LLM_PROVIDER": "gemini", "LLM_MODEL": "gemini-2.5-flash"}):
            config = AgentConfig(api_key="test-key")

        assert config.provider == "gemini"
        assert config.model_name == "gemini-2.5-flash"
        assert config.temperature == 0.7
        assert config.grounded_temperature == 0.3
        assert config.summary_temperature == 0.2
        assert config.fast_thinking_budget == 0

    def test_config_fails_with_missing_api_key(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(api_key="")

        assert MISSING_API_KEY_MESSAGE in str(exc_info.value)

    def test_config_fails_with_whitespace_api_key(self) -> None:
        with pytest.raises(ValidationError):
            AgentConfig(api_key="   ")

    def test_config_strips_api_key_whitespace(self) -> None:
        config = AgentConfig(api_key="  test-key  ")

        assert config.api_key == "test-key"

    def test_config_rejects_unknown_provider(self) -> None:
        with pytest.raises(ValidationError):
            AgentConfig(api_key="k", provider="anthropic")

    def test_config_fails_with_temperature_too_high(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(api_key="k", temperature=2.5)

        assert "temperature" in str(exc_info.value).lower()


class TestGetAgentConfig:
    """Tests for get_agent_config factory function."""

    def test_reads_api_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in API_KEY_VARS:
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("API_KEY", "env-key")

        assert get_agent_config().api_key == "env-key"

    def test_falls_back_to_google_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in API_KEY_VARS:
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("GOOGLE_API_KEY", "google-key")

        assert get_agent_config().api_key == "google-key"

    def test_missing_key_is_configuration_error(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in API_KEY_VARS:
            monkeypatch.delenv(name, raising=False)

        with pytest.raises(ConfigurationError) as exc_info:
            get_agent_config()

        assert str(exc_info.value) == MISSING_API_KEY_MESSAGE


class TestAgentServiceModels:
    """Tests for model construction."""

    @patch("docchat.agent.chat_agent.InMemoryDb")
    @patch("docchat.agent.chat_agent.Gemini")
    @patch("docchat.agent.chat_agent.Agent")
    def test_grounded_conversation_uses_grounded_instructions(
        self,
        mock_agent_class: MagicMock,
        mock_gemini: MagicMock,
        mock_db: MagicMock,
    ) -> None:
        from docchat.agent.chat_agent import GROUNDED_INSTRUCTIONS, AgentService

        service = AgentService(config=AgentConfig(api_key="k", provider="gemini"))
        service.create_conversation("Revenue fell 10%.")

        call_kwargs = mock_agent_class.call_args.kwargs
        assert call_kwargs["instructions"] == GROUNDED_INSTRUCTIONS
        assert call_kwargs["add_history_to_context"] is True
        assert call_kwargs["markdown"] is True
        mock_db.assert_called_once()

    @patch("docchat.agent.chat_agent.InMemoryDb")
    @patch("docchat.agent.chat_agent.Gemini")
    @patch("docchat.agent.chat_agent.Agent")
    def test_conversation_without_context_uses_general_instructions(
        self,
        mock_agent_class: MagicMock,
        mock_gemini: MagicMock,
        mock_db: MagicMock,
    ) -> None:
        from docchat.agent.chat_agent import GENERAL_INSTRUCTIONS, AgentService

        AgentService(config=AgentConfig(api_key="k", provider="gemini")).create_conversation("  ")

        assert mock_agent_class.call_args.kwargs["instructions"] == GENERAL_INSTRUCTIONS

    @patch("docchat.agent.chat_agent.OpenAIChat")
    def test_openai_provider_uses_openai_chat(self, mock_openai_chat: MagicMock) -> None:
        from docchat.agent.chat_agent import AgentService

        config = AgentConfig(
            api_key="sk-custom-key",
            provider="openai",
            base_url="http://localhost:1234/v1",
            model_name="gpt-4o-mini",
            max_tokens=1024,
        )
        AgentService(config=config)._create_model(0.3)

        mock_openai_chat.assert_called_once_with(
            id="gpt-4o-mini",
            api_key="sk-custom-key",
            base_url="http://localhost:1234/v1",
            temperature=0.3,
            max_tokens=1024,
        )


class TestStreamReply:
    """Tests for context threading and per-turn settings."""

    @patch("docchat.agent.chat_agent.Gemini")
    async def test_context_sent_exactly_once(self, mock_gemini: MagicMock) -> None:
        from docchat.agent.chat_agent import AgentService

        service = AgentService(config=AgentConfig(api_key="k", provider="gemini"))
        agent = FakeAgent()
        session = ChatSession("s1", agent, context="Revenue fell 10%.")

        first = await collect(service.stream_reply(session, "What are the risks?"))
        await collect(service.stream_reply(session, "And the opportunities?"))
        await collect(service.stream_reply(session, "Summarize."))

        prompts = [prompt for prompt, _ in agent.runs]
        assert first == ["Revenue ", "risk."]
        assert sum("Revenue fell 10%." in p for p in prompts) == 1
        assert prompts[0] == "CONTEXT:\n---\nRevenue fell 10%.\n---\n\nQUESTION: What are the risks?"
        assert prompts[1:] == ["And the opportunities?", "Summarize."]
        assert session.pending_context is None

    @patch("docchat.agent.chat_agent.Gemini")
    async def test_context_turn_uses_fast_mode(self, mock_gemini: MagicMock) -> None:
        from docchat.agent.chat_agent import AgentService

        service = AgentService(config=AgentConfig(api_key="k", provider="gemini", max_tokens=512))
        session = ChatSession("s1", FakeAgent(), context="Large document")

        await collect(service.stream_reply(session, "Q1"))
        await collect(service.stream_reply(session, "Q2"))

        first_call, second_call = mock_gemini.call_args_list
        assert first_call.kwargs["temperature"] == 0.3
        assert first_call.kwargs["thinking_budget"] == 0
        assert second_call.kwargs["temperature"] == 0.7
        assert second_call.kwargs["thinking_budget"] is None

    @patch("docchat.agent.chat_agent.Gemini")
    async def test_session_without_context_uses_defaults(self, mock_gemini: MagicMock) -> None:
        from docchat.agent.chat_agent import AgentService

        service = AgentService(config=AgentConfig(api_key="k", provider="gemini"))
        agent = FakeAgent()
        session = ChatSession("s1", agent)

        await collect(service.stream_reply(session, "Hello"))

        assert agent.runs[0][0] == "Hello"
        assert mock_gemini.call_args.kwargs["temperature"] == 0.7

    @patch("docchat.agent.chat_agent.Gemini")
    async def test_ignores_non_content_events(self, mock_gemini: MagicMock) -> None:
        from docchat.agent.chat_agent import AgentService

        service = AgentService(config=AgentConfig(api_key="k", provider="gemini"))
        chunks = await collect(service.stream_reply(ChatSession("s1", FakeAgent(["A", "B"])), "Q"))

        assert chunks == ["A", "B"]

    @patch("docchat.agent.chat_agent.Gemini")
    async def test_upstream_failure_raises_model_error_and_keeps_context(
        self, mock_gemini: MagicMock
    ) -> None:
        from docchat.agent.chat_agent import AgentService, ModelError

        service = AgentService(config=AgentConfig(api_key="k", provider="gemini"))
        session = ChatSession("s1", FakeAgent(["partial"], error=RuntimeError("quota")), context="ctx")

        with pytest.raises(ModelError, match="quota"):
            await collect(service.stream_reply(session, "Q"))

        assert session.pending_context == "ctx"


class TestSummarize:
    @patch("docchat.agent.chat_agent.Gemini")
    @patch("docchat.agent.chat_agent.Agent")
    async def test_summary_prompt_and_settings(
        self, mock_agent_class: MagicMock, mock_gemini: MagicMock
    ) -> None:
        from docchat.agent.chat_agent import AgentService

        async def arun(prompt: str):
            return SimpleNamespace(content="Dense summary", status=RunStatus.completed)

        mock_agent_class.return_value.arun = MagicMock(side_effect=arun)
        service = AgentService(config=AgentConfig(api_key="k", provider="gemini"))

        summary = await service.summarize("Revenue fell 10%.")

        assert summary == "Dense summary"
        prompt = mock_agent_class.return_value.arun.call_args.args[0]
        assert prompt.endswith("DOCUMENT TEXT:\n---\nRevenue fell 10%.")
        assert mock_gemini.call_args.kwargs["temperature"] == 0.2
        assert mock_gemini.call_args.kwargs["thinking_budget"] == 0

    @patch("docchat.agent.chat_agent.Gemini")
    @patch("docchat.agent.chat_agent.Agent")
    async def test_summary_failure_raises_model_error(
        self, mock_agent_class: MagicMock, mock_gemini: MagicMock
    ) -> None:
        from docchat.agent.chat_agent import AgentService, ModelError

        async def arun(prompt: str):
            raise RuntimeError("deadline exceeded")

        mock_agent_class.return_value.arun = MagicMock(side_effect=arun)
        service = AgentService(config=AgentConfig(api_key="k", provider="gemini"))

        with pytest.raises(ModelError, match="deadline exceeded"):
            await service.summarize("text")


class TestAgnoRunFailures:
    """Failures reported by a real agno Agent, with only the Gemini call replaced."""

    @pytest.fixture(autouse=True)
    def no_telemetry(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("AGNO_TELEMETRY", "false")

    @pytest.fixture
    def service(self):
        from docchat.agent.chat_agent import AgentService

        return AgentService(config=AgentConfig(api_key="k", provider="gemini"))

    async def test_stream_failure_raises_model_error(self, service) -> None:
        from docchat.agent.chat_agent import ModelError

        context = "Revenue fell 10%."
        session = ChatSession("s1", service.create_conversation(context), context=context)

        with patch.object(Gemini, "ainvoke_stream", side_effect=RuntimeError("quota exceeded")):
            with pytest.raises(ModelError, match="quota exceeded"):
                await collect(service.stream_reply(session, "What are the risks?"))

        assert session.pending_context == "Revenue fell 10%."
        assert not session.context_injected

    async def test_retry_after_failure_sends_context_once(self, service) -> None:
        from docchat.agent.chat_agent import ModelError

        sent: list[list[str]] = []
        failures = [RuntimeError("quota exceeded")]

        async def fake_stream(self, messages, assistant_message, **kwargs):
            sent.append([str(m.content) for m in messages if m.role == "user"])
            if failures:
                raise failures.pop()
            yield ModelResponse(role="assistant", content="Key risk: revenue decline.")

        context = "Revenue fell 10%."
        session = ChatSession("s1", service.create_conversation(context), context=context)

        with patch.object(Gemini, "ainvoke_stream", new=fake_stream):
            with pytest.raises(ModelError):
                await collect(service.stream_reply(session, "What are the risks?"))
            reply = await collect(service.stream_reply(session, "What are the risks?"))

        assert "".join(reply) == "Key risk: revenue decline."
        assert sum(context in text for text in sent[-1]) == 1
        assert session.pending_context is None

    async def test_summary_failure_raises_model_error(self, service) -> None:
        from docchat.agent.chat_agent import ModelError

        with patch.object(Gemini, "ainvoke", side_effect=RuntimeError("quota exceeded")):
            with pytest.raises(ModelError, match="quota exceeded"):
                await service.summarize("Revenue fell 10%.")


class TestGetAgentService:
    """Tests for get_agent_service singleton function."""

    def test_singleton_returns_same_instance(self) -> None:
        import docchat.agent.chat_agent as chat_agent_module

        chat_agent_module._agent_service = None

        with patch.object(chat_agent_module, "AgentService") as mock_service:
            mock_service.return_value = MagicMock()

            first = chat_agent_module.get_agent_service()
            second = chat_agent_module.get_agent_service()

            assert first is second
            mock_service.assert_called_once()

        chat_agent_module._agent_service = None

    def test_configuration_error_is_not_cached(self, monkeypatch: pytest.MonkeyPatch) -> None:
        import docchat.agent.chat_agent as chat_agent_module

        chat_agent_module._agent_service = None
        for name in API_KEY_VARS:
            monkeypatch.delenv(name, raising=False)

        for _ in range(2):
            with pytest.raises(ConfigurationError):
                chat_agent_module.get_agent_service()

        assert chat_agent_module._agent_service is None
