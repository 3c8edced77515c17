"""
Shared fixtures for the test suite.
"""

from typing import Any, AsyncIterator

import pytest

from legal_agent.config import Settings
from legal_agent.llm.base import BaseLLM, LLMMessage, LLMResponse, ToolDefinition
from legal_agent.memory import SessionRegistry, reset_session_registry


class FakeLLM(BaseLLM):
    """In-process LLM that streams canned fragments and records its calls."""

    def __init__(
        self,
        fragments: tuple[str, ...] = ("Hello", ", ", "world"),
        fail_after: int | None = None,
        responses: list[LLMResponse] | None = None,
    ):
        super().__init__(api_key="", model="fake-model")
        self.fragments = list(fragments)
        self.fail_after = fail_after
        self.responses = list(responses or [])
        self.stream_calls: list[list[LLMMessage]] = []
        self.generate_calls: list[list[LLMMessage]] = []
        self.system_prompts: list[str | None] = []
        self.stream_tools: list[list[ToolDefinition] | None] = []

    @property
    def provider_name(self) -> str:
        return "fake"

    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        self.generate_calls.append(list(messages))
        return self.responses.pop(0)

    async def stream(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        self.stream_calls.append(list(messages))
        self.stream_tools.append(tools)
        self.system_prompts.append(system_prompt)
        for index, fragment in enumerate(self.fragments):
            if self.fail_after is not None and index >= self.fail_after:
                raise RuntimeError("backend exploded")
            yield fragment


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        default_provider="ollama",
        default_model="test-model",
        enable_tools=False,
        max_context_messages=10,
    )


@pytest.fixture
def registry() -> SessionRegistry:
    return SessionRegistry()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture(autouse=True)
def _fresh_global_registry() -> Any:
    reset_session_registry()
    yield
    reset_session_registry()


@pytest.fixture
def llm_factory() -> type[FakeLLM]:
    return FakeLLM
