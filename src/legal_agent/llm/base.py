"""
Base classes for LLM providers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Literal


@dataclass
class ToolDefinition:
    """Definition of a tool that the LLM can use."""

    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ToolCall:
    """A tool call made by the LLM."""

    id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class LLMMessage:
    """One turn in a conversation.

    Stored session history only holds ``system``, ``user`` and ``assistant``
    turns. ``tool`` turns live inside a single request's tool loop.
    """

    role: Literal["user", "assistant", "system", "tool"]
    content: str
    tool_calls: tuple[ToolCall, ...] | None = None
    tool_call_id: str | None = None
    name: str | None = None


@dataclass
class LLMResponse:
    """Response from an LLM."""

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""
    stop_reason: str | None = None
    raw_response: Any = None


@dataclass(frozen=True)
class StreamChunk:
    """One item of a relayed model stream.

    ``delta`` chunks carry an incremental text fragment, a single ``done``
    chunk carries the full response and ends the stream, ``error`` chunks
    carry a failure message for transports that cannot raise mid-stream.
    """

    type: Literal["delta", "done", "error"]
    content: str = ""
    session_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "content": self.content, "session_id": self.session_id}


class BaseLLM(ABC):
    """Base class for LLM providers."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.max_tokens = max_tokens
        self.temperature = temperature

    @abstractmethod
    async def generate(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
    ) -> LLMResponse:
        """Generate a response from the LLM."""
        pass

    @abstractmethod
    def stream(
        self,
        messages: list[LLMMessage],
        tools: list[ToolDefinition] | None = None,
        system_prompt: str | None = None,
    ) -> AsyncIterator[str]:
        """Stream a response from the LLM as text fragments.

        ``tools`` only describes the tools already used in ``messages``;
        tool calls the model makes while streaming are not surfaced.
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get the provider name."""
        pass
