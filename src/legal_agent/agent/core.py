"""
Legal agent orchestrator.

Ties a model backend, the optional retrieval tools and the session registry
together. For each query it:
1. Resolves (or generates) the session id
2. Trims the stored history and appends the new user turn to the request
3. Runs the tool loop if tools are enabled, otherwise streams the model
4. Relays the output while accumulating it
5. Commits the user turn and the assistant turn once the exchange succeeded

Nothing is committed when the model fails or the consumer stops reading
early, so the history never holds a question without its answer.
"""

import asyncio
import secrets
import string
import time
from typing import AsyncIterator

import structlog

from ..config import ModelConfig, Settings, get_settings
from ..errors import InitializationError, QueryProcessingError
from ..llm import BaseLLM, LLMMessage, StreamChunk, create_llm
from ..memory import SessionRegistry, SessionStats, get_session_registry, trim_messages
from ..tools import ToolRegistry, create_tool_registry

logger = structlog.get_logger()

DEFAULT_SYSTEM_PROMPT = """あなたは日本の法律に特化した役立つ弁護士アシスタントです。
すべての回答は真実でなければならず、回答を作成してはいけません。
質問に正確に答えるため、知識がない場合は、ツールを使用して関連する回答を検索してください。
必要に応じて、指定されたURLからウェブページを読み込んで情報を取得できます。"""

SESSION_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
SESSION_SUFFIX_LENGTH = 9
QUERY_LOG_CHARS = 100


def generate_session_id() -> str:
    """Build ``session_<epoch millis>_<9 random alnum chars>``."""
    suffix = "".join(secrets.choice(SESSION_SUFFIX_ALPHABET) for _ in range(SESSION_SUFFIX_LENGTH))
    return f"session_{int(time.time() * 1000)}_{suffix}"


class LegalAgent:
    """Conversational legal assistant with per-session memory."""

    def __init__(
        self,
        model_config: ModelConfig | None = None,
        session_registry: SessionRegistry | None = None,
        tool_registry: ToolRegistry | None = None,
        llm: BaseLLM | None = None,
        settings: Settings | None = None,
        system_prompt: str | None = None,
    ):
        self.settings = settings or get_settings()
        self.model_config = model_config or ModelConfig.from_settings(self.settings)
        self.session_memory = session_registry or get_session_registry()
        self.tool_registry = tool_registry
        self.system_prompt = system_prompt or DEFAULT_SYSTEM_PROMPT
        self.max_context_messages = self.settings.max_context_messages
        self.max_tool_iterations = self.settings.max_tool_iterations

        self.llm = llm
        self._initialized = False
        self._init_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Create the model client and tools once.

        Concurrent callers wait for the first initialization instead of
        starting their own. A failure leaves the agent not ready, so the
        next call tries again.
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            try:
                logger.info(
                    "Initializing LLM",
                    model=self.model_config.name,
                    provider=self.model_config.provider,
                    base_url=self.model_config.base_url,
                )

                if self.llm is None:
                    self.llm = create_llm(self.model_config.to_llm_config())

                if self.tool_registry is None and self.settings.enable_tools:
                    self.tool_registry = create_tool_registry(self.settings)

                self._initialized = True
                logger.info(
                    "Legal agent initialized",
                    model=self.model_config.name,
                    tools=self.tool_registry.list_tools() if self.tool_registry else [],
                )

            except Exception as e:
                logger.error("Failed to initialize legal agent", error=str(e))
                raise InitializationError(str(e)) from e

    def is_ready(self) -> bool:
        return self._initialized

    def get_model_config(self) -> ModelConfig:
        return self.model_config

    def get_model_name(self) -> str:
        return self.model_config.name

    def generate_session_id(self) -> str:
        return generate_session_id()

    async def process_query(self, query: str, session_id: str | None = None) -> str:
        """Answer a query and return the full response text."""
        await self.initialize()

        effective_session_id, request, user_message = self._prepare_request(query, session_id)

        full_response = ""
        async for chunk in self._exchange(effective_session_id, request, user_message, query):
            if chunk.type == "done":
                full_response = chunk.content

        logger.info(
            "Query processed",
            response_length=len(full_response),
            session_id=effective_session_id,
            message_count=len(self.session_memory.get_messages(effective_session_id)),
        )
        return full_response

    async def get_stream(
        self,
        query: str,
        session_id: str | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """Relay the model's output as it arrives.

        Yields ``delta`` chunks followed by one ``done`` chunk holding the
        full response. Errors are raised to the consumer as
        ``QueryProcessingError``.
        """
        await self.initialize()

        effective_session_id, request, user_message = self._prepare_request(query, session_id)

        async for chunk in self._exchange(effective_session_id, request, user_message, query):
            yield chunk

    def _prepare_request(
        self,
        query: str,
        session_id: str | None,
    ) -> tuple[str, list[LLMMessage], LLMMessage]:
        effective_session_id = session_id or self.generate_session_id()

        logger.info(
            "Processing legal query",
            query=query[:QUERY_LOG_CHARS],
            session_id=effective_session_id,
        )

        try:
            history = self.session_memory.get_messages(effective_session_id)
            trimmed = trim_messages(history, self.max_context_messages)
        except Exception as e:
            logger.error(
                "Failed to assemble history",
                error=str(e),
                query=query[:QUERY_LOG_CHARS],
                session_id=effective_session_id,
            )
            raise QueryProcessingError(str(e), session_id=effective_session_id) from e

        user_message = LLMMessage(role="user", content=query)
        return effective_session_id, [*trimmed, user_message], user_message

    async def _exchange(
        self,
        session_id: str,
        request: list[LLMMessage],
        user_message: LLMMessage,
        query: str,
    ) -> AsyncIterator[StreamChunk]:
        """Stream one exchange and commit it once the model is done."""
        full_response = ""

        try:
            async for fragment in self._generate(request):
                full_response += fragment
                yield StreamChunk(type="delta", content=fragment, session_id=session_id)
        except Exception as e:
            logger.error(
                "Stream monitoring error",
                error=str(e),
                query=query[:QUERY_LOG_CHARS],
                session_id=session_id,
            )
            raise QueryProcessingError(str(e), session_id=session_id) from e

        turns = [user_message]
        if full_response:
            turns.append(LLMMessage(role="assistant", content=full_response))
        self.session_memory.add_messages(session_id, turns)

        logger.info(
            "Stream completed and messages saved",
            session_id=session_id,
            response_length=len(full_response),
        )
        yield StreamChunk(type="done", content=full_response, session_id=session_id)

    def _generate(self, request: list[LLMMessage]) -> AsyncIterator[str]:
        if self.tool_registry is not None and self.tool_registry.list_tools():
            return self._generate_with_tools(list(request))
        return self.llm.stream(request, system_prompt=self.system_prompt)

    async def _generate_with_tools(self, request: list[LLMMessage]) -> AsyncIterator[str]:
        """Resolve tool calls, then stream the model's final answer.

        Tool calls and their results only extend this request's message
        list; they are never committed to the session.
        """
        tools = self.tool_registry.get_definitions()

        response = None
        for _ in range(self.max_tool_iterations):
            response = await self.llm.generate(
                messages=request,
                tools=tools,
                system_prompt=self.system_prompt,
            )

            if not response.tool_calls:
                break

            request.append(LLMMessage(
                role="assistant",
                content=response.content,
                tool_calls=tuple(response.tool_calls),
            ))

            for tool_call in response.tool_calls:
                logger.info("Executing tool", tool=tool_call.name, arguments=tool_call.arguments)
                result = await self.tool_registry.execute(tool_call.name, tool_call.arguments)
                request.append(LLMMessage(
                    role="tool",
                    content=result.output if result.success else f"Error: {result.error}",
                    tool_call_id=tool_call.id,
                    name=tool_call.name,
                ))
        else:
            timeout_msg = "I've reached the maximum number of tool iterations. Here's what I have so far."
            if response and response.content:
                timeout_msg = f"{response.content}\n\n{timeout_msg}"
            yield timeout_msg
            return

        async for fragment in self.llm.stream(request, tools=tools, system_prompt=self.system_prompt):
            yield fragment

    def get_session_stats(self) -> SessionStats:
        return self.session_memory.get_session_stats()

    def clear_session(self, session_id: str) -> None:
        self.session_memory.clear_session(session_id)

    def get_session_context(self, session_id: str) -> dict:
        return self.session_memory.get_context(session_id)

    def update_session_context(self, session_id: str, context: dict) -> None:
        self.session_memory.update_context(session_id, context)
