"""
FastAPI application factory.

Exposes the legal agent over HTTP:
- Chat (buffered and server-sent-event streaming)
- Session statistics, clearing and context
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, AsyncIterator

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from ..agent import LegalAgent
from ..config import Settings, get_settings
from ..errors import InitializationError, QueryProcessingError
from ..llm import StreamChunk

logger = structlog.get_logger()

API_VERSION = "1.0.0"


class ChatRequest(BaseModel):
    """Chat request body."""
    query: str = Field(min_length=1)
    session_id: str | None = None


class ChatResponse(BaseModel):
    """Buffered chat response."""
    response: str
    session_id: str


def get_agent(request: Request) -> LegalAgent:
    """Dependency returning the agent attached to the app."""
    return request.app.state.agent


def _format_event(chunk: StreamChunk) -> str:
    return f"data: {json.dumps(chunk.to_dict(), ensure_ascii=False)}\n\n"


async def _event_stream(agent: LegalAgent, query: str, session_id: str) -> AsyncIterator[str]:
    """Render the agent stream as SSE; a failure becomes a final error event."""
    try:
        async for chunk in agent.get_stream(query, session_id):
            yield _format_event(chunk)
    except (QueryProcessingError, InitializationError) as e:
        yield _format_event(StreamChunk(type="error", content=str(e), session_id=session_id))


def create_app(settings: Settings | None = None, agent: LegalAgent | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler."""
        try:
            await app.state.agent.initialize()
        except InitializationError as e:
            logger.warning("Agent not ready at startup, will retry on first request", error=str(e))

        yield

        logger.info("Application shutdown complete")

    app = FastAPI(
        title=settings.app_name,
        description="Legal assistant agent specialised in Japanese law",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.agent = agent or LegalAgent(settings=settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------ #
    # Health
    # ------------------------------------------------------------------ #
    @app.get("/api/health")
    async def health_check(agent: LegalAgent = Depends(get_agent)):
        """Health check endpoint."""
        return {
            "status": "healthy" if agent.is_ready() else "initializing",
            "version": API_VERSION,
            "agent_ready": agent.is_ready(),
            "model": agent.get_model_name(),
            "provider": agent.get_model_config().provider,
        }

    # ------------------------------------------------------------------ #
    # Chat
    # ------------------------------------------------------------------ #
    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(body: ChatRequest, agent: LegalAgent = Depends(get_agent)):
        """Answer a query and return the whole response."""
        session_id = body.session_id or agent.generate_session_id()
        try:
            response = await agent.process_query(body.query, session_id)
        except InitializationError as e:
            raise HTTPException(status_code=503, detail=str(e))
        except QueryProcessingError as e:
            raise HTTPException(status_code=502, detail=str(e))

        return ChatResponse(response=response, session_id=session_id)

    @app.post("/api/chat/stream")
    async def chat_stream(body: ChatRequest, agent: LegalAgent = Depends(get_agent)):
        """Stream the response as server-sent events."""
        session_id = body.session_id or agent.generate_session_id()
        return StreamingResponse(
            _event_stream(agent, body.query, session_id),
            media_type="text/event-stream",
            headers={"X-Session-Id": session_id},
        )

    # ------------------------------------------------------------------ #
    # Sessions
    # ------------------------------------------------------------------ #
    @app.get("/api/sessions/stats")
    async def session_stats(agent: LegalAgent = Depends(get_agent)):
        """Get session statistics."""
        return agent.get_session_stats().to_dict()

    @app.delete("/api/sessions/{session_id}")
    async def clear_session(session_id: str, agent: LegalAgent = Depends(get_agent)):
        """Clear a session's history and context."""
        agent.clear_session(session_id)
        return {"status": "cleared", "session_id": session_id}

    @app.get("/api/sessions/{session_id}/context")
    async def get_context(session_id: str, agent: LegalAgent = Depends(get_agent)):
        """Get a session's context."""
        return {"session_id": session_id, "context": agent.get_session_context(session_id)}

    @app.patch("/api/sessions/{session_id}/context")
    async def update_context(
        session_id: str,
        context: dict[str, Any],
        agent: LegalAgent = Depends(get_agent),
    ):
        """Merge keys into a session's context."""
        agent.update_session_context(session_id, context)
        return {"session_id": session_id, "context": agent.get_session_context(session_id)}

    return app
