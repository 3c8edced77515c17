"""
Session registry - the process-wide owner of all conversation state.

Sessions are created lazily the first time an identifier is referenced and
live until they are explicitly cleared. Nothing here survives a restart.

The registry is normally built once at startup and passed to the agent; the
``get_session_registry()`` accessor hands out the shared instance for callers
that do not inject one.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable

import structlog

from ..llm.base import LLMMessage
from .store import MessageStore, SessionContextStore

logger = structlog.get_logger()


@dataclass(frozen=True)
class SessionStats:
    """Point-in-time snapshot of the registry's contents."""

    session_count: int
    total_message_count: int
    sessions: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_count": self.session_count,
            "total_message_count": self.total_message_count,
            "sessions": dict(self.sessions),
        }


class SessionRegistry:
    """Maps session identifiers to their message and context stores."""

    _instance: ClassVar["SessionRegistry | None"] = None
    _instance_lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self) -> None:
        self._sessions: dict[str, MessageStore] = {}
        self._contexts = SessionContextStore()
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "SessionRegistry":
        """Return the process-wide registry, creating it on first call."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
                    logger.info("Session registry created")
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Drop the process-wide registry. Only meant for tests."""
        with cls._instance_lock:
            cls._instance = None

    def _get_or_create(self, session_id: str) -> MessageStore:
        with self._lock:
            store = self._sessions.get(session_id)
            if store is None:
                store = MessageStore()
                self._sessions[session_id] = store
                logger.debug("Session created", session_id=session_id)
            return store

    def has_session(self, session_id: str) -> bool:
        """Check for a session without creating it."""
        with self._lock:
            return session_id in self._sessions

    def get_messages(self, session_id: str) -> list[LLMMessage]:
        """Return the session's turns in insertion order."""
        return self._get_or_create(session_id).get_all()

    def add_message(self, session_id: str, message: LLMMessage) -> None:
        """Append one turn to the session."""
        self._get_or_create(session_id).append(message)

    def add_messages(self, session_id: str, messages: Iterable[LLMMessage]) -> None:
        """Append several turns to the session as one atomic commit."""
        self._get_or_create(session_id).extend(messages)

    def clear_session(self, session_id: str) -> None:
        """Remove all turns and context for a session. Clearing twice is a no-op."""
        with self._lock:
            store = self._sessions.pop(session_id, None)
        if store is not None:
            store.clear()
        self._contexts.clear(session_id)
        logger.info("Session cleared", session_id=session_id, existed=store is not None)

    def get_context(self, session_id: str) -> dict[str, Any]:
        return self._contexts.get(session_id)

    def update_context(self, session_id: str, partial: dict[str, Any]) -> None:
        self._contexts.update(session_id, partial)

    def get_session_stats(self) -> SessionStats:
        """Aggregate counts across sessions without touching any of them."""
        with self._lock:
            stores = list(self._sessions.items())

        breakdown = {session_id: len(store) for session_id, store in stores}
        return SessionStats(
            session_count=len(breakdown),
            total_message_count=sum(breakdown.values()),
            sessions=breakdown,
        )


def get_session_registry() -> SessionRegistry:
    """Get or create the global session registry."""
    return SessionRegistry.get_instance()


def reset_session_registry() -> None:
    """Forget the global session registry (tests only)."""
    SessionRegistry.reset_instance()
