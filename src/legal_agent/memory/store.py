"""
Per-session conversation state: the ordered turn history and the
auxiliary key/value context blob.
"""

import threading
from typing import Any, Iterable

from ..llm.base import LLMMessage


class MessageStore:
    """Append-only, ordered history of one session's turns."""

    def __init__(self) -> None:
        self._messages: list[LLMMessage] = []
        self._lock = threading.Lock()

    def append(self, message: LLMMessage) -> None:
        """Add a turn to the end of the history."""
        with self._lock:
            self._messages.append(message)

    def extend(self, messages: Iterable[LLMMessage]) -> None:
        """Add several turns with no other writer in between."""
        batch = list(messages)
        with self._lock:
            self._messages.extend(batch)

    def get_all(self) -> list[LLMMessage]:
        """Return a snapshot of the history in insertion order."""
        with self._lock:
            return list(self._messages)

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)


class SessionContextStore:
    """Arbitrary metadata per session, kept apart from the message history."""

    def __init__(self) -> None:
        self._contexts: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> dict[str, Any]:
        """Return a copy of the session's context, or an empty dict."""
        with self._lock:
            return dict(self._contexts.get(session_id, {}))

    def update(self, session_id: str, partial: dict[str, Any]) -> None:
        """Shallow-merge ``partial`` into the session's context."""
        with self._lock:
            self._contexts.setdefault(session_id, {}).update(partial)

    def clear(self, session_id: str) -> None:
        with self._lock:
            self._contexts.pop(session_id, None)
