"""
Session memory: per-session history, context blobs and trimming.
"""

from .registry import SessionRegistry, SessionStats, get_session_registry, reset_session_registry
from .store import MessageStore, SessionContextStore
from .trimming import trim_messages

__all__ = [
    "MessageStore",
    "SessionContextStore",
    "SessionRegistry",
    "SessionStats",
    "get_session_registry",
    "reset_session_registry",
    "trim_messages",
]
