"""
Agent module - the orchestrator between the caller, the model and session memory.
"""

from .core import DEFAULT_SYSTEM_PROMPT, LegalAgent, generate_session_id

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "LegalAgent",
    "generate_session_id",
]
