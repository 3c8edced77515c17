"""
Context trimming: bound the stored history sent with each model request.
"""

from typing import Sequence

from ..llm.base import LLMMessage


def trim_messages(messages: Sequence[LLMMessage], max_count: int) -> list[LLMMessage]:
    """Keep system turns plus the most recent ``max_count`` turns.

    Histories at or under the limit are returned as-is. Longer ones become
    every system turn (in original order) followed by the last ``max_count``
    turns of the full history. The two parts are not deduplicated, so a
    system turn that is also recent appears twice.
    """
    if len(messages) <= max_count:
        return list(messages)

    system_messages = [msg for msg in messages if msg.role == "system"]
    recent_messages = list(messages[-max_count:]) if max_count > 0 else []

    return system_messages + recent_messages
