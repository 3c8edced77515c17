"""
Exception hierarchy for the legal agent.
"""


class LegalAgentError(Exception):
    """Base error for the legal agent."""


class InitializationError(LegalAgentError):
    """The model backend could not be initialized (unreachable or misconfigured)."""


class QueryProcessingError(LegalAgentError):
    """A query failed during history assembly, model invocation or streaming."""

    def __init__(self, message: str, session_id: str | None = None):
        super().__init__(f"Query processing failed: {message}")
        self.session_id = session_id


class ToolError(LegalAgentError):
    """A single tool call failed."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(f"{tool_name} failed: {message}")
        self.tool_name = tool_name
