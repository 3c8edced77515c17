"""
Tool registry for managing available tools.
"""

from typing import Any

import structlog

from ..config import Settings
from ..llm.base import ToolDefinition
from .base import BaseTool, ToolResult

logger = structlog.get_logger()


class ToolRegistry:
    """Registry for managing tools."""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool."""
        self._tools[tool.name] = tool
        logger.info("Tool registered", tool_name=tool.name)

    def get(self, name: str) -> BaseTool | None:
        """Get a tool by name."""
        return self._tools.get(name)

    def list_tools(self) -> list[str]:
        """List all registered tool names."""
        return list(self._tools.keys())

    def get_definitions(self) -> list[ToolDefinition]:
        """Get all tool definitions for LLM."""
        return [
            ToolDefinition(
                name=tool.name,
                description=tool.description,
                parameters=tool.parameters,
            )
            for tool in self._tools.values()
        ]

    async def execute(self, name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool by name."""
        tool = self.get(name)
        if tool is None:
            return ToolResult(
                success=False,
                output="",
                error=f"Tool '{name}' not found",
            )

        try:
            logger.info("Executing tool", tool_name=name, arguments=arguments)
            result = await tool.execute(**arguments)
            logger.info("Tool executed", tool_name=name, success=result.success)
            return result
        except Exception as e:
            logger.error("Tool execution error", tool_name=name, error=str(e))
            return ToolResult(
                success=False,
                output="",
                error=str(e),
            )


def create_tool_registry(settings: Settings) -> ToolRegistry:
    """Build a registry holding the retrieval tools enabled in settings."""
    from .deep_search import DeepSearchTool
    from .web_search import WebSearchTool
    from .webpage_loader import WebpageLoaderTool

    registry = ToolRegistry()
    search_tool = WebSearchTool(tavily_api_key=settings.tavily_api_key)
    loader = WebpageLoaderTool()

    if settings.enable_web_search:
        registry.register(search_tool)

    if settings.enable_browser:
        registry.register(loader)

    if settings.enable_deep_search:
        registry.register(DeepSearchTool(
            search_tool=search_tool,
            loader=loader,
            max_results=settings.deep_search_max_results,
        ))

    return registry
