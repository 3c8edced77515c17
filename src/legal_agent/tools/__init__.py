"""
Tools module for agent capabilities.
"""

from .base import BaseTool, ToolResult
from .registry import ToolRegistry, create_tool_registry
from .web_search import SearchHit, WebSearchTool
from .webpage_loader import LoadedPage, WebpageLoaderTool
from .deep_search import DeepSearchTool

__all__ = [
    "BaseTool",
    "ToolResult",
    "ToolRegistry",
    "create_tool_registry",
    "SearchHit",
    "WebSearchTool",
    "LoadedPage",
    "WebpageLoaderTool",
    "DeepSearchTool",
]
