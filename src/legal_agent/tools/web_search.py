"""
Web search tool using Tavily or DuckDuckGo.
"""

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx
import structlog

from ..errors import ToolError
from .base import BaseTool, ToolResult

logger = structlog.get_logger()

TAVILY_SEARCH_URL = "https://api.tavily.com/search"


@dataclass(frozen=True)
class SearchHit:
    """A single search result."""

    title: str
    url: str
    snippet: str = ""

    def format(self) -> str:
        return f"**{self.title}**\nURL: {self.url}\n{self.snippet[:500]}\n"


class WebSearchTool(BaseTool):
    """Tool for searching the web."""

    def __init__(self, tavily_api_key: str = "", max_results: int = 5):
        self.tavily_api_key = tavily_api_key
        self.max_results = max_results

    @property
    def name(self) -> str:
        return "web_search"

    @property
    def description(self) -> str:
        return """Search the web for information. Use this to find statutes, case law,
        government guidance or news that may not be in your training data.
        Returns relevant search results with titles, URLs, and snippets."""

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query or keywords",
                },
                "max_results": {
                    "type": "integer",
                    "description": "Maximum number of results to return (default: 5)",
                    "default": 5,
                },
            },
            "required": ["query"],
        }

    async def search_results(self, query: str, max_results: int | None = None) -> list[SearchHit]:
        """Run a search and return structured hits.

        Raises:
            ToolError: if the search backend call fails.
        """
        max_results = max_results or self.max_results
        try:
            if self.tavily_api_key:
                return await self._tavily_search(query, max_results)
            return await self._duckduckgo_search(query, max_results)
        except ToolError:
            raise
        except Exception as e:
            logger.error("Web search error", query=query[:100], error=str(e))
            raise ToolError(self.name, str(e)) from e

    async def search(self, query: str, max_results: int | None = None) -> str:
        """Run a search and return the results as text."""
        hits = await self.search_results(query, max_results)
        if not hits:
            return "No results found."
        return "\n---\n".join(hit.format() for hit in hits)

    async def execute(self, query: str, max_results: int = 5) -> ToolResult:
        """Execute web search."""
        try:
            hits = await self.search_results(query, max_results)
        except ToolError as e:
            return ToolResult(success=False, output="", error=str(e))

        output = "\n---\n".join(hit.format() for hit in hits) if hits else "No results found."
        return ToolResult(success=True, output=output, data=hits)

    async def _tavily_search(self, query: str, max_results: int) -> list[SearchHit]:
        """Search using Tavily API."""
        async with httpx.AsyncClient() as client:
            response = await client.post(
                TAVILY_SEARCH_URL,
                json={
                    "api_key": self.tavily_api_key,
                    "query": query,
                    "max_results": max_results,
                },
                timeout=30.0,
            )
            response.raise_for_status()
            data = response.json()

        return [
            SearchHit(
                title=result.get("title", ""),
                url=result["url"],
                snippet=result.get("content", ""),
            )
            for result in data.get("results", [])[:max_results]
            if result.get("url")
        ]

    async def _duckduckgo_search(self, query: str, max_results: int) -> list[SearchHit]:
        """Search using DuckDuckGo."""
        from duckduckgo_search import DDGS

        def _run() -> list[dict[str, Any]]:
            with DDGS() as ddgs:
                return list(ddgs.text(query, max_results=max_results))

        results = await asyncio.to_thread(_run)
        return [
            SearchHit(title=r.get("title", ""), url=r["href"], snippet=r.get("body", ""))
            for r in results
            if r.get("href")
        ]
