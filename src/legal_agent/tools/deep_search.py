"""
Deep search tool: search the web, then load the top result pages.

Page loads run concurrently and are allowed to fail independently; whatever
loaded is returned. Only a failed search, or a search whose every page
failed to load, is reported as an error.
"""

import asyncio
from typing import Any

import structlog

from ..errors import ToolError
from .base import BaseTool, ToolResult
from .web_search import SearchHit, WebSearchTool
from .webpage_loader import LoadedPage, WebpageLoaderTool

logger = structlog.get_logger()


class DeepSearchTool(BaseTool):
    """Search plus automatic page loading."""

    def __init__(
        self,
        search_tool: WebSearchTool | None = None,
        loader: WebpageLoaderTool | None = None,
        max_results: int = 3,
    ):
        self.search_tool = search_tool or WebSearchTool()
        self.loader = loader or WebpageLoaderTool()
        self.max_results = max_results

    @property
    def name(self) -> str:
        return "deep_search"

    @property
    def description(self) -> str:
        return """Search the web, automatically load the top result pages and return
        their content. Pages that fail to load are skipped; the successfully
        loaded documents are still returned."""

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query or keywords",
                },
            },
            "required": ["query"],
        }

    async def load_pages(self, hits: list[SearchHit]) -> list[LoadedPage]:
        """Load every hit concurrently and keep the pages that succeeded."""
        async with self.loader.make_client() as client:
            results = await asyncio.gather(
                *(self.loader.fetch(hit.url, client=client) for hit in hits),
                return_exceptions=True,
            )

        pages: list[LoadedPage] = []
        for hit, result in zip(hits, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Deep search page skipped", url=hit.url, error=str(result))
                continue
            pages.append(result)
        return pages

    async def deep_search(self, query: str) -> str:
        """Search and return the content of the pages that loaded.

        Raises:
            ToolError: if the search fails or no page could be loaded.
        """
        hits = await self.search_tool.search_results(query, self.max_results)
        if not hits:
            return "No results found."

        pages = await self.load_pages(hits)
        logger.info(
            "Deep search completed",
            query=query[:100],
            results=len(hits),
            loaded=len(pages),
        )

        if not pages:
            raise ToolError(self.name, f"all {len(hits)} pages failed to load")

        return "\n\n---\n\n".join(page.format() for page in pages)

    async def execute(self, query: str) -> ToolResult:
        """Execute deep search."""
        try:
            output = await self.deep_search(query)
        except ToolError as e:
            return ToolResult(success=False, output="", error=str(e))

        return ToolResult(success=True, output=output)
