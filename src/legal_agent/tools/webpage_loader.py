"""
Webpage loader tool: fetch a URL and extract its readable text.
"""

from dataclasses import dataclass
from typing import Any

import httpx
import structlog
from bs4 import BeautifulSoup

from ..errors import ToolError
from .base import BaseTool, ToolResult

logger = structlog.get_logger()

USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
MAX_CONTENT_CHARS = 10000


@dataclass(frozen=True)
class LoadedPage:
    """Extracted content of one webpage."""

    url: str
    title: str
    content: str

    def format(self) -> str:
        return f"**Title:** {self.title}\n**URL:** {self.url}\n\n**Content:**\n{self.content}"


def extract_page(url: str, html: str, max_chars: int = MAX_CONTENT_CHARS) -> LoadedPage:
    """Strip page chrome and return the main text content."""
    soup = BeautifulSoup(html, "html.parser")

    for element in soup(["script", "style", "nav", "footer", "header", "aside"]):
        element.decompose()

    title = soup.title.string.strip() if soup.title and soup.title.string else "No title"

    main_content = soup.find("main") or soup.find("article") or soup.find("body")
    if main_content:
        text = main_content.get_text(separator="\n", strip=True)
    else:
        text = soup.get_text(separator="\n", strip=True)

    text = "\n".join(line.strip() for line in text.split("\n") if line.strip())
    return LoadedPage(url=url, title=title, content=text[:max_chars])


class WebpageLoaderTool(BaseTool):
    """Tool for loading web pages."""

    def __init__(self, timeout: float = 30.0, max_chars: int = MAX_CONTENT_CHARS):
        self.timeout = timeout
        self.max_chars = max_chars

    @property
    def name(self) -> str:
        return "webpage_loader"

    @property
    def description(self) -> str:
        return """Load a webpage from a URL (for example one returned by web_search)
        and return its main text content."""

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The URL of the webpage",
                },
            },
            "required": ["url"],
        }

    async def fetch(self, url: str, client: httpx.AsyncClient | None = None) -> LoadedPage:
        """Fetch and extract a page.

        Raises:
            ToolError: if the URL is malformed, the request fails or it
                returns an error status.
        """
        try:
            if client is None:
                async with self.make_client() as own_client:
                    response = await own_client.get(url)
            else:
                response = await client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Webpage load failed", url=url, error=str(e))
            raise ToolError(self.name, f"{url}: {e}") from e

        return extract_page(url, response.text, self.max_chars)

    async def load_webpage(self, url: str) -> str:
        """Fetch a page and return it formatted as text."""
        page = await self.fetch(url)
        return page.format()

    async def execute(self, url: str) -> ToolResult:
        """Execute web page loading."""
        try:
            page = await self.fetch(url)
        except ToolError as e:
            return ToolResult(success=False, output="", error=str(e))

        return ToolResult(
            success=True,
            output=page.format(),
            data={"title": page.title, "url": page.url, "content": page.content},
        )

    def make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
