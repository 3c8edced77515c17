"""
Tests for tools module.
"""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from legal_agent.errors import ToolError
from legal_agent.tools import web_search
from legal_agent.tools.base import ToolResult
from legal_agent.tools.deep_search import DeepSearchTool
from legal_agent.tools.registry import ToolRegistry, create_tool_registry
from legal_agent.tools.web_search import SearchHit, WebSearchTool
from legal_agent.tools.webpage_loader import LoadedPage, WebpageLoaderTool, extract_page

SAMPLE_HTML = """
<html>
  <head><title> Civil Code Article 709 </title><script>var x = 1;</script></head>
  <body>
    <nav>Home | About</nav>
    <main>
      <h1>Article 709</h1>
      <p>A person who has intentionally or negligently infringed any right of others
      shall be liable to compensate any damages resulting in consequence.</p>
    </main>
    <footer>Copyright</footer>
  </body>
</html>
"""


def _hits(count: int) -> list[SearchHit]:
    return [SearchHit(title=f"Result {i}", url=f"https://example.com/{i}") for i in range(count)]


def test_tool_result_success():
    """Test successful tool result."""
    result = ToolResult(success=True, output="Test output", data={"key": "value"})

    assert result.success is True
    assert result.output == "Test output"
    assert result.data == {"key": "value"}
    assert result.error is None


def test_web_search_tool_properties():
    """Test WebSearchTool properties."""
    tool = WebSearchTool()

    assert tool.name == "web_search"
    assert "search" in tool.description.lower()
    assert "query" in tool.parameters["properties"]
    assert "query" in tool.parameters["required"]


def test_webpage_loader_tool_properties():
    """Test WebpageLoaderTool properties."""
    tool = WebpageLoaderTool()

    assert tool.name == "webpage_loader"
    assert "webpage" in tool.description.lower()
    assert "url" in tool.parameters["required"]


def test_deep_search_tool_definition():
    """Test converting deep search to an LLM definition."""
    definition = DeepSearchTool().to_definition()

    assert definition["name"] == "deep_search"
    assert "query" in definition["parameters"]["required"]


def test_extract_page_strips_chrome():
    """Test that scripts, navigation and footers are removed."""
    page = extract_page("https://example.com/709", SAMPLE_HTML)

    assert page.title == "Civil Code Article 709"
    assert "Article 709" in page.content
    assert "negligently" in page.content
    assert "Home | About" not in page.content
    assert "Copyright" not in page.content
    assert "var x" not in page.content


def test_extract_page_truncates():
    """Test the content length cap."""
    page = extract_page("https://example.com", "<body>" + "x" * 500 + "</body>", max_chars=100)

    assert len(page.content) == 100


@pytest.mark.asyncio
async def test_webpage_loader_fetch():
    """Test loading a page through an injected client."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=SAMPLE_HTML)

    tool = WebpageLoaderTool()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        page = await tool.fetch("https://example.com/709", client=client)

    assert page.url == "https://example.com/709"
    assert "Article 709" in page.format()


@pytest.mark.asyncio
async def test_webpage_loader_http_error():
    """Test that error statuses raise ToolError."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="not found")

    tool = WebpageLoaderTool()
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ToolError, match="webpage_loader"):
            await tool.fetch("https://example.com/missing", client=client)


@pytest.mark.asyncio
async def test_webpage_loader_malformed_url():
    """Test that a malformed URL raises ToolError and execute reports failure."""
    tool = WebpageLoaderTool()

    with pytest.raises(ToolError, match="webpage_loader"):
        await tool.load_webpage("http://example.com:notaport/")

    result = await tool.execute(url="http://example.com:notaport/")
    assert result.success is False
    assert "notaport" in result.error


@pytest.mark.asyncio
async def test_webpage_loader_execute_reports_failure():
    """Test that execute converts failures into a ToolResult."""
    tool = WebpageLoaderTool()
    tool.fetch = AsyncMock(side_effect=ToolError("webpage_loader", "timeout"))

    result = await tool.execute(url="https://example.com")

    assert result.success is False
    assert "timeout" in result.error


@pytest.mark.asyncio
async def test_tavily_search_parses_results(monkeypatch: pytest.MonkeyPatch):
    """Test Tavily response parsing."""
    captured = {}

    def handler(request: httpx.Request) -> httpx.Response:
        captured["url"] = str(request.url)
        return httpx.Response(200, json={
            "results": [
                {"title": "Article 709", "url": "https://example.com/709", "content": "Torts"},
                {"title": "No URL", "content": "ignored"},
            ],
        })

    real_client = httpx.AsyncClient
    monkeypatch.setattr(
        web_search.httpx,
        "AsyncClient",
        lambda **kwargs: real_client(transport=httpx.MockTransport(handler), **kwargs),
    )

    tool = WebSearchTool(tavily_api_key="tvly-test")
    hits = await tool.search_results("tort law", max_results=3)
    text = await tool.search("tort law")

    assert captured["url"] == web_search.TAVILY_SEARCH_URL
    assert hits == [SearchHit(title="Article 709", url="https://example.com/709", snippet="Torts")]
    assert "https://example.com/709" in text


@pytest.mark.asyncio
async def test_web_search_failure_raises_tool_error():
    """Test that backend failures surface as ToolError."""
    tool = WebSearchTool()
    tool._duckduckgo_search = AsyncMock(side_effect=RuntimeError("rate limited"))

    with pytest.raises(ToolError, match="rate limited"):
        await tool.search("anything")

    result = await tool.execute(query="anything")
    assert result.success is False


@pytest.mark.asyncio
async def test_deep_search_partial_failures():
    """Test that deep search returns the pages that loaded when others fail."""
    search_tool = MagicMock()
    search_tool.search_results = AsyncMock(return_value=_hits(5))

    async def fetch(url: str, client=None) -> LoadedPage:
        if url.endswith(("/0", "/2", "/4")):
            raise ToolError("webpage_loader", f"{url}: connection reset")
        return LoadedPage(url=url, title=f"Page {url[-1]}", content=f"content of {url}")

    loader = WebpageLoaderTool()
    loader.fetch = fetch  # type: ignore[method-assign]

    tool = DeepSearchTool(search_tool=search_tool, loader=loader, max_results=5)
    output = await tool.deep_search("labour standards act")

    assert "content of https://example.com/1" in output
    assert "content of https://example.com/3" in output
    assert "https://example.com/0" not in output
    assert "https://example.com/2" not in output
    search_tool.search_results.assert_awaited_once_with("labour standards act", 5)


@pytest.mark.asyncio
async def test_deep_search_all_pages_fail():
    """Test that deep search fails only when every page failed."""
    search_tool = MagicMock()
    search_tool.search_results = AsyncMock(return_value=_hits(3))
    loader = WebpageLoaderTool()
    loader.fetch = AsyncMock(side_effect=ToolError("webpage_loader", "down"))

    tool = DeepSearchTool(search_tool=search_tool, loader=loader)

    with pytest.raises(ToolError, match="all 3 pages failed"):
        await tool.deep_search("query")

    result = await tool.execute(query="query")
    assert result.success is False


@pytest.mark.asyncio
async def test_deep_search_no_results():
    """Test deep search with an empty result set."""
    search_tool = MagicMock()
    search_tool.search_results = AsyncMock(return_value=[])

    tool = DeepSearchTool(search_tool=search_tool)

    assert await tool.deep_search("nothing matches") == "No results found."


@pytest.mark.asyncio
async def test_registry_execute_unknown_tool():
    """Test executing a tool that is not registered."""
    registry = ToolRegistry()

    result = await registry.execute("missing", {})

    assert result.success is False
    assert "not found" in result.error


def test_create_tool_registry_respects_flags(settings):
    """Test that disabled tools are not registered."""
    settings.enable_browser = False
    registry = create_tool_registry(settings)

    assert registry.list_tools() == ["web_search", "deep_search"]
    assert len(registry.get_definitions()) == 2
