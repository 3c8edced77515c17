"""
Command-line interface for the Legal Agent.
"""

import argparse
import asyncio
import logging
import sys

import structlog
import uvicorn

from .config import Settings, get_settings
from .errors import InitializationError, QueryProcessingError

logger = structlog.get_logger()


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog to render through the stdlib logging module."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def main() -> None:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        prog="legal-agent",
        description="Legal-Agent - a legal assistant specialised in Japanese law",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API server")
    serve_parser.add_argument("--host", default=None, help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    chat_parser = subparsers.add_parser("chat", help="Start an interactive chat session")
    chat_parser.add_argument("--session", default=None, help="Session id to continue")

    ask_parser = subparsers.add_parser("ask", help="Ask a single question")
    ask_parser.add_argument("query", help="The question to ask")
    ask_parser.add_argument("--session", default=None, help="Session id to continue")

    config_parser = subparsers.add_parser("config", help="Show configuration")
    config_parser.add_argument("--check", action="store_true", help="Check configuration validity")

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    settings = get_settings()
    configure_logging("DEBUG" if settings.debug else settings.log_level)

    if args.command == "serve":
        run_server(args.host or settings.host, args.port or settings.port, args.reload)
    elif args.command == "chat":
        sys.exit(asyncio.run(run_chat(settings, args.session)))
    elif args.command == "ask":
        sys.exit(asyncio.run(run_ask(settings, args.query, args.session)))
    elif args.command == "config":
        sys.exit(show_config(settings, args.check))
    else:
        parser.print_help()


def run_server(host: str, port: int, reload: bool) -> None:
    """Run the FastAPI server."""
    logger.info("Starting Legal-Agent server", host=host, port=port)

    uvicorn.run(
        "legal_agent.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
        log_level="info",
    )


async def run_ask(settings: Settings, query: str, session_id: str | None) -> int:
    """Stream the answer to one question to stdout."""
    from .agent import LegalAgent

    agent = LegalAgent(settings=settings)
    try:
        async for chunk in agent.get_stream(query, session_id):
            if chunk.type == "delta":
                print(chunk.content, end="", flush=True)
    except (InitializationError, QueryProcessingError) as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    print()
    return 0


async def run_chat(settings: Settings, session_id: str | None) -> int:
    """Interactive chat loop over one session."""
    from .agent import LegalAgent

    agent = LegalAgent(settings=settings)
    try:
        await agent.initialize()
    except InitializationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    session_id = session_id or agent.generate_session_id()
    print(f"Model: {agent.get_model_config().display_name or agent.get_model_name()}")
    print(f"Session: {session_id}")
    print("Type /clear to reset the conversation, /stats for session stats, /quit to exit.\n")

    while True:
        try:
            query = (await asyncio.to_thread(input, "You> ")).strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return 0

        if not query:
            continue
        if query in ("/quit", "/exit"):
            return 0
        if query == "/clear":
            agent.clear_session(session_id)
            print("Conversation cleared.\n")
            continue
        if query == "/stats":
            print(agent.get_session_stats().to_dict(), "\n")
            continue

        print("Agent> ", end="", flush=True)
        try:
            async for chunk in agent.get_stream(query, session_id):
                if chunk.type == "delta":
                    print(chunk.content, end="", flush=True)
        except QueryProcessingError as e:
            print(f"\nError: {e}", file=sys.stderr)
        print("\n")


def show_config(settings: Settings, check: bool) -> int:
    """Show current configuration."""

    def mask(value: str) -> str:
        if not value:
            return "(not set)"
        return value[:4] + "..." + value[-4:] if len(value) > 10 else "****"

    llm_config = settings.get_llm_config()

    print("\n=== Legal-Agent Configuration ===\n")

    print("Server:")
    print(f"  Host: {settings.host}")
    print(f"  Port: {settings.port}")
    print(f"  Debug: {settings.debug}")

    print("\nLLM:")
    print(f"  Provider: {llm_config.provider}")
    print(f"  Model: {llm_config.model}")
    print(f"  Base URL: {llm_config.base_url or '(provider default)'}")
    print(f"  Max Tokens: {llm_config.max_tokens}")
    print(f"  Temperature: {llm_config.temperature}")
    print(f"  OpenAI Key: {mask(settings.openai_api_key)}")
    print(f"  Anthropic Key: {mask(settings.anthropic_api_key)}")
    print(f"  OpenRouter Key: {mask(settings.openrouter_api_key)}")

    print("\nTools:")
    print(f"  Enabled: {settings.enable_tools}")
    print(f"  Web Search: {settings.enable_web_search}")
    print(f"  Webpage Loader: {settings.enable_browser}")
    print(f"  Deep Search: {settings.enable_deep_search} (pages: {settings.deep_search_max_results})")
    print(f"  Tavily Key: {mask(settings.tavily_api_key)}")

    print("\nSession Memory:")
    print(f"  Max Context Messages: {settings.max_context_messages}")

    if not check:
        return 0

    print("\n=== Configuration Check ===\n")
    errors = []
    warnings = []

    if llm_config.provider in ("openai", "anthropic", "openrouter") and not llm_config.api_key:
        errors.append(f"An API key is required for provider '{llm_config.provider}'")

    if settings.enable_tools and not settings.tavily_api_key:
        warnings.append("TAVILY_API_KEY not set - web search falls back to DuckDuckGo")

    for e in errors:
        print(f"Error: {e}")
    for w in warnings:
        print(f"Warning: {w}")

    if errors:
        print("\nConfiguration has errors - fix them before starting")
        return 1

    print("\nConfiguration is valid" + (" (with warnings)" if warnings else ""))
    return 0


if __name__ == "__main__":
    main()
