"""
LLM module for multi-provider AI model support.

Providers:
- OpenAI GPT (native SDK)
- Anthropic Claude (native SDK)
- Ollama (via OpenAI-compatible endpoint)
- OpenRouter (via OpenAI-compatible endpoint)
"""

from .base import BaseLLM, LLMMessage, LLMResponse, StreamChunk, ToolCall, ToolDefinition
from .anthropic import AnthropicLLM
from .openai import OpenAILLM
from .factory import create_llm

__all__ = [
    "BaseLLM",
    "LLMMessage",
    "LLMResponse",
    "StreamChunk",
    "ToolCall",
    "ToolDefinition",
    "AnthropicLLM",
    "OpenAILLM",
    "create_llm",
]
