"""
Configuration management for the Legal Agent.

Uses pydantic-settings for environment variable parsing and validation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Provider = Literal["openai", "anthropic", "ollama", "openrouter"]

DEFAULT_MODELS: dict[str, str] = {
    "openai": "gpt-4o",
    "anthropic": "claude-sonnet-4-20250514",
    "ollama": "gpt-oss:20b",
    "openrouter": "openai/gpt-oss-20b",
}

DEFAULT_BASE_URLS: dict[str, str | None] = {
    "openai": None,
    "anthropic": None,
    "ollama": "http://localhost:11434/v1",
    "openrouter": "https://openrouter.ai/api/v1",
}


class LLMConfig(BaseSettings):
    """Configuration for a single LLM provider."""

    model_config = SettingsConfigDict(extra="ignore")

    provider: Provider = "ollama"
    model: str = DEFAULT_MODELS["ollama"]
    api_key: str = ""
    base_url: str | None = None
    max_tokens: int = 8192
    temperature: float = 0.7


class ModelConfig(BaseModel):
    """Description of the model a LegalAgent talks to."""

    name: str
    display_name: str = ""
    provider: Provider = "ollama"
    base_url: str | None = None
    api_key: str | None = None
    max_tokens: int = 8192
    temperature: float = 0.7
    description: str = ""
    is_enabled: bool = True

    @classmethod
    def from_settings(cls, settings: "Settings") -> "ModelConfig":
        """Build the default model configuration from settings."""
        llm_config = settings.get_llm_config()
        return cls(
            name=llm_config.model,
            display_name=f"{llm_config.provider.upper()} - {llm_config.model}",
            provider=llm_config.provider,
            base_url=llm_config.base_url,
            api_key=llm_config.api_key or None,
            max_tokens=llm_config.max_tokens,
            temperature=llm_config.temperature,
            description="Default model configuration",
        )

    def to_llm_config(self) -> LLMConfig:
        """Convert to the provider-level configuration used by create_llm."""
        return LLMConfig(
            provider=self.provider,
            model=self.name,
            api_key=self.api_key or "",
            base_url=self.base_url,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # Application
    app_name: str = "Legal-Agent"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # LLM Providers (API Keys)
    openai_api_key: str = Field(default="", description="OpenAI API key")
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    openrouter_api_key: str = Field(default="", description="OpenRouter API key")
    ollama_api_key: str = Field(default="ollama", description="Placeholder key for Ollama's OpenAI endpoint")
    ollama_base_url: str = Field(default="http://localhost:11434/v1", description="Ollama OpenAI-compatible URL")

    # Default model settings
    default_provider: Provider = "ollama"
    default_model: str = ""
    llm_base_url: str = Field(default="", description="Override the provider's base URL")
    max_tokens: int = 8192
    temperature: float = 0.7

    # Tools
    tavily_api_key: str = Field(default="", description="Tavily API key for web search")
    enable_tools: bool = Field(default=False, description="Let the model call retrieval tools")
    enable_web_search: bool = True
    enable_browser: bool = True
    enable_deep_search: bool = True
    deep_search_max_results: int = Field(default=3, ge=1, description="Pages fetched per deep search")
    max_tool_iterations: int = Field(default=5, ge=1)

    # Session memory
    max_context_messages: int = Field(default=10, ge=1, description="Max stored turns sent to the model")

    @field_validator("default_model", "llm_base_url", mode="before")
    @classmethod
    def strip_strings(cls, v: str) -> str:
        return v.strip() if v else ""

    def get_llm_config(self, provider: str | None = None) -> LLMConfig:
        """Get LLM configuration for a provider."""
        provider = provider or self.default_provider

        api_key_map = {
            "openai": self.openai_api_key,
            "anthropic": self.anthropic_api_key,
            "ollama": self.ollama_api_key,
            "openrouter": self.openrouter_api_key,
        }

        base_url_map = dict(DEFAULT_BASE_URLS)
        base_url_map["ollama"] = self.ollama_base_url

        model = DEFAULT_MODELS.get(provider, "")
        base_url = base_url_map.get(provider)
        if provider == self.default_provider:
            model = self.default_model or model
            base_url = self.llm_base_url or base_url

        return LLMConfig(
            provider=provider,  # type: ignore
            model=model,
            api_key=api_key_map.get(provider, ""),
            base_url=base_url,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
