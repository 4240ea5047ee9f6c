# noqa: E402

from __future__ import annotations

import typing as t
from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict  # noqa: E402

# Editing the .env file during development should win over variables that the
# dev container exported when it was created.
# .parents[2] goes: settings.py -> deanmachines/ -> src/ -> project_root/
_DOT_ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
loaded = load_dotenv(_DOT_ENV_PATH, override=True)


if t.TYPE_CHECKING:
    from deanmachines.llm_core.llm_configs import Provider


class Settings(BaseSettings):
    """Centralized settings for the Dean Machines agents.

    All API keys and service configuration should be accessed through get_settings().
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # LLM providers
    google_generative_ai_api_key: str = ""
    openai_api_key: str = ""
    default_model: str = "gemini-2.0-flash"

    # Logging
    log_level: str = "INFO"

    # LangSmith
    langsmith_tracing: bool = False
    langsmith_api_key: str = ""
    langsmith_endpoint: str = "https://api.smith.langchain.com"
    langsmith_project: str = "deanmachines"

    # Langfuse
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_host: str = "https://cloud.langfuse.com"
    langfuse_tracing: bool = True

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""

    # Services
    tavily_api_key: str = ""
    database_url: str = ""
    stock_api_url: str = "https://mastra-stock-data.vercel.app/api/stock-data"
    geocoding_api_url: str = "https://geocoding-api.open-meteo.com/v1/search"
    forecast_api_url: str = "https://api.open-meteo.com/v1/forecast"
    hacker_news_search_url: str = "https://hn.algolia.com/api/v1"
    arxiv_api_url: str = "https://export.arxiv.org/api/query"
    http_timeout: float = 15.0

    # Development
    development_mode: bool = False


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the current settings instance.

    Initializes settings from environment variables if not already configured.
    """
    if _settings is None:
        configure_settings()
    return t.cast(Settings, _settings)


def configure_settings(**kwargs: t.Any) -> None:
    """Configure settings with optional overrides.

    Args:
        **kwargs: Optional setting overrides (e.g., tavily_api_key="tvly-...")
    """
    global _settings
    _settings = Settings(**kwargs)  # pyright: ignore[reportCallIssue, reportArgumentType]


def get_api_key(provider: Provider) -> str:
    """Get the API key for a given provider.

    Returns:
        The API key string, or empty string if not configured.

    Example:
        >>> from deanmachines.llm_core.llm_configs import Provider
        >>> api_key = get_api_key(Provider.GOOGLE)
    """
    from deanmachines.llm_core.llm_configs import Provider

    settings = get_settings()

    provider_key_map: dict[Provider, str] = {
        Provider.GOOGLE: settings.google_generative_ai_api_key,
        Provider.OPENAI: settings.openai_api_key,
        Provider.OLLAMA: "ollama",  # Ollama doesn't need a real API key
    }
    return provider_key_map.get(provider, "")


def get_endpoint(provider: Provider) -> str:
    """Get the base_url for a given provider."""
    return provider.base_url


def is_langsmith_enabled() -> bool:
    settings = get_settings()
    return settings.langsmith_tracing and bool(settings.langsmith_api_key)


def is_langfuse_enabled() -> bool:
    settings = get_settings()
    return (
        settings.langfuse_tracing
        and bool(settings.langfuse_public_key)
        and bool(settings.langfuse_secret_key)
    )


def is_supabase_enabled() -> bool:
    settings = get_settings()
    return bool(settings.supabase_url) and bool(settings.supabase_anon_key)
