"""Webapp settings, loaded from environment variables."""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class WebappSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    AGENT_NAME: str = Field(
        default="network",
        description="Chat profile to run (from the webapp registry)",
    )
    RESOURCE_ID: str = Field(
        default="TEST",
        description="Memory resource id used when the user is not signed in",
    )
    DATABASE_URL: str = Field(
        default="sqlite+aiosqlite:///./data/chat_history.db",
        description="SQLAlchemy database URL for chat history",
    )
    ENVIRONMENT: str = Field(
        default="local",
        description="Environment: local, staging, production",
    )
    CHAINLIT_AUTH_SECRET: str | None = Field(
        default=None,
        description="Secret for Chainlit auth, required by the password login",
    )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "local"


@lru_cache
def get_webapp_settings() -> WebappSettings:
    return WebappSettings()


def ensure_data_dir() -> Path:
    data_dir = Path(__file__).parent / "data"
    data_dir.mkdir(exist_ok=True)
    return data_dir
