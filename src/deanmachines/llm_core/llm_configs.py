"""
Providers the agents can run on, all reached through the OpenAI-compatible API.

| Provider | json_schema | strict | tools | parallel |
|----------|-------------|--------|-------|----------|
| GOOGLE   | Yes         | No     | Yes   | Yes      |
| OPENAI   | Yes         | Yes    | Yes   | Yes      |
| OLLAMA   | No          | No     | Yes   | No       |

Without json_schema support, structured output falls back to json_object with
the schema in the prompt.
"""

from dataclasses import dataclass, field
from enum import Enum


class GeminiModel(str, Enum):
    FLASH = "gemini-2.0-flash"
    FLASH_LITE = "gemini-2.0-flash-lite"
    FLASH_2_5 = "gemini-2.5-flash-preview-05-20"
    FLASH_LITE_2_5 = "gemini-2.5-flash-lite-preview-06-17"
    PRO_2_5 = "gemini-2.5-pro-preview-05-06"


@dataclass(frozen=True)
class Capabilities:
    json_schema: bool = True
    strict_mode: bool = False
    tool_calling: bool = True
    parallel_tool_calls: bool = True


@dataclass(frozen=True)
class ProviderConfig:
    """Endpoint and model defaults. API keys live in Settings (see get_api_key)."""

    base_url: str
    default_model: str
    capabilities: Capabilities = field(default_factory=Capabilities)
    models: tuple[str, ...] = ()


class Provider(Enum):
    GOOGLE = ProviderConfig(
        base_url="https://generativelanguage.googleapis.com/v1beta/openai/",
        default_model=GeminiModel.FLASH.value,
        models=tuple(model.value for model in GeminiModel),
    )
    OPENAI = ProviderConfig(
        base_url="https://api.openai.com/v1",
        default_model="gpt-4o-mini",
        capabilities=Capabilities(strict_mode=True),
        models=("gpt-4o-mini", "gpt-4o"),
    )
    OLLAMA = ProviderConfig(
        base_url="http://localhost:11434/v1",
        default_model="llama3.2",
        capabilities=Capabilities(json_schema=False, parallel_tool_calls=False),
    )

    @property
    def base_url(self) -> str:
        return self.value.base_url

    @property
    def default_model(self) -> str:
        return self.value.default_model

    @property
    def supports_json_schema(self) -> bool:
        return self.value.capabilities.json_schema

    @property
    def supports_strict_mode(self) -> bool:
        return self.value.capabilities.strict_mode

    @property
    def supports_tool_calling(self) -> bool:
        return self.value.capabilities.tool_calling

    @property
    def supports_parallel_tool_calls(self) -> bool:
        return self.value.capabilities.parallel_tool_calls

    def knows_model(self, model: str) -> bool:
        """Whether ``model`` is listed for this provider. Ollama lists none."""
        return model in self.value.models
