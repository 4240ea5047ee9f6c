import copy
import os

import pytest

from deanmachines.settings import Settings

API_KEY_VARS = [
    "google_generative_ai_api_key",
    "openai_api_key",
    "tavily_api_key",
    "langsmith_api_key",
    "langsmith_tracing",
    "langfuse_public_key",
    "langfuse_secret_key",
    "supabase_url",
    "supabase_anon_key",
    "supabase_service_role_key",
]


@pytest.fixture(scope="session", autouse=True)
def clear_api_keys():
    """Clear API keys to prevent accidental use during testing."""
    saved = {}
    for name in API_KEY_VARS:
        for key in (name, name.upper()):
            value = os.environ.pop(key, None)
            if value is not None:
                saved[key] = value
    yield
    os.environ.update(saved)


@pytest.fixture(scope="session", autouse=True)
def disable_env_file():
    """Prevent .env file from being loaded during tests."""
    original = copy.copy(Settings.model_config)
    Settings.model_config["env_file"] = None
    yield
    Settings.model_config = original


@pytest.fixture(autouse=True)
def reset_settings():
    """Each test starts from a freshly loaded Settings instance."""
    import deanmachines.settings as settings_module

    original = settings_module._settings
    settings_module._settings = None
    yield
    settings_module._settings = original
