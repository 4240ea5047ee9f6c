"""
Chainlit application entry point.

Usage:
    # Run the Dean Machines network (default)
    chainlit run src/deanmachines/webapp/app.py --port 9001

    # Run a single agent
    AGENT_NAME=weather chainlit run src/deanmachines/webapp/app.py --port 9001

Environment Variables:
    AGENT_NAME: Chat profile to run (default: network)
    RESOURCE_ID: Memory resource id for anonymous users (default: TEST)
    GOOGLE_GENERATIVE_AI_API_KEY: Required for LLM calls
    SUPABASE_URL / SUPABASE_ANON_KEY: Optional, enables the password login
    CHAINLIT_AUTH_SECRET: Required by Chainlit when the login is enabled
"""

import chainlit as cl
from loguru import logger

from deanmachines.auth import AuthenticationError, SupabaseAuth
from deanmachines.logging_config import configure_logging
from deanmachines.observability.tracing import configure_langsmith
from deanmachines.settings import is_supabase_enabled
from deanmachines.webapp.agent_configs.registry import get_agent_config, list_agents
from deanmachines.webapp.config import get_webapp_settings
from deanmachines.webapp.runner.agent_runner import AgentRunner

configure_logging()
configure_langsmith()
settings = get_webapp_settings()

try:
    agent_config = get_agent_config(settings.AGENT_NAME)
    logger.info("Loaded profile: {}", agent_config.name)
except ValueError as e:
    logger.error(str(e))
    logger.info("Available profiles: {}", list_agents())
    raise

runner = AgentRunner(agent_config, resource_id=settings.RESOURCE_ID)


if is_supabase_enabled():
    supabase_auth = SupabaseAuth()

    @cl.password_auth_callback
    def auth_callback(username: str, password: str) -> cl.User | None:
        try:
            session = supabase_auth.sign_in(username, password)
        except AuthenticationError:
            return None
        return cl.User(
            identifier=session.user_id,
            metadata={"email": session.email, "provider": "supabase"},
        )


@cl.on_chat_start
async def on_chat_start():
    await runner.on_chat_start()


@cl.on_message
async def on_message(message: cl.Message):
    await runner.on_message(message)


@cl.on_settings_update
async def on_settings_update(new_settings: dict):
    await runner.on_settings_update(new_settings)


if settings.is_development:
    logger.info("Running in DEVELOPMENT mode | profile={}", agent_config.name)
