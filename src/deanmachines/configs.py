"""Prompt template configuration for the deanmachines package."""

from pathlib import Path

import jinja2
from jinja2.sandbox import SandboxedEnvironment

PACKAGE_ROOT = Path(__file__).parent
AGENT_TOOL_PROMPTS_DIR = PACKAGE_ROOT / "agent_tool" / "prompts"
AGENTS_PROMPTS_DIR = PACKAGE_ROOT / "agents" / "prompts"
NETWORK_PROMPTS_DIR = PACKAGE_ROOT / "network" / "prompts"
EVALS_PROMPTS_DIR = PACKAGE_ROOT / "evals" / "prompts"
WORKFLOWS_PROMPTS_DIR = PACKAGE_ROOT / "workflows" / "prompts"


def _create_jinja_env(prompts_dir: Path) -> SandboxedEnvironment:
    """Create a sandboxed jinja environment for a prompts directory.

    StrictUndefined raises errors on undefined variables instead of silent empty strings.
    See: https://jinja.palletsprojects.com/en/3.1.x/sandbox/
    """
    return SandboxedEnvironment(
        loader=jinja2.FileSystemLoader(prompts_dir),
        undefined=jinja2.StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


agent_tool_jinja_env = _create_jinja_env(AGENT_TOOL_PROMPTS_DIR)
agents_jinja_env = _create_jinja_env(AGENTS_PROMPTS_DIR)
network_jinja_env = _create_jinja_env(NETWORK_PROMPTS_DIR)
evals_jinja_env = _create_jinja_env(EVALS_PROMPTS_DIR)
workflows_jinja_env = _create_jinja_env(WORKFLOWS_PROMPTS_DIR)


def get_agent_tool_template_module(name: str):
    """Load a template module (for macro access) from agent_tool prompts."""
    return agent_tool_jinja_env.get_template(name).module


def get_agents_template_module(name: str):
    """Load a template module (for macro access) from agent instruction prompts."""
    return agents_jinja_env.get_template(name).module


def get_network_template_module(name: str):
    """Load a template module (for macro access) from network routing prompts."""
    return network_jinja_env.get_template(name).module


def get_evals_template_module(name: str):
    """Load a template module (for macro access) from eval judge prompts."""
    return evals_jinja_env.get_template(name).module


def get_workflows_template_module(name: str):
    """Load a template module (for macro access) from workflow step prompts."""
    return workflows_jinja_env.get_template(name).module
