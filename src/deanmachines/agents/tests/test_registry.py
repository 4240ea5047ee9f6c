"""Tests for the agent registry and definitions."""

import dataclasses

import pytest

from deanmachines.agents.agent import Agent
from deanmachines.agents.registry import (
    AGENT_CATEGORIES,
    AGENT_METADATA,
    AGENT_REGISTRY,
    AgentNotFoundError,
    create_agent,
    get_agent,
    get_agent_metadata,
    get_agents_by_category,
    get_all_agent_names,
    has_agent,
)

EXPECTED_AGENTS = {
    "master", "strategizer", "analyzer", "evolve", "supervisor",
    "browser", "code", "data", "debug", "design", "docker", "documentation",
    "git", "graph", "manager", "marketing", "processing", "research",
    "special", "sysadmin", "utility", "weather", "react", "langgraph",
}


def test_all_agents_registered():
    assert set(get_all_agent_names()) == EXPECTED_AGENTS
    assert len(AGENT_REGISTRY) == 24


def test_get_agent():
    definition = get_agent("weather")
    assert definition.name == "Weather Agent"
    assert "get-weather" in definition.tools


def test_unknown_agent():
    with pytest.raises(AgentNotFoundError) as exc_info:
        get_agent("nope")
    assert isinstance(exc_info.value, KeyError)
    message = str(exc_info.value)
    assert "Agent 'nope' not found" in message
    assert "weather" in message


def test_has_agent():
    assert has_agent("code")
    assert not has_agent("Code")


def test_categories_reference_registered_agents():
    for keys in AGENT_CATEGORIES.values():
        assert set(keys) <= EXPECTED_AGENTS
    assert [d.key for d in get_agents_by_category("creative")] == ["design", "documentation"]
    # supervisor is listed in two categories
    assert "supervisor" in AGENT_CATEGORIES["core"]
    assert "supervisor" in AGENT_CATEGORIES["management"]


def test_unknown_category():
    with pytest.raises(KeyError, match="Unknown category"):
        get_agents_by_category("finance")


def test_metadata():
    assert set(AGENT_METADATA) == EXPECTED_AGENTS
    metadata = get_agent_metadata("git")
    assert metadata.description == "Version control and Git workflow expert"
    assert "git" in metadata.tags
    with pytest.raises(AgentNotFoundError):
        get_agent_metadata("nope")


def test_definitions_are_immutable():
    definition = get_agent("master")
    with pytest.raises(dataclasses.FrozenInstanceError):
        definition.name = "Other"  # type: ignore[misc]
    with pytest.raises(TypeError):
        definition.tools["extra"] = lambda _: None  # type: ignore[index]
    with pytest.raises(TypeError):
        AGENT_REGISTRY["new"] = definition  # type: ignore[index]


def test_create_agent(scripted_llm_client):
    agent = create_agent("utility", llm_client=scripted_llm_client)
    assert isinstance(agent, Agent)
    tool_names = {tool.name for tool in agent.create_tools()}
    assert tool_names == {"CALCULATOR", "THREAD_INFO"}


def test_supervisor_tools(scripted_llm_client):
    agent = create_agent("supervisor", llm_client=scripted_llm_client)
    tool_names = {tool.name for tool in agent.create_tools()}
    assert tool_names == {"DELEGATE_TASK", "LIST_AVAILABLE_AGENTS"}


def test_git_and_research_tools(scripted_llm_client):
    git = create_agent("git", llm_client=scripted_llm_client)
    assert {tool.name for tool in git.create_tools()} == {"GIT_OPERATIONS"}

    research = create_agent("research", llm_client=scripted_llm_client)
    assert {tool.name for tool in research.create_tools()} == {
        "WEB_SEARCH", "HACKER_NEWS_SEARCH", "HACKER_NEWS_TOP_STORIES", "ARXIV_SEARCH",
    }


def test_reasoning_agents_use_react():
    assert get_agent("react").strategy == "react"
    assert get_agent("langgraph").strategy == "react"
    assert get_agent("master").strategy == "direct"
