"""Instructions rendered from the runtime context."""

import pytest

from deanmachines.agents.registry import AGENT_REGISTRY, get_agent


def test_every_agent_renders_with_empty_context():
    for definition in AGENT_REGISTRY.values():
        text = definition.render_instructions({})
        assert text.strip(), definition.key


def test_weather_instructions():
    text = get_agent("weather").render_instructions(
        {"user-id": "u-1", "temperature-unit": "fahrenheit", "default-location": "Oslo"}
    )
    assert "- User: u-1" in text
    assert "- Temperature Unit: fahrenheit" in text
    assert "Use Oslo when the user names no location" in text
    assert "Always ask for a location" not in text


def test_weather_asks_for_location_without_default():
    text = get_agent("weather").render_instructions({})
    assert "Always ask for a location if none is provided" in text


def test_code_instruction_defaults():
    text = get_agent("code").render_instructions({})
    assert "- Language: typescript" in text
    assert "- Framework: react" in text
    assert "- Quality Level: standard" in text
    assert "- Security Scanning: DISABLED" in text
    assert "Repository Context" not in text


def test_code_instructions_with_flags():
    text = get_agent("code").render_instructions(
        {"language": "python", "security-scan": True, "repo-context": "monorepo"}
    )
    assert "- Language: python" in text
    assert "Flag security concerns explicitly" in text
    assert "- Repository Context: monorepo" in text


def test_invalid_context_value():
    with pytest.raises(ValueError, match="CodeAgentContext"):
        get_agent("code").render_instructions({"quality-level": "extreme"})


def test_data_instructions():
    text = get_agent("data").render_instructions(
        {"quality-threshold": 0.95, "include-stats": False}
    )
    assert "minimum threshold: 0.95" in text
    assert "confidence intervals" not in text


def test_static_instructions_are_strings():
    assert isinstance(get_agent("docker").instructions, str)
    assert "containerization" in get_agent("docker").instructions
