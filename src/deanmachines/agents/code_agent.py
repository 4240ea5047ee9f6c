"""
Structured contract of the code agent.

Callers that talk to the code agent programmatically validate their request
and the agent's answer with these models. Validation failures are logged and
re-raised unchanged.
"""

import typing as t

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from deanmachines.agents.contexts import CodeAgentContext

AnalysisType = t.Literal["review", "debug", "optimize", "generate", "refactor"]


class AgentConfigError(ValueError):
    """Raised when an agent configuration is invalid."""


class CodeAgentInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, description="The request for the code agent")
    context: str | None = None
    code_snippet: str | None = None
    language: str | None = None
    framework: str | None = None
    analysis_type: AnalysisType | None = None


class CodeAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    optimizations: list[str] = Field(default_factory=list)
    security_concerns: list[str] = Field(default_factory=list)


class CodeAgentMetadata(BaseModel):
    model_config = ConfigDict(extra="forbid")

    language: str | None = None
    framework: str | None = None
    quality_score: float | None = Field(default=None, ge=0, le=100)
    performance_score: float | None = Field(default=None, ge=0, le=100)


class CodeAgentOutput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    response: str
    code_analysis: CodeAnalysis | None = None
    generated_code: str | None = None
    metadata: CodeAgentMetadata | None = None


class CodeAgentConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    instructions: str
    runtime_context: CodeAgentContext
    model: str | None = None
    tools: list[str] = Field(default_factory=list)


def validate_code_agent_input(data: t.Any) -> CodeAgentInput:
    try:
        return CodeAgentInput.model_validate(data)
    except ValidationError as e:
        logger.error("Code agent input validation failed: {}", e)
        raise


def validate_code_agent_output(data: t.Any) -> CodeAgentOutput:
    try:
        return CodeAgentOutput.model_validate(data)
    except ValidationError as e:
        logger.error("Code agent output validation failed: {}", e)
        raise


def validate_code_agent_config(data: t.Any) -> CodeAgentConfig:
    """Validate a code agent configuration.

    Raises:
        AgentConfigError: Wrapping the pydantic error.
    """
    try:
        return CodeAgentConfig.model_validate(data)
    except ValidationError as e:
        logger.error("Code agent config validation failed: {}", e)
        raise AgentConfigError(f"Invalid code agent config: {e}") from e
