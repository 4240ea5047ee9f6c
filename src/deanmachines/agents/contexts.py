"""
Typed runtime contexts of the agents.

Every model reads the shared ``user-id``/``session-id`` keys plus the
preferences its agent renders into the instructions. Missing keys take the
defaults below, unknown keys are ignored.
"""

import typing as t

from pydantic import Field

from deanmachines.runtime_context import ContextModel


class SessionContext(ContextModel):
    user_id: str = Field(default="anonymous", alias="user-id")
    session_id: str = Field(default="default", alias="session-id")


class MasterAgentContext(SessionContext):
    project: str = ""
    debug: bool = False


class WeatherAgentContext(SessionContext):
    temperature_unit: t.Literal["celsius", "fahrenheit"] = Field(
        default="celsius", alias="temperature-unit"
    )
    default_location: str = Field(default="", alias="default-location")
    extended_forecast: bool = Field(default=False, alias="extended-forecast")
    include_alerts: bool = Field(default=False, alias="include-alerts")
    timezone: str = "UTC"


class CodeAgentContext(SessionContext):
    language: str = "typescript"
    framework: str = "react"
    quality_level: t.Literal["strict", "standard", "relaxed"] = Field(
        default="standard", alias="quality-level"
    )
    optimize_performance: bool = Field(default=False, alias="optimize-performance")
    security_scan: bool = Field(default=False, alias="security-scan")
    repo_context: str = Field(default="", alias="repo-context")


class ResearchAgentContext(SessionContext):
    research_depth: t.Literal["quick", "standard", "deep"] = Field(
        default="standard", alias="research-depth"
    )
    source_preference: str = Field(default="any", alias="source-preference")
    citation_style: t.Literal["inline", "footnotes", "none"] = Field(
        default="inline", alias="citation-style"
    )


class DataAgentContext(SessionContext):
    data_format: t.Literal["json", "csv", "xml", "parquet", "auto"] = Field(
        default="auto", alias="data-format"
    )
    analysis_type: t.Literal["descriptive", "predictive", "prescriptive", "diagnostic"] = Field(
        default="descriptive", alias="analysis-type"
    )
    viz_type: t.Literal["charts", "tables", "graphs", "mixed"] = Field(
        default="charts", alias="viz-type"
    )
    quality_threshold: float = Field(default=0.8, ge=0, le=1, alias="quality-threshold")
    include_stats: bool = Field(default=True, alias="include-stats")
    privacy_level: t.Literal["public", "internal", "confidential", "restricted"] = Field(
        default="internal", alias="privacy-level"
    )


class GitAgentContext(SessionContext):
    repo_path: str = Field(default="", alias="repo-path")
    branching_strategy: t.Literal["gitflow", "github-flow", "gitlab-flow", "custom"] = Field(
        default="github-flow", alias="branching-strategy"
    )
    default_branch: str = Field(default="main", alias="default-branch")
    commit_format: t.Literal["conventional", "standard", "custom"] = Field(
        default="conventional", alias="commit-format"
    )
    use_hooks: bool = Field(default=False, alias="use-hooks")
    hosting_service: t.Literal["github", "gitlab", "bitbucket", "other"] = Field(
        default="github", alias="hosting-service"
    )


class AnalyzerAgentContext(SessionContext):
    analysis_type: str = Field(default="exploratory", alias="analysis-type")
    data_depth: str = Field(default="detailed", alias="data-depth")
    speed_accuracy: str = Field(default="balanced", alias="speed-accuracy")
    domain_context: str = Field(default="general", alias="domain-context")


class StrategizerAgentContext(SessionContext):
    planning_horizon: str = Field(default="medium-term", alias="planning-horizon")
    business_context: str = Field(default="general", alias="business-context")
    strategy_framework: str = Field(default="okr", alias="strategy-framework")
    risk_tolerance: str = Field(default="moderate", alias="risk-tolerance")


class SupervisorAgentContext(SessionContext):
    coordination_strategy: str = Field(default="hierarchical", alias="coordination-strategy")
    qa_level: str = Field(default="standard", alias="qa-level")
    max_delegation_depth: int = Field(default=5, alias="max-delegation-depth")


class DebugAgentContext(SessionContext):
    debug_level: str = Field(default="standard", alias="debug-level")
    environment: str = "development"
    include_stack: bool = Field(default=True, alias="include-stack")


class ReactAgentContext(SessionContext):
    reasoning_depth: str = Field(default="moderate", alias="reasoning-depth")
    reflection_enabled: bool = Field(default=True, alias="reflection-enabled")
    domain_focus: str = Field(default="general", alias="domain-focus")
