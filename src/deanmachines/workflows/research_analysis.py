"""
Research analysis workflow.

Six steps, each driven by one agent:

1. initialize-research (processing agent): plan a strategy and starting sources
2. conduct-research (research agent): gather findings and key themes
3. analyze-research (analyzer agent): summary, findings and insights
4. generate-visualizations (documentation agent): skipped without include_visuals
5. generate-recommendations (master agent): recommendations and action items
6. finalize: assemble the ResearchOutput

Steps 1-3 are required. Steps 4 and 5 fall back to defaults when their agent
fails. Agent answers are parsed as JSON where a structure is asked for, and a
plain text answer is wrapped into the expected shape instead.

Each agent runs on its own memory thread ``<workflow run id>:<agent key>``.
"""

import json
import re
import time
import typing as t
from collections.abc import Mapping

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from deanmachines.agents.agent import Agent
from deanmachines.agents.registry import create_agent
from deanmachines.configs import get_workflows_template_module
from deanmachines.llm_core.llm_client import LLMClient, LLMError
from deanmachines.observability.monitoring import error_tracker
from deanmachines.utilities.utils import generate_id
from deanmachines.workflows.base import AgentRunError, Workflow, WorkflowError, WorkflowStep

_templates = get_workflows_template_module("research.jinja")

DEFAULT_STRATEGY = "comprehensive-sequential"
DEFAULT_CONFIDENCE = 0.85

ModelT = t.TypeVar("ModelT", bound=BaseModel)
Priority = t.Literal["low", "medium", "high", "critical"]

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)
_THEMES_RE = re.compile(r"^\s*key themes\s*:\s*(.+)$", re.IGNORECASE | re.MULTILINE)


class ResearchOptions(BaseModel):
    depth: t.Literal["surface", "moderate", "deep", "comprehensive"] = "moderate"
    sources: list[str] = Field(default_factory=list)
    focus_areas: list[str] = Field(default_factory=list)
    format: t.Literal["report", "presentation", "dashboard", "summary"] = "report"
    timeframe: str | None = None
    include_visuals: bool = True
    generate_actions: bool = True
    audience: t.Literal["general", "technical", "executive", "academic"] = "general"


class ResearchInput(BaseModel):
    topic: str = Field(min_length=1, description="Research topic is required")
    options: ResearchOptions = Field(default_factory=ResearchOptions)


class Finding(BaseModel):
    category: str
    content: str
    sources: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.8, ge=0, le=1)
    relevance: float = Field(default=0.9, ge=0, le=1)


class Visualization(BaseModel):
    type: str
    title: str
    data: t.Any = None
    insights: str = ""


class Recommendation(BaseModel):
    priority: Priority = "medium"
    text: str
    rationale: str = ""
    steps: list[str] = Field(default_factory=list)
    impact: str = ""


class ActionItem(BaseModel):
    task: str
    priority: Priority = "medium"
    deadline: str | None = None


class ResearchPlan(BaseModel):
    strategy: str = DEFAULT_STRATEGY
    discovered_sources: list[str] = Field(default_factory=list)


class ResearchData(BaseModel):
    primary_research: str
    sources: list[str] = Field(default_factory=list)
    key_themes: list[str] = Field(default_factory=list)


class AnalysisResults(BaseModel):
    executive_summary: str
    detailed_findings: list[Finding] = Field(default_factory=list)
    insights: list[str] = Field(default_factory=list)


class VisualizationSet(BaseModel):
    visualizations: list[Visualization] = Field(default_factory=list)


class RecommendationSet(BaseModel):
    recommendations: list[Recommendation] = Field(default_factory=list)
    action_items: list[ActionItem] = Field(default_factory=list)


class ResearchState(BaseModel):
    workflow_id: str
    topic: str
    options: ResearchOptions
    started_at: float
    strategy: str = DEFAULT_STRATEGY
    discovered_sources: list[str] = Field(default_factory=list)
    research: ResearchData | None = None
    analysis: AnalysisResults | None = None
    visualizations: list[Visualization] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    action_items: list[ActionItem] | None = None


class ResearchMetadata(BaseModel):
    sources_count: int
    confidence: float = Field(ge=0, le=1)
    # seconds
    duration: float
    strategy: str
    insights: list[str] = Field(default_factory=list)


class ResearchOutput(BaseModel):
    workflow_id: str
    executive_summary: str
    detailed_findings: list[Finding] = Field(default_factory=list)
    visualizations: list[Visualization] | None = None
    recommendations: list[Recommendation] = Field(default_factory=list)
    action_items: list[ActionItem] | None = None
    metadata: ResearchMetadata
    status: t.Literal["success", "partial", "failed"]
    error: str | None = None


def parse_agent_json(text: str, model: type[ModelT]) -> ModelT | None:
    """Validate an agent answer as ``model``. None when it is not that JSON."""
    fenced = _FENCED_JSON_RE.search(text)
    payload = fenced.group(1) if fenced else text.strip()
    try:
        return model.model_validate_json(payload)
    except ValidationError:
        return None


def extract_key_themes(text: str) -> list[str]:
    match = _THEMES_RE.search(text)
    if not match:
        return ["comprehensive-research"]
    return [theme.strip() for theme in match.group(1).split(",") if theme.strip()]


def _fallback_recommendations(generate_actions: bool) -> RecommendationSet:
    return RecommendationSet(
        recommendations=[
            Recommendation(
                priority="high",
                text="Implement key findings from research",
                rationale="Based on comprehensive analysis",
                steps=["Review findings", "Plan implementation", "Execute"],
                impact="Significant positive impact expected",
            )
        ],
        action_items=(
            [ActionItem(task="Follow up on research findings", deadline="30 days")]
            if generate_actions
            else []
        ),
    )


class ResearchAnalysisWorkflow:
    """Multi-agent research pipeline.

    Agents are created from the registry on first use unless passed in
    ``agents`` (keyed by agent key).

    Example:
        workflow = ResearchAnalysisWorkflow()
        output = await workflow.run({"topic": "Small language models"})
    """

    id = "research-analysis-workflow"

    def __init__(
        self,
        agents: Mapping[str, Agent] | None = None,
        llm_client: LLMClient | None = None,
    ) -> None:
        self._agents = dict(agents or {})
        self.llm_client = llm_client
        self.workflow: Workflow[ResearchState] = Workflow(
            self.id,
            "Comprehensive research analysis workflow",
            [
                WorkflowStep(
                    "initialize-research",
                    "Initialize research workflow with strategy planning",
                    self.initialize,
                ),
                WorkflowStep(
                    "conduct-research", "Conduct research using the research agent", self.conduct
                ),
                WorkflowStep(
                    "analyze-research", "Analyze research data and generate insights", self.analyze
                ),
                WorkflowStep(
                    "generate-visualizations",
                    "Generate data visualizations and insights",
                    self.visualize,
                ),
                WorkflowStep(
                    "generate-recommendations",
                    "Generate recommendations and action items",
                    self.recommend,
                ),
            ],
        )

    def agent(self, key: str) -> Agent:
        if key not in self._agents:
            self._agents[key] = create_agent(key, llm_client=self.llm_client)
        return self._agents[key]

    async def ask(self, state: ResearchState, key: str, prompt: str) -> str:
        response = await self.agent(key).generate(
            prompt, thread_id=f"{state.workflow_id}:{key}"
        )
        if not response.success:
            raise AgentRunError(f"{key} agent did not complete: {response.text}")
        return response.text

    async def initialize(self, state: ResearchState) -> ResearchState:
        text = await self.ask(
            state, "processing", _templates.plan(topic=state.topic, options=state.options)
        )
        plan = parse_agent_json(text, ResearchPlan) or ResearchPlan(
            discovered_sources=state.options.sources
        )
        logger.info("[{}] Research strategy: {}", state.workflow_id, plan.strategy)
        return state.model_copy(
            update={
                "strategy": plan.strategy,
                "discovered_sources": plan.discovered_sources or state.options.sources,
            }
        )

    async def conduct(self, state: ResearchState) -> ResearchState:
        text = await self.ask(
            state,
            "research",
            _templates.research(
                topic=state.topic,
                depth=state.options.depth,
                focus_areas=state.options.focus_areas,
                sources=state.discovered_sources,
            ),
        )
        research = ResearchData(
            primary_research=text or "Research completed",
            sources=state.discovered_sources,
            key_themes=extract_key_themes(text),
        )
        return state.model_copy(update={"research": research})

    async def analyze(self, state: ResearchState) -> ResearchState:
        assert state.research is not None
        text = await self.ask(
            state,
            "analyzer",
            _templates.analyze(
                topic=state.topic,
                research=state.research.primary_research,
                themes=state.research.key_themes,
            ),
        )
        analysis = parse_agent_json(text, AnalysisResults) or AnalysisResults(
            executive_summary=text or "Analysis completed",
            detailed_findings=[
                Finding(
                    category="general",
                    content=text or "Research analysis findings",
                    sources=state.discovered_sources,
                )
            ],
            insights=["Key insights identified from research"],
        )
        return state.model_copy(update={"analysis": analysis})

    def _analysis_json(self, state: ResearchState) -> str:
        assert state.analysis is not None
        return json.dumps(state.analysis.model_dump(), indent=2)

    async def visualize(self, state: ResearchState) -> ResearchState:
        if not state.options.include_visuals:
            logger.info("[{}] Skipping visualizations", state.workflow_id)
            return state.model_copy(update={"visualizations": []})

        try:
            text = await self.ask(
                state,
                "documentation",
                _templates.visualize(topic=state.topic, analysis=self._analysis_json(state)),
            )
        except (AgentRunError, LLMError) as e:
            logger.warning("[{}] Visualization failed, continuing | {}", state.workflow_id, e)
            return state.model_copy(update={"visualizations": []})

        parsed = parse_agent_json(text, VisualizationSet)
        if parsed is not None and parsed.visualizations:
            visualizations = parsed.visualizations
        else:
            visualizations = [
                Visualization(
                    type="dashboard" if parsed is not None else "summary",
                    title=f"Research Analysis: {state.topic}",
                    data=state.analysis.model_dump() if state.analysis else None,
                    insights="Research visualization generated",
                )
            ]
        logger.info(
            "[{}] Generated {} visualizations", state.workflow_id, len(visualizations)
        )
        return state.model_copy(update={"visualizations": visualizations})

    async def recommend(self, state: ResearchState) -> ResearchState:
        generate_actions = state.options.generate_actions
        try:
            text = await self.ask(
                state,
                "master",
                _templates.recommend(
                    topic=state.topic,
                    analysis=self._analysis_json(state),
                    audience=state.options.audience,
                    generate_actions=generate_actions,
                ),
            )
            recommendations = parse_agent_json(text, RecommendationSet)
        except (AgentRunError, LLMError) as e:
            logger.warning("[{}] Recommendations failed, using defaults | {}", state.workflow_id, e)
            recommendations = None

        if recommendations is None:
            recommendations = _fallback_recommendations(generate_actions)
        return state.model_copy(
            update={
                "recommendations": recommendations.recommendations,
                "action_items": recommendations.action_items if generate_actions else None,
            }
        )

    def finalize(self, state: ResearchState) -> ResearchOutput:
        assert state.analysis is not None
        duration = time.perf_counter() - state.started_at
        logger.success(
            "[{}] Workflow completed successfully in {:.2f}s", state.workflow_id, duration
        )
        return ResearchOutput(
            workflow_id=state.workflow_id,
            executive_summary=state.analysis.executive_summary or "Research analysis completed",
            detailed_findings=state.analysis.detailed_findings,
            visualizations=state.visualizations,
            recommendations=state.recommendations,
            action_items=state.action_items,
            metadata=ResearchMetadata(
                sources_count=len(state.discovered_sources),
                confidence=DEFAULT_CONFIDENCE,
                duration=duration,
                strategy=state.strategy,
                insights=state.analysis.insights,
            ),
            status="success",
        )

    async def run(self, input: ResearchInput | Mapping[str, t.Any] | str) -> ResearchOutput:
        """Run the workflow. A failed required step gives a ``failed`` output."""
        if isinstance(input, str):
            request = ResearchInput(topic=input)
        elif isinstance(input, ResearchInput):
            request = input
        else:
            request = ResearchInput.model_validate(input)

        state = ResearchState(
            workflow_id=generate_id("research"),
            topic=request.topic,
            options=request.options,
            started_at=time.perf_counter(),
        )
        logger.info("[{}] Starting research analysis for: {!r}", state.workflow_id, state.topic)
        try:
            state = await self.workflow.run(state, run_id=state.workflow_id)
        except WorkflowError as e:
            error_tracker.track(
                e, context={"workflow_id": state.workflow_id, "step": e.step_id}, operation=self.id
            )
            return ResearchOutput(
                workflow_id=state.workflow_id,
                executive_summary="Research completed with errors",
                metadata=ResearchMetadata(
                    sources_count=0,
                    confidence=0.5,
                    duration=time.perf_counter() - state.started_at,
                    strategy=state.strategy,
                ),
                status="failed",
                error=str(e),
            )
        return self.finalize(state)
