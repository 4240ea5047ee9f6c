import typing as t

from loguru import logger
from pydantic import BaseModel, Field
from tavily import TavilyClient  # type: ignore

from deanmachines.settings import get_settings
from deanmachines.tools_core.base_tool import BaseTool, ToolExecutionError


def default_tavily_client() -> TavilyClient:
    return TavilyClient(api_key=get_settings().tavily_api_key)


class SearchResult(BaseModel):
    title: str = Field(description="Title of the webpage.")
    url: str = Field(description="Url of the webpage.")
    content: str = Field(description="Relevant content of the webpage.")
    score: float | None = Field(default=None, description="Relevance to the query.")


class WebSearchInput(BaseModel):
    query: str = Field(min_length=1, description="Query to search the web.")


class WebSearchOutput(BaseModel):
    query: str = Field(description="The input query.")
    answer: str | None = Field(default=None, description="Short answer, if any.")
    results: list[SearchResult] = Field(description="The search results.")
    response_time: float | None = None


class TavilySearchTool(BaseTool[WebSearchInput, WebSearchOutput]):
    _name = "web-search"
    description = "Search the web. Returns the most related web pages and their content."
    _input = WebSearchInput
    _output = WebSearchOutput

    def __init__(
        self,
        max_results: int = 5,
        search_depth: t.Literal["basic", "advanced"] = "basic",
        client: TavilyClient | None = None,
    ) -> None:
        self.max_results = max_results
        self.search_depth = search_depth
        self._client = client

    @property
    def client(self) -> TavilyClient:
        # created on first search so agents can be built without an API key
        if self._client is None:
            self._client = default_tavily_client()
        return self._client

    def invoke(self, input: WebSearchInput) -> WebSearchOutput:
        logger.info("Tavily search | query={}", input.query)
        try:
            response: dict[str, t.Any] = self.client.search(  # type: ignore
                input.query,
                max_results=self.max_results,
                search_depth=self.search_depth,
            )
        except Exception as e:  # the tavily client raises several unrelated types
            logger.error("Tavily search failed | query={} | error={}", input.query, e)
            raise ToolExecutionError(f"Tavily search failed: {e}") from e

        output = WebSearchOutput(
            query=response.get("query", input.query),
            answer=response.get("answer"),
            results=[SearchResult(**r) for r in response.get("results", [])],
            response_time=response.get("response_time"),
        )
        logger.debug("Tavily search completed | results={}", len(output.results))
        return output

    example_inputs = (WebSearchInput(query="latest Python release"),)
    example_outputs = (
        WebSearchOutput(
            query="latest Python release",
            results=[
                SearchResult(
                    title="Python Releases",
                    url="https://www.python.org/downloads/",
                    content="Latest Python releases.",
                    score=0.9,
                )
            ],
        ),
    )
