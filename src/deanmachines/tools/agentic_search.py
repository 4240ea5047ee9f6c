"""
Search tools for research agents.

- HackerNewsSearchTool: stories and comments through the Algolia HN API
- HackerNewsTopStoriesTool: the same search limited to the front page
- ArxivSearchTool: papers from the arXiv Atom API, parsed with feedparser
"""

import asyncio
import re
import typing as t

import feedparser
import httpx
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from deanmachines.settings import get_settings
from deanmachines.tools.http import http_get
from deanmachines.tools_core.base_tool import BaseTool, ToolExecutionError

HackerNewsTag = t.Literal[
    "story", "comment", "poll", "pollopt", "show_hn", "ask_hn", "front_page"
]


class SearchAPIError(ToolExecutionError):
    """Raised when a search API fails or returns unusable data."""


async def _get_json(
    url: str, params: dict[str, t.Any], client: httpx.AsyncClient | None, api: str
) -> t.Any:
    try:
        response = await http_get(url, params=params, client=client)
    except httpx.HTTPError as e:
        raise SearchAPIError(f"{api} request failed: {e}") from e
    if not response.is_success:
        raise SearchAPIError(f"{api} error: {response.status_code} - {response.reason_phrase}")
    try:
        return response.json()
    except ValueError as e:
        raise SearchAPIError(f"{api} returned invalid JSON: {e}") from e


class HackerNewsSearchInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    query: str | None = Field(default=None, description="Full-text search query")
    author: str | None = Field(default=None, description="Filter by author's HN username")
    tags: list[HackerNewsTag] = Field(
        default_factory=list,
        description="Filter by type of item. Multiple tags are AND'ed together.",
    )
    numeric_filters: list[str] = Field(
        default_factory=list,
        description="Numeric ranges on created_at_i, points or num_comments, e.g. points>100",
    )
    page: int | None = Field(default=None, ge=0, description="Page number to return")
    hits_per_page: int = Field(default=20, ge=1, le=100)
    sort_by: t.Literal["relevance", "recency"] = "relevance"


class HackerNewsHit(BaseModel):
    object_id: str
    title: str | None = None
    url: str | None = None
    author: str | None = None
    points: int | None = None
    num_comments: int | None = None
    created_at: str | None = None
    text: str | None = None


class HackerNewsSearchOutput(BaseModel):
    hits: list[HackerNewsHit]
    total_hits: int
    page: int
    pages: int


def hacker_news_params(input: HackerNewsSearchInput) -> dict[str, t.Any]:
    tags = list(input.tags)
    if input.author:
        tags.append(f"author_{input.author}")
    params: dict[str, t.Any] = {"hitsPerPage": input.hits_per_page}
    if input.query:
        params["query"] = input.query
    if tags:
        params["tags"] = ",".join(tags)
    if input.numeric_filters:
        params["numericFilters"] = ",".join(input.numeric_filters)
    if input.page is not None:
        params["page"] = input.page
    return params


def parse_hit(hit: dict[str, t.Any]) -> HackerNewsHit:
    return HackerNewsHit(
        object_id=str(hit.get("objectID", "")),
        title=hit.get("title") or hit.get("story_title"),
        url=hit.get("url") or hit.get("story_url"),
        author=hit.get("author"),
        points=hit.get("points"),
        num_comments=hit.get("num_comments"),
        created_at=hit.get("created_at"),
        text=hit.get("story_text") or hit.get("comment_text"),
    )


class HackerNewsSearchTool(BaseTool[HackerNewsSearchInput, HackerNewsSearchOutput]):
    _name = "hacker-news-search"
    description = "Searches Hacker News for stories and comments matching the given query"
    _input = HackerNewsSearchInput
    _output = HackerNewsSearchOutput

    def __init__(
        self, api_url: str | None = None, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.api_url = (api_url or get_settings().hacker_news_search_url).rstrip("/")
        self.http_client = http_client

    def search_input(self, input: HackerNewsSearchInput) -> HackerNewsSearchInput:
        return input

    def invoke(self, input: HackerNewsSearchInput) -> HackerNewsSearchOutput:
        return asyncio.run(self.ainvoke(input))

    async def ainvoke(self, input: HackerNewsSearchInput) -> HackerNewsSearchOutput:
        input = self.search_input(input)
        endpoint = "search" if input.sort_by == "relevance" else "search_by_date"
        logger.info("Hacker News search | query={} | tags={}", input.query, input.tags)
        data = await _get_json(
            f"{self.api_url}/{endpoint}",
            hacker_news_params(input),
            self.http_client,
            "Hacker News API",
        )
        if not isinstance(data, dict) or not isinstance(data.get("hits"), list):
            raise SearchAPIError("Hacker News API response has no hits")
        return HackerNewsSearchOutput(
            hits=[parse_hit(hit) for hit in data["hits"]],
            total_hits=data.get("nbHits", len(data["hits"])),
            page=data.get("page", 0),
            pages=data.get("nbPages", 1),
        )


class HackerNewsTopStoriesTool(HackerNewsSearchTool):
    _name = "hacker-news-top-stories"
    description = "Searches the stories currently on the Hacker News front page"

    def search_input(self, input: HackerNewsSearchInput) -> HackerNewsSearchInput:
        if "front_page" in input.tags:
            return input
        return input.model_copy(update={"tags": ["front_page", *input.tags]})


_ARXIV_URL_RE = re.compile(r"^https?://arxiv\.org/(abs|pdf)/")
_VERSION_RE = re.compile(r"v\d+$")


def extract_arxiv_id(value: str) -> str:
    """``http://arxiv.org/abs/2101.00001v2`` -> ``2101.00001``"""
    return _VERSION_RE.sub("", _ARXIV_URL_RE.sub("", value.strip()))


class ArxivSearchInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    search_query: str | None = Field(
        default=None, description="arXiv query, e.g. 'ti:transformers AND cat:cs.CL'"
    )
    ids: list[str] = Field(default_factory=list, description="arXiv ids to fetch")
    start: int = Field(default=0, ge=0)
    max_results: int = Field(default=5, ge=1, le=100)

    @model_validator(mode="after")
    def query_or_ids(self) -> "ArxivSearchInput":
        if not self.ids and not self.search_query:
            raise ValueError("search_query must be non-empty if ids are not provided")
        return self


class ArxivEntry(BaseModel):
    id: str
    url: str
    pdf_url: str
    title: str
    summary: str
    published: str | None = None
    updated: str | None = None
    authors: list[str] = Field(default_factory=list)
    primary_category: str | None = None
    categories: list[str] = Field(default_factory=list)
    doi: str | None = None
    comment: str | None = None
    journal_reference: str | None = None


class ArxivSearchOutput(BaseModel):
    total_results: int
    start_index: int
    entries: list[ArxivEntry]


def _clean(text: str) -> str:
    # arXiv wraps titles and abstracts over several lines
    return " ".join(text.split())


def parse_arxiv_feed(text: str) -> ArxivSearchOutput:
    feed = feedparser.parse(text)
    if feed.bozo and not feed.entries:
        raise SearchAPIError(f"arXiv API returned an unreadable feed: {feed.bozo_exception}")

    entries = []
    for entry in feed.entries:
        arxiv_id = extract_arxiv_id(entry.get("id", ""))
        primary = entry.get("arxiv_primary_category") or {}
        entries.append(
            ArxivEntry(
                id=arxiv_id,
                url=entry.get("id", ""),
                pdf_url=f"https://arxiv.org/pdf/{arxiv_id}.pdf",
                title=_clean(entry.get("title", "")),
                summary=_clean(entry.get("summary", "")),
                published=entry.get("published"),
                updated=entry.get("updated"),
                authors=[a["name"] for a in entry.get("authors", []) if a.get("name")],
                primary_category=primary.get("term"),
                categories=[tag["term"] for tag in entry.get("tags", []) if tag.get("term")],
                doi=entry.get("arxiv_doi"),
                comment=entry.get("arxiv_comment"),
                journal_reference=entry.get("arxiv_journal_ref"),
            )
        )

    header = feed.feed
    return ArxivSearchOutput(
        total_results=max(int(header.get("opensearch_totalresults", 0)), len(entries)),
        start_index=int(header.get("opensearch_startindex", 0)),
        entries=entries,
    )


class ArxivSearchTool(BaseTool[ArxivSearchInput, ArxivSearchOutput]):
    _name = "arxiv-search"
    description = "Searches for research articles published on arXiv"
    _input = ArxivSearchInput
    _output = ArxivSearchOutput

    def __init__(
        self, api_url: str | None = None, http_client: httpx.AsyncClient | None = None
    ) -> None:
        self.api_url = api_url or get_settings().arxiv_api_url
        self.http_client = http_client

    def invoke(self, input: ArxivSearchInput) -> ArxivSearchOutput:
        return asyncio.run(self.ainvoke(input))

    async def ainvoke(self, input: ArxivSearchInput) -> ArxivSearchOutput:
        params: dict[str, t.Any] = {
            "start": input.start,
            "max_results": input.max_results,
            "sortBy": "relevance",
            "sortOrder": "descending",
        }
        if input.search_query:
            params["search_query"] = input.search_query
        if input.ids:
            params["id_list"] = ",".join(extract_arxiv_id(i) for i in input.ids)

        logger.info("arXiv search | query={} | ids={}", input.search_query, input.ids)
        try:
            response = await http_get(self.api_url, params=params, client=self.http_client)
        except httpx.HTTPError as e:
            raise SearchAPIError(f"arXiv API request failed: {e}") from e
        if not response.is_success:
            raise SearchAPIError(
                f"arXiv API error: {response.status_code} - {response.reason_phrase}"
            )
        return parse_arxiv_feed(response.text)

    example_inputs = (ArxivSearchInput(search_query="ti:agents AND cat:cs.AI"),)
