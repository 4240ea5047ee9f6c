"""
Tests for deanmachines/tools/agentic_search.py

HTTP is served by httpx.MockTransport, no network access.
"""

import httpx
import pytest

from deanmachines.tools.agentic_search import (
    ArxivSearchTool,
    HackerNewsSearchInput,
    HackerNewsSearchTool,
    HackerNewsTopStoriesTool,
    SearchAPIError,
    extract_arxiv_id,
    hacker_news_params,
    parse_arxiv_feed,
)
from deanmachines.tools_core.base_tool import InputValidationError

HN_URL = "https://hn.test/api/v1"
ARXIV_URL = "https://arxiv.test/api/query"

HN_PAYLOAD = {
    "hits": [
        {
            "objectID": "41",
            "title": "Show HN: A tiny agent framework",
            "url": "https://example.com/agents",
            "author": "pg",
            "points": 120,
            "num_comments": 33,
            "created_at": "2024-05-01T12:00:00Z",
        },
        {
            "objectID": "42",
            "story_title": "Ask HN: Favourite eval tools?",
            "author": "dang",
            "comment_text": "pytest, mostly",
        },
    ],
    "nbHits": 2,
    "page": 0,
    "nbPages": 1,
}

ARXIV_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns="http://www.w3.org/2005/Atom"
      xmlns:opensearch="http://a9.com/-/spec/opensearch/1.1/"
      xmlns:arxiv="http://arxiv.org/schemas/atom">
  <title type="html">ArXiv Query: search_query=ti:agents</title>
  <id>http://arxiv.org/api/query</id>
  <updated>2024-05-02T00:00:00-04:00</updated>
  <opensearch:totalResults>12</opensearch:totalResults>
  <opensearch:startIndex>0</opensearch:startIndex>
  <opensearch:itemsPerPage>1</opensearch:itemsPerPage>
  <entry>
    <id>http://arxiv.org/abs/2401.01234v2</id>
    <updated>2024-01-05T10:00:00Z</updated>
    <published>2024-01-03T10:00:00Z</published>
    <title>Tool Use in
      Language Agents</title>
    <summary>  We study how agents
      call tools.  </summary>
    <author><name>Ada Lovelace</name></author>
    <author><name>Alan Turing</name></author>
    <arxiv:comment>12 pages</arxiv:comment>
    <link href="http://arxiv.org/abs/2401.01234v2" rel="alternate" type="text/html"/>
    <arxiv:primary_category term="cs.AI" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.AI" scheme="http://arxiv.org/schemas/atom"/>
    <category term="cs.CL" scheme="http://arxiv.org/schemas/atom"/>
  </entry>
</feed>
"""


def hn_tool(handler, cls=HackerNewsSearchTool) -> HackerNewsSearchTool:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return cls(api_url=HN_URL, http_client=client)


def arxiv_tool(handler) -> ArxivSearchTool:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ArxivSearchTool(api_url=ARXIV_URL, http_client=client)


def recording(payload, seen: list[httpx.Request], **kwargs):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if isinstance(payload, str):
            return httpx.Response(200, text=payload, **kwargs)
        return httpx.Response(200, json=payload, **kwargs)

    return handler


class TestHackerNewsSearch:
    def test_name(self):
        assert hn_tool(recording(HN_PAYLOAD, [])).name == "HACKER_NEWS_SEARCH"

    def test_params(self):
        params = hacker_news_params(
            HackerNewsSearchInput(
                query="agents",
                author="pg",
                tags=["story"],
                numeric_filters=["points>100", "num_comments>10"],
                page=2,
                hits_per_page=5,
            )
        )
        assert params == {
            "hitsPerPage": 5,
            "query": "agents",
            "tags": "story,author_pg",
            "numericFilters": "points>100,num_comments>10",
            "page": 2,
        }

    def test_minimal_params(self):
        assert hacker_news_params(HackerNewsSearchInput()) == {"hitsPerPage": 20}

    def test_unknown_tag_rejected(self):
        with pytest.raises(InputValidationError):
            hn_tool(recording(HN_PAYLOAD, []))({"tags": ["job"]})

    @pytest.mark.asyncio
    async def test_relevance_search(self):
        seen: list[httpx.Request] = []
        result = await hn_tool(recording(HN_PAYLOAD, seen)).acall({"query": "agents"})

        assert str(seen[0].url).startswith(f"{HN_URL}/search?")
        assert seen[0].url.params["query"] == "agents"
        assert result.total_hits == 2
        assert result.hits[0].object_id == "41"
        assert result.hits[0].points == 120
        # comment hits fall back to their story fields
        assert result.hits[1].title == "Ask HN: Favourite eval tools?"
        assert result.hits[1].text == "pytest, mostly"

    @pytest.mark.asyncio
    async def test_recency_search_uses_date_endpoint(self):
        seen: list[httpx.Request] = []
        await hn_tool(recording(HN_PAYLOAD, seen)).acall({"query": "x", "sort_by": "recency"})
        assert seen[0].url.path == "/api/v1/search_by_date"

    @pytest.mark.asyncio
    async def test_top_stories_are_front_page(self):
        seen: list[httpx.Request] = []
        tool = hn_tool(recording(HN_PAYLOAD, seen), cls=HackerNewsTopStoriesTool)
        await tool.acall({"tags": ["story"]})
        await tool.acall({"tags": ["front_page"]})

        assert tool.name == "HACKER_NEWS_TOP_STORIES"
        assert seen[0].url.params["tags"] == "front_page,story"
        assert seen[1].url.params["tags"] == "front_page"

    @pytest.mark.asyncio
    async def test_error_status(self):
        tool = hn_tool(lambda request: httpx.Response(429))
        with pytest.raises(SearchAPIError, match="Hacker News API error: 429"):
            await tool.acall({"query": "agents"})

    @pytest.mark.asyncio
    async def test_response_without_hits(self):
        tool = hn_tool(lambda request: httpx.Response(200, json={"message": "nope"}))
        with pytest.raises(SearchAPIError, match="no hits"):
            await tool.acall({"query": "agents"})


class TestArxivSearch:
    @pytest.mark.parametrize(
        "value",
        [
            "2401.01234",
            "2401.01234v2",
            "http://arxiv.org/abs/2401.01234v2",
            "https://arxiv.org/pdf/2401.01234",
        ],
    )
    def test_extract_arxiv_id(self, value: str):
        assert extract_arxiv_id(value) == "2401.01234"

    def test_query_or_ids_required(self):
        with pytest.raises(InputValidationError):
            arxiv_tool(recording(ARXIV_FEED, []))({"max_results": 3})

    def test_parse_feed(self):
        result = parse_arxiv_feed(ARXIV_FEED)

        assert result.total_results == 12
        [entry] = result.entries
        assert entry.id == "2401.01234"
        assert entry.url == "http://arxiv.org/abs/2401.01234v2"
        assert entry.pdf_url == "https://arxiv.org/pdf/2401.01234.pdf"
        assert entry.title == "Tool Use in Language Agents"
        assert entry.summary == "We study how agents call tools."
        assert entry.authors == ["Ada Lovelace", "Alan Turing"]
        assert entry.primary_category == "cs.AI"
        assert entry.categories == ["cs.AI", "cs.CL"]

    def test_unreadable_feed(self):
        with pytest.raises(SearchAPIError, match="unreadable feed"):
            parse_arxiv_feed("this is not xml")

    @pytest.mark.asyncio
    async def test_search_params(self):
        seen: list[httpx.Request] = []
        tool = arxiv_tool(recording(ARXIV_FEED, seen))
        result = await tool.acall(
            {"search_query": "ti:agents", "ids": ["http://arxiv.org/abs/2401.01234v2"]}
        )

        params = seen[0].url.params
        assert tool.name == "ARXIV_SEARCH"
        assert params["search_query"] == "ti:agents"
        assert params["id_list"] == "2401.01234"
        assert params["max_results"] == "5"
        assert params["sortBy"] == "relevance"
        assert result.entries[0].id == "2401.01234"

    @pytest.mark.asyncio
    async def test_error_status(self):
        tool = arxiv_tool(lambda request: httpx.Response(500))
        with pytest.raises(SearchAPIError, match="arXiv API error: 500"):
            await tool.acall({"search_query": "ti:agents"})
