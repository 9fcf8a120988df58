"""
Chat feature: Web search backing the `web_search` function tool.

Uses Tavily, an AI-optimized search engine that returns clean, contextual
results. Without TAVILY_API_KEY (or when Tavily fails) a small set of canned
results keeps the tool-call flow working in development.
"""

import logging

from cachetools import TTLCache
from tavily import TavilyClient

from counselor.config import get_settings
from counselor.features.chat.schemas import WebSearchResult

logger = logging.getLogger(__name__)

_settings = get_settings()
_client = TavilyClient(api_key=_settings.TAVILY_API_KEY) if _settings.TAVILY_API_KEY else None

# Search cache: max 100 queries, default TTL 30 min
_search_cache: TTLCache = TTLCache(maxsize=100, ttl=_settings.WEB_SEARCH_CACHE_TTL)

# OpenAI function-tool declaration sent when web search is enabled
WEB_SEARCH_TOOL = {
    "type": "function",
    "function": {
        "name": "web_search",
        "description": "Search the web for current information",
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Short, specific search query",
                },
            },
            "required": ["query"],
        },
    },
}

# ── Canned results (development / Tavily outage) ─────────
_UNIVERSITY_RESULTS = [
    WebSearchResult(
        title="QS World University Rankings 2025: Top Global Universities",
        url="https://www.topuniversities.com/university-rankings/world-university-rankings/2025",
        snippet="The latest QS World University Rankings 2025 feature over 1,500 universities from around the world. MIT, Stanford, and Oxford lead the rankings.",
    ),
    WebSearchResult(
        title="The World's Top 100 Universities | US News Best Global Universities",
        url="https://www.usnews.com/education/best-global-universities/rankings",
        snippet="Find the world's top universities ranked by academic reputation, employer reputation, and research impact.",
    ),
    WebSearchResult(
        title="Times Higher Education World University Rankings 2025",
        url="https://www.timeshighereducation.com/world-university-rankings/2025",
        snippet="The Times Higher Education World University Rankings 2025 include over 1,900 universities across 108 countries.",
    ),
]

_COMPETITION_RESULTS = [
    WebSearchResult(
        title="Top Academic Competitions for High School Students 2025",
        url="https://www.collegeconfidential.com/academic-competitions",
        snippet="Guide to prestigious academic competitions including Regeneron Science Talent Search, International Mathematical Olympiad, and National Speech & Debate Tournament.",
    ),
    WebSearchResult(
        title="Merit Scholarships at Top Universities - Class of 2025",
        url="https://www.collegetransitions.com/scholarships/merit-scholarships",
        snippet="Guide to finding and applying for merit-based scholarships at prestigious universities.",
    ),
]

_GENERIC_RESULTS = [
    WebSearchResult(
        title="Search Result 1",
        url="https://example.com/result1",
        snippet="This is the first search result snippet with relevant information.",
    ),
    WebSearchResult(
        title="Search Result 2",
        url="https://example.com/result2",
        snippet="This is the second search result snippet with more information.",
    ),
]


def canned_search_results(query: str) -> list[WebSearchResult]:
    """Keyword-selected offline results."""
    lowered = query.lower()
    if "college" in lowered or "university" in lowered:
        return list(_UNIVERSITY_RESULTS)
    if "competition" in lowered or "scholarship" in lowered:
        return list(_COMPETITION_RESULTS)
    return list(_GENERIC_RESULTS)


def _tavily_search(query: str) -> list[WebSearchResult]:
    response = _client.search(
        query=query,
        search_depth="advanced",
        max_results=_settings.WEB_SEARCH_MAX_RESULTS,
    )
    return [
        WebSearchResult(
            title=r.get("title", ""),
            url=r.get("url", ""),
            snippet=r.get("content", ""),
        )
        for r in response.get("results", [])
        if r.get("url")
    ]


def perform_web_search(query: str) -> list[WebSearchResult]:
    """Search the web for a tool call.

    Args:
        query: Search text chosen by the model.

    Returns:
        Up to WEB_SEARCH_MAX_RESULTS results (never raises).
    """
    cache_key = " ".join(query.lower().split())
    cached = _search_cache.get(cache_key)
    if cached is not None:
        return cached

    if not _client:
        logger.info(f"Performing canned web search for: {query}")
        return canned_search_results(query)

    try:
        results = _tavily_search(query)
    except Exception as e:
        logger.warning(f"Tavily search failed, using canned results: {e}")
        return canned_search_results(query)

    if not results:
        return canned_search_results(query)

    _search_cache[cache_key] = results
    logger.info(f"🔎 Web search returned {len(results)} result(s) for: {query}")
    return results
