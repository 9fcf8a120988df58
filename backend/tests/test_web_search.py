"""
Tests for the Tavily-backed web search, with a fake client in place of Tavily.
"""

import pytest

from counselor.features.chat import web_search
from counselor.features.chat.web_search import canned_search_results, perform_web_search


class FakeTavily:
    def __init__(self, response=None, error=None):
        self.response = response if response is not None else {"results": []}
        self.error = error
        self.calls: list[dict] = []

    def search(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return self.response


TAVILY_RESPONSE = {
    "results": [
        {
            "title": "Regeneron Science Talent Search",
            "url": "https://www.societyforscience.org/regeneron-sts/",
            "content": "The nation's oldest science competition for high school seniors.",
        },
        {"title": "No link", "url": "", "content": "dropped"},
    ]
}


@pytest.fixture
def tavily(monkeypatch):
    client = FakeTavily(TAVILY_RESPONSE)
    monkeypatch.setattr(web_search, "_client", client)
    return client


def test_maps_tavily_results(tavily, settings):
    results = perform_web_search("science competitions")

    assert len(results) == 1
    assert results[0].title == "Regeneron Science Talent Search"
    assert results[0].url == "https://www.societyforscience.org/regeneron-sts/"
    assert results[0].snippet.startswith("The nation's oldest")
    assert tavily.calls == [{
        "query": "science competitions",
        "search_depth": "advanced",
        "max_results": settings.WEB_SEARCH_MAX_RESULTS,
    }]


def test_normalized_query_hits_cache(tavily):
    first = perform_web_search("Science Competitions")
    second = perform_web_search("  science   competitions ")

    assert second == first
    assert len(tavily.calls) == 1


def test_tavily_error_falls_back_to_canned(monkeypatch):
    client = FakeTavily(error=RuntimeError("quota exceeded"))
    monkeypatch.setattr(web_search, "_client", client)

    results = perform_web_search("best university for biology")

    assert results == canned_search_results("best university for biology")
    assert len(results) == 3


def test_empty_tavily_results_fall_back_and_are_not_cached(monkeypatch):
    client = FakeTavily({"results": []})
    monkeypatch.setattr(web_search, "_client", client)

    assert perform_web_search("scholarship deadlines") == canned_search_results("scholarship deadlines")
    perform_web_search("scholarship deadlines")
    assert len(client.calls) == 2


def test_no_client_uses_canned_results():
    results = perform_web_search("weekend plans")
    assert [r.url for r in results] == ["https://example.com/result1", "https://example.com/result2"]
