import asyncio

import httpx
import pytest

from app.exceptions import SearchTransportError, SummarizationError
from app.tools.search_config import build_search_config, build_search_input
from app.tools.web_search import WebSearchTool
from search_gateway.backends import SearchBackend
from search_gateway.fakes import FakeCompletionService, FakeSearchTransport, text_completion


def _prepare(settings, backend, search_config, query="weather Paris today"):
    config = build_search_config(backend, search_config, settings)
    return config, build_search_input(backend, query, config, search_config)


def test_tavily_execute_posts_json_and_truncates(settings):
    long_text = "y" * 50
    transport = FakeSearchTransport(
        {"results": [{"title": f"R{i}", "url": f"https://r{i}.example", "content": long_text} for i in range(6)]}
    )
    config, search_input = _prepare(
        settings, SearchBackend.TAVILY, {"api_key": "tvly", "max_search_results": 3, "size_limit_per_result": 10}
    )

    results = asyncio.run(WebSearchTool(transport=transport).execute(config, search_input))

    assert len(results) == 3
    assert all(len(r.text_content) == 10 for r in results)
    request = transport.requests[0]
    assert request.method == "POST"
    assert request.url == "https://api.tavily.com/search"
    assert request.json["api_key"] == "tvly"
    assert request.params is None


def test_bing_execute_uses_query_params_and_key_header(settings, bing_payload):
    transport = FakeSearchTransport(bing_payload)
    config, search_input = _prepare(settings, SearchBackend.BING, {"api_key": "bing-key"})

    results = asyncio.run(WebSearchTool(transport=transport).execute(config, search_input))

    assert [r.site_name for r in results] == ["Paris Weather", "Forecast"]
    request = transport.requests[0]
    assert request.method == "GET"
    assert request.params == {"q": "weather Paris today", "count": 5, "responseFilter": "Webpages"}
    assert request.headers["Ocp-Apim-Subscription-Key"] == "bing-key"
    assert request.json is None


@pytest.mark.parametrize("error", [httpx.ConnectError("refused"), httpx.InvalidURL("Invalid IPv6 address")])
def test_transport_failures_become_search_errors(settings, error):
    transport = FakeSearchTransport(error=error)
    config, search_input = _prepare(settings, SearchBackend.TAVILY, {"api_key": "k"})

    with pytest.raises(SearchTransportError, match="Failed to perform internet search"):
        asyncio.run(WebSearchTool(transport=transport).execute(config, search_input))


def test_provider_status_errors_become_search_errors(settings):
    request = httpx.Request("POST", "https://api.tavily.com/search")
    response = httpx.Response(401, request=request)
    transport = FakeSearchTransport(error=httpx.HTTPStatusError("unauthorized", request=request, response=response))
    config, search_input = _prepare(settings, SearchBackend.TAVILY, {"api_key": "k"})

    with pytest.raises(SearchTransportError, match="401"):
        asyncio.run(WebSearchTool(transport=transport).execute(config, search_input))


def test_unparseable_payload_becomes_search_error(settings):
    config, search_input = _prepare(settings, SearchBackend.TAVILY, {"api_key": "k"})
    tool = WebSearchTool(transport=FakeSearchTransport(["not", "an", "object"]))

    with pytest.raises(SearchTransportError, match="parse"):
        asyncio.run(tool.execute(config, search_input))


def test_summarize_feeds_results_to_the_model(settings, tavily_payload):
    service = FakeCompletionService([text_completion("Sunny in Paris.")])
    tool = WebSearchTool(transport=FakeSearchTransport(tavily_payload), completion_service=service, model="sum-model")
    config, search_input = _prepare(settings, SearchBackend.TAVILY, {"api_key": "k"})

    summary = asyncio.run(tool.summarize(config, search_input))

    assert summary == "Sunny in Paris."
    request = service.requests[0]
    assert request["model"] == "sum-model"
    assert request["messages"][0]["content"] == settings.search.summarization_prompt
    assert "Sunny, 21C" in request["messages"][1]["content"]
    assert "weather Paris today" in request["messages"][1]["content"]


def test_summarize_without_results_skips_the_model(settings):
    service = FakeCompletionService([text_completion("unused")])
    tool = WebSearchTool(transport=FakeSearchTransport({"results": []}), completion_service=service)
    config, search_input = _prepare(settings, SearchBackend.TAVILY, {"api_key": "k"})

    assert asyncio.run(tool.summarize(config, search_input)) == "No search results found."
    assert service.call_count == 0


def test_summarize_failure(settings, tavily_payload):
    service = FakeCompletionService([RuntimeError("model offline")])
    tool = WebSearchTool(transport=FakeSearchTransport(tavily_payload), completion_service=service)
    config, search_input = _prepare(settings, SearchBackend.TAVILY, {"api_key": "k"})

    with pytest.raises(SummarizationError):
        asyncio.run(tool.summarize(config, search_input))
