import pytest

from app.config import AppSettings, CompletionSettings, SearchSettings
from search_gateway.fakes import FakeCompletionService, FakeSearchTransport, text_completion, tool_call_completion


@pytest.fixture()
def settings():
    return AppSettings(
        model_name="test-model",
        completion=CompletionSettings(max_attempts=3, backoff_seconds=0.0),
        search=SearchSettings(max_search_results=5, size_per_search_result=400),
    )


@pytest.fixture()
def restricted_settings(settings):
    return AppSettings(
        model_name=settings.model_name,
        restricted_mode=True,
        completion=settings.completion,
        search=settings.search,
    )


@pytest.fixture()
def no_search_completion():
    return tool_call_completion({"search_required": False})


@pytest.fixture()
def search_completion():
    return tool_call_completion({"search_required": True, "query": "weather Paris today"})


@pytest.fixture()
def tavily_payload():
    return {
        "query": "weather Paris today",
        "results": [
            {"title": "Paris Weather", "url": "https://weather.example/paris", "content": "Sunny, 21C", "score": 0.9},
            {"title": "Forecast", "url": "https://forecast.example/fr", "content": "Clear skies all day", "score": 0.7},
        ],
    }


@pytest.fixture()
def bing_payload():
    return {
        "_type": "SearchResponse",
        "webPages": {
            "value": [
                {"name": "Paris Weather", "url": "https://weather.example/paris", "snippet": "Sunny, 21C"},
                {"name": "Forecast", "url": "https://forecast.example/fr", "snippet": "Clear skies all day"},
            ]
        },
    }


@pytest.fixture()
def search_transport(tavily_payload):
    return FakeSearchTransport(tavily_payload)


@pytest.fixture()
def summary_completion():
    return text_completion("It is sunny and 21C in Paris today.")


@pytest.fixture()
def completion_service(search_completion, summary_completion):
    return FakeCompletionService([search_completion, summary_completion])
