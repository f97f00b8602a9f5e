"""Request payloads and result parsers for each supported search provider."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Union

from search_gateway.models import SearchResult

TAVILY_ENDPOINT = "https://api.tavily.com/search"
BING_ENDPOINT = "https://api.bing.microsoft.com/v7.0/search"
BING_KEY_HEADER = "Ocp-Apim-Subscription-Key"

SearchParser = Callable[[Any], List[SearchResult]]


@dataclass(frozen=True)
class TavilySearchInput:
    api_key: str
    query: str
    max_results: int
    search_depth: str = "advanced"
    include_answer: bool = False
    include_images: bool = False
    include_raw_content: bool = False

    @property
    def search_text(self) -> str:
        return self.query

    def to_wire(self) -> Dict[str, Any]:
        return {
            "api_key": self.api_key,
            "query": self.query,
            "max_results": self.max_results,
            "search_depth": self.search_depth,
            "include_answer": self.include_answer,
            "include_images": self.include_images,
            "include_raw_content": self.include_raw_content,
        }


@dataclass(frozen=True)
class BingSearchInput:
    q: str
    count: int
    response_filter: str = "Webpages"

    @property
    def search_text(self) -> str:
        return self.q

    def to_wire(self) -> Dict[str, Any]:
        return {"q": self.q, "count": self.count, "responseFilter": self.response_filter}


@dataclass(frozen=True)
class LocalSearchInput:
    term: str
    max_search_results: int
    engine: str = "google"

    @property
    def search_text(self) -> str:
        return self.term

    def to_wire(self) -> Dict[str, Any]:
        return {"term": self.term, "engine": self.engine, "maxSearchResults": self.max_search_results}


SearchInput = Union[TavilySearchInput, BingSearchInput, LocalSearchInput]


def _require_list(value: Any, where: str) -> List[Any]:
    if not isinstance(value, list):
        raise ValueError(f"expected a list of results at {where}")
    return value


def _first_str(item: Dict[str, Any], *keys: str) -> str:
    for key in keys:
        value = item.get(key)
        if isinstance(value, str):
            return value
    return ""


def tavily_parser(payload: Any) -> List[SearchResult]:
    """Normalize a Tavily ``/search`` response."""

    if not isinstance(payload, dict):
        raise ValueError("Tavily response is not a JSON object")
    results = []
    for item in _require_list(payload.get("results"), "results"):
        if not isinstance(item, dict):
            continue
        results.append(
            SearchResult(
                url=_first_str(item, "url"),
                site_name=_first_str(item, "title"),
                text_content=_first_str(item, "content"),
            )
        )
    return results


def bing_parser(payload: Any) -> List[SearchResult]:
    """Normalize a Bing Web Search v7 response."""

    if not isinstance(payload, dict):
        raise ValueError("Bing response is not a JSON object")
    web_pages = payload.get("webPages")
    # Bing leaves webPages out entirely when nothing matched
    if web_pages is None:
        return []
    if not isinstance(web_pages, dict):
        raise ValueError("Bing webPages is not an object")
    results = []
    for item in _require_list(web_pages.get("value"), "webPages.value"):
        if not isinstance(item, dict):
            continue
        results.append(
            SearchResult(
                url=_first_str(item, "url"),
                site_name=_first_str(item, "name"),
                text_content=_first_str(item, "snippet"),
            )
        )
    return results


def local_parser(payload: Any) -> List[SearchResult]:
    """Normalize a local search server response.

    Accepts either ``{"results": [...]}`` or a bare list of results.
    """

    raw = payload.get("results") if isinstance(payload, dict) else payload
    results = []
    for item in _require_list(raw, "results"):
        if not isinstance(item, dict):
            continue
        results.append(
            SearchResult(
                url=_first_str(item, "url", "link"),
                site_name=_first_str(item, "title", "name", "site_name"),
                text_content=_first_str(item, "content", "snippet", "text", "text_content"),
            )
        )
    return results
