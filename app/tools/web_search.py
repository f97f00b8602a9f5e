"""Web search execution with a pluggable transport and optional summarization."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from search_gateway.models import SearchResult

from app.exceptions import SearchTransportError, SummarizationError
from app.observability import MetricsEmitter
from app.tools.completions import CompletionService, extract_text
from app.tools.search_providers import SearchInput, SearchParser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderRequest:
    """A fully shaped outbound call to a search provider."""

    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    params: Optional[Dict[str, Any]] = None
    json: Optional[Dict[str, Any]] = None
    timeout: float = 30.0


SearchTransport = Callable[[ProviderRequest], Awaitable[Any]]


async def httpx_transport(request: ProviderRequest) -> Any:
    """Send a provider request with httpx and return the decoded JSON body."""

    async with httpx.AsyncClient(timeout=request.timeout) as client:
        response = await client.request(
            request.method,
            request.url,
            headers=request.headers,
            params=request.params,
            json=request.json,
        )
        response.raise_for_status()
        return response.json()


@dataclass(frozen=True)
class SearchExecutionConfig:
    """Everything needed to run one search against one provider."""

    search_engine: str
    max_search_results: int
    size_limit_per_result: int
    endpoint: str
    method: str
    parser: SearchParser
    additional_headers: Dict[str, str] = field(default_factory=dict)
    timeout_seconds: float = 30.0
    summarization_prompt: Optional[str] = None
    summarize_ctx_size: Optional[int] = None

    def build_request(self, search_input: SearchInput) -> ProviderRequest:
        headers = {"Content-Type": "application/json", **self.additional_headers}
        wire = search_input.to_wire()
        if self.method.upper() == "GET":
            return ProviderRequest(method="GET", url=self.endpoint, headers=headers, params=wire, timeout=self.timeout_seconds)
        return ProviderRequest(method=self.method.upper(), url=self.endpoint, headers=headers, json=wire, timeout=self.timeout_seconds)


class WebSearchTool:
    """Runs searches through a transport and condenses results through the model."""

    def __init__(
        self,
        transport: Optional[SearchTransport] = None,
        completion_service: Optional[CompletionService] = None,
        model: str = "default",
        metrics_emitter: Optional[MetricsEmitter] = None,
    ) -> None:
        self.transport = transport or httpx_transport
        self.completion_service = completion_service
        self.model = model
        self.metrics = metrics_emitter or MetricsEmitter()

    async def execute(self, config: SearchExecutionConfig, search_input: SearchInput) -> List[SearchResult]:
        """Run the search and return normalized, size-limited results."""

        request = config.build_request(search_input)
        logger.info("Searching %s for %r", config.search_engine, search_input.search_text)
        try:
            payload = await self.transport(request)
        except httpx.HTTPStatusError as exc:
            raise SearchTransportError(
                f"Failed to perform internet search: {config.search_engine} answered {exc.response.status_code}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as exc:
            raise SearchTransportError(f"Failed to perform internet search: {exc}") from exc

        try:
            raw_results = config.parser(payload)
        except ValueError as exc:
            raise SearchTransportError(f"Failed to parse {config.search_engine} results: {exc}") from exc

        results = [
            result.truncated(config.size_limit_per_result)
            for result in raw_results[: config.max_search_results]
        ]
        self.metrics.emit_search_query(search_input.search_text, config.search_engine, len(results))
        if not results:
            self.metrics.emit_search_empty_results(search_input.search_text)
        return results

    async def summarize(self, config: SearchExecutionConfig, search_input: SearchInput) -> str:
        """Run the search and ask the model to condense the results into one text."""

        if self.completion_service is None:
            raise SummarizationError("No completion service configured for summaries")

        results = await self.execute(config, search_input)
        if not results:
            return "No search results found."

        context = self.format_results(results)
        if config.summarize_ctx_size is not None:
            context = context[: config.summarize_ctx_size]

        request = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": config.summarization_prompt or ""},
                {
                    "role": "user",
                    "content": f"Query: {search_input.search_text}\n\nSearch results:\n{context}",
                },
            ],
            "stream": False,
            "n": 1,
        }
        try:
            response = await self.completion_service.complete(request)
        except Exception as exc:  # noqa: BLE001
            logger.error("Summary generation failed: %s", exc)
            raise SummarizationError(f"Failed to summarize search results: {exc}") from exc

        summary = extract_text(response)
        if not summary:
            raise SummarizationError("The model returned an empty summary")
        return summary

    @staticmethod
    def format_results(results: List[SearchResult]) -> str:
        lines = []
        for i, result in enumerate(results, 1):
            lines.append(f"{i}. {result.site_name}")
            lines.append(f"URL: {result.url}")
            lines.append(f"{result.text_content}\n")
        return "\n".join(lines)
