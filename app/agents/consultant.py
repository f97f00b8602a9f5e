"""LLM-based consultant deciding whether a query needs a live web search."""
from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from search_gateway.models import ConsultationVerdict

from app.exceptions import ConsultationError, ConsultationRetriesExhausted, TransientClassificationError
from app.observability import MetricsEmitter
from app.tools.completions import CompletionService

logger = logging.getLogger(__name__)

TOOL_NAME = "search_required"

CONSULT_SYSTEM_MESSAGE = """
You are an intent classification model. Your goal is to determine whether a given user query can only be answered with additional information from a web search. Use the search_required tool call for this.

Instructions:

    For each query, assign an appropriate intent:
        `true` if the query would typically need real-time data, specific information retrieval, or content that is not likely to be pre-known. Generate the search term for the query.
        `false` if the query can be answered based on general knowledge, static facts, or content that can be reasonably assumed to be within the model's scope.
""".strip()

SEARCH_REQUIRED_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": TOOL_NAME,
        "description": "Use to search the internet to answer a query.",
        "parameters": {
            "type": "object",
            "properties": {
                "search_required": {
                    "type": "boolean",
                    "description": "Whether an internet search is required to answer the query.",
                },
                "query": {
                    "type": "string",
                    "description": "The query to search if search is required.",
                },
            },
            "required": ["search_required"],
        },
    },
}


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    backoff_factor: float = 0.5


class IntentConsultant:
    """Forces the model through the ``search_required`` tool call and validates it."""

    def __init__(
        self,
        completion_service: CompletionService,
        retry_config: RetryConfig | None = None,
        max_tokens: int = 500,
        metrics_emitter: Optional[MetricsEmitter] = None,
    ) -> None:
        self.completion_service = completion_service
        self.retry_config = retry_config or RetryConfig()
        self.max_tokens = max_tokens
        self.metrics = metrics_emitter or MetricsEmitter()

    def build_request(self, query: str, model: str) -> Dict[str, Any]:
        """Build the single-turn chat completion request sent on every attempt."""

        return {
            "model": model,
            "messages": [
                {"role": "system", "content": CONSULT_SYSTEM_MESSAGE},
                {"role": "user", "content": query},
            ],
            "stream": False,
            "n": 1,
            "max_tokens": self.max_tokens,
            "tools": [SEARCH_REQUIRED_TOOL],
            "tool_choice": {"type": "function", "function": {"name": TOOL_NAME}},
        }

    async def consult(self, query: str, model: str) -> ConsultationVerdict:
        """
        Ask the model whether ``query`` needs a web search.

        Malformed tool calls are retried with the identical request up to
        ``retry_config.max_attempts`` times.

        Raises:
            ConsultationError: If the completion service itself fails
            ConsultationRetriesExhausted: If no attempt produced a valid tool call
        """
        request = self.build_request(query, model)
        last_error: TransientClassificationError | None = None

        for attempt in range(1, self.retry_config.max_attempts + 1):
            self.metrics.emit_consult_attempt(attempt, model)
            try:
                response = await self.completion_service.complete(request)
            except Exception as exc:  # noqa: BLE001
                logger.error("Chat completion failed during consultation: %s", exc)
                raise ConsultationError(f"Error while generating response from LLM: {exc}") from exc

            try:
                verdict = self.parse_verdict(response)
            except TransientClassificationError as exc:
                last_error = exc
                logger.warning("Consultation attempt %s/%s rejected: %s", attempt, self.retry_config.max_attempts, exc)
                self.metrics.emit_consult_rejected(attempt, str(exc))
                if attempt < self.retry_config.max_attempts and self.retry_config.backoff_factor > 0:
                    await asyncio.sleep(self.retry_config.backoff_factor * (2 ** (attempt - 1)))
                continue

            logger.info(
                "Consultation verdict: needs_search=%s query=%r",
                verdict.needs_search,
                verdict.search_query,
            )
            return verdict

        raise ConsultationRetriesExhausted(
            f"No valid {TOOL_NAME} tool call after {self.retry_config.max_attempts} attempts: {last_error}"
        ) from last_error

    @staticmethod
    def parse_verdict(response: Any) -> ConsultationVerdict:
        """Validate a chat completion against the tool-call contract."""

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise TransientClassificationError("completion returned no choices")
        choice = choices[0]

        finish_reason = getattr(choice, "finish_reason", None)
        if finish_reason != "tool_calls":
            raise TransientClassificationError(f"completion did not end in a tool call (finish_reason={finish_reason!r})")

        tool_calls = getattr(getattr(choice, "message", None), "tool_calls", None) or []
        if not tool_calls:
            raise TransientClassificationError("completion carries no tool calls")
        tool_call = tool_calls[0]

        function = getattr(tool_call, "function", None)
        name = getattr(function, "name", None)
        if getattr(tool_call, "type", None) != "function" or name != TOOL_NAME:
            raise TransientClassificationError(f"unexpected tool call: type={getattr(tool_call, 'type', None)!r} name={name!r}")

        try:
            arguments = json.loads(getattr(function, "arguments", None) or "")
        except (TypeError, ValueError) as exc:
            raise TransientClassificationError("could not deserialize tool call arguments") from exc
        if not isinstance(arguments, dict):
            raise TransientClassificationError("tool call arguments are not an object")

        search_required = arguments.get("search_required")
        if not isinstance(search_required, bool):
            raise TransientClassificationError("invalid argument type: search_required")

        if not search_required:
            return ConsultationVerdict(needs_search=False)

        search_query = arguments.get("query")
        if not isinstance(search_query, str) or not search_query.strip():
            raise TransientClassificationError("invalid argument: 'query' cannot be null")
        return ConsultationVerdict(needs_search=True, search_query=search_query)
