"""Per-request flow turning a query into a decision, search results or a summary."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from fastapi.responses import JSONResponse, PlainTextResponse, Response

from search_gateway.backends import SearchBackend
from search_gateway.models import ConsultationVerdict, QueryMode

from app.agents.consultant import IntentConsultant
from app.config import AppSettings
from app.exceptions import GatewayError, InvalidRequestError, ModeDisallowedError, RequestDecodeError
from app.schemas import DecisionResponse, SearchResultsResponse, SearchResultItem, SummaryResponse
from app.tools.search_config import build_search_config, build_search_input, ensure_backend_allowed
from app.tools.web_search import WebSearchTool

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}


def error_response(status_code: int, message: str) -> Response:
    return PlainTextResponse(message, status_code=status_code, headers=CORS_HEADERS)


@dataclass
class NormalizedRequest:
    """Represents the request body after validation."""

    query: str
    backend: Optional[SearchBackend]
    search_config: Dict[str, Any] = field(default_factory=dict)


class QueryOrchestrator:
    """Coordinates the consultant and the search tool for one request at a time.

    Holds only read-only collaborators, so one instance serves concurrent
    requests.
    """

    def __init__(
        self,
        settings: AppSettings,
        consultant: IntentConsultant,
        search_tool: WebSearchTool,
    ) -> None:
        self.settings = settings
        self.consultant = consultant
        self.search_tool = search_tool

    async def handle(self, mode: QueryMode, body: bytes) -> Response:
        """Run the flow and convert its outcome into an HTTP response."""

        logger.info("Handling the incoming %s request.", mode.value)
        try:
            payload = await self.run(mode, body)
        except GatewayError as exc:
            logger.error("%s request failed (%s): %s", mode.value, exc.status_code, exc)
            return error_response(exc.status_code, str(exc))

        try:
            response = JSONResponse(payload, headers=CORS_HEADERS)
        except (TypeError, ValueError) as exc:
            logger.error("failed to build a response: %s", exc)
            return error_response(500, f"failed to build a response. Reason: {exc}")

        logger.info("Replying to %s request.", mode.value)
        return response

    async def run(self, mode: QueryMode, body: bytes) -> Dict[str, Any]:
        request = self.normalize(mode, body)
        verdict = await self.consultant.consult(request.query, self.settings.model_name)

        if mode is QueryMode.DECISION:
            return DecisionResponse(decision=verdict.needs_search, query=verdict.search_query or "null").model_dump()

        if not verdict.needs_search:
            return DecisionResponse(decision=False, query=None).model_dump()

        return await self._search(mode, request, verdict)

    def normalize(self, mode: QueryMode, body: bytes) -> NormalizedRequest:
        """Validate the raw body, failing on the first problem found."""

        try:
            payload = json.loads(body)
        except (TypeError, ValueError) as exc:
            raise RequestDecodeError(f"Error while converting request body into json object: {exc}") from exc
        if not isinstance(payload, dict):
            raise InvalidRequestError("The request body must be a JSON object.")

        search_config = payload.get("search_config")
        if not isinstance(search_config, dict):
            raise InvalidRequestError("Unable to extract search_config object from request.")

        backend: Optional[SearchBackend] = None
        if payload.get("backend") is not None:
            backend = SearchBackend.from_name(payload["backend"])
            ensure_backend_allowed(backend, self.settings)

        if mode is QueryMode.SUMMARIZE and self.settings.restricted_mode:
            raise ModeDisallowedError(
                "Summary generation endpoint is only available on servers running outside restricted mode."
            )

        query = payload.get("query")
        if query is None:
            raise InvalidRequestError("No query received.")
        if not isinstance(query, str):
            raise InvalidRequestError("The query supplied is not a String.")
        if not query.strip():
            raise InvalidRequestError("No query received.")

        return NormalizedRequest(query=query, backend=backend, search_config=search_config)

    async def _search(
        self,
        mode: QueryMode,
        request: NormalizedRequest,
        verdict: ConsultationVerdict,
    ) -> Dict[str, Any]:
        if request.backend is None:
            raise InvalidRequestError(f"No backend mentioned.\nUsage: {SearchBackend.usage()}.")

        config = build_search_config(request.backend, request.search_config, self.settings)
        search_input = build_search_input(request.backend, verdict.search_query, config, request.search_config)

        if mode is QueryMode.SUMMARIZE:
            summary = await self.search_tool.summarize(config, search_input)
            return SummaryResponse(results=summary).model_dump()

        results = await self.search_tool.execute(config, search_input)
        return SearchResultsResponse(
            results=[SearchResultItem(**result.to_dict()) for result in results]
        ).model_dump()
