from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from search_gateway.models import QueryMode

from app.agents.consultant import IntentConsultant, RetryConfig
from app.config import AppSettings, load_settings
from app.observability import MetricsEmitter, configure_logging
from app.orchestrator import CORS_HEADERS, QueryOrchestrator, error_response
from app.schemas import HealthResponse
from app.tools.completions import CompletionService, OpenAICompletionService
from app.tools.web_search import SearchTransport, WebSearchTool

logger = logging.getLogger("app")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        logger.info("%s %s", request.method, request.url.path)
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        if response.status_code < 400:
            logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
        else:
            logger.error("%s %s -> %s", request.method, request.url.path, response.status_code)
        return response


def build_orchestrator(
    settings: AppSettings,
    completion_service: Optional[CompletionService] = None,
    search_transport: Optional[SearchTransport] = None,
    metrics: Optional[MetricsEmitter] = None,
) -> QueryOrchestrator:
    """Wire the consultant and search tool around one completion service."""

    metrics = metrics or MetricsEmitter()
    completion_service = completion_service or OpenAICompletionService(settings.completion)
    consultant = IntentConsultant(
        completion_service,
        retry_config=RetryConfig(
            max_attempts=settings.completion.max_attempts,
            backoff_factor=settings.completion.backoff_seconds,
        ),
        max_tokens=settings.completion.max_tokens,
        metrics_emitter=metrics,
    )
    search_tool = WebSearchTool(
        transport=search_transport,
        completion_service=completion_service,
        model=settings.model_name,
        metrics_emitter=metrics,
    )
    return QueryOrchestrator(settings, consultant, search_tool)


def create_app(
    settings: Optional[AppSettings] = None,
    completion_service: Optional[CompletionService] = None,
    search_transport: Optional[SearchTransport] = None,
) -> FastAPI:
    """Build the gateway application around immutable startup settings."""

    settings = settings or load_settings()
    configure_logging(settings.observability)
    logger.info(
        "Starting gateway: model=%s restricted_mode=%s max_search_results=%s size_per_search_result=%s",
        settings.model_name,
        settings.restricted_mode,
        settings.search.max_search_results,
        settings.search.size_per_search_result,
    )

    app = FastAPI(
        title="Search Consultation Gateway",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.orchestrator = build_orchestrator(settings, completion_service, search_transport)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    async def _query(mode: QueryMode, request: Request) -> Response:
        try:
            body = await request.body()
        except Exception as exc:  # noqa: BLE001
            logger.error("Error while reading request body: %s", exc)
            return error_response(500, f"Error while converting request body into bytes: {exc}")
        return await request.app.state.orchestrator.handle(mode, body)

    @app.post("/query/decide")
    async def query_decide(request: Request) -> Response:
        """Only decide whether the query needs a web search."""
        return await _query(QueryMode.DECISION, request)

    @app.post("/query/complete")
    async def query_complete(request: Request) -> Response:
        """Decide, and run the search when one is needed."""
        return await _query(QueryMode.COMPLETE, request)

    @app.post("/query/summarize")
    async def query_summarize(request: Request) -> Response:
        """Decide, search, and summarize the results."""
        return await _query(QueryMode.SUMMARIZE, request)

    @app.get("/echo")
    async def echo() -> Response:
        return PlainTextResponse("echo test")

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        """Health check endpoint."""
        current: AppSettings = request.app.state.settings
        return HealthResponse(model=current.model_name, restricted_mode=current.restricted_mode)

    @app.api_route(
        "/{path:path}",
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        include_in_schema=False,
    )
    async def not_implemented(path: str) -> Response:
        return error_response(501, "501 Not Implemented")

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return error_response(500, "Internal server error")

    return app


app = create_app()
