"""Maps a backend selection and client options onto a validated search configuration."""
from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from search_gateway.backends import SearchBackend

from app.config import AppSettings
from app.exceptions import (
    InvalidRequestError,
    MalformedCredentialError,
    MissingCredentialError,
    ModeDisallowedError,
    UnsupportedBackendError,
)
from app.tools.search_providers import (
    BING_ENDPOINT,
    BING_KEY_HEADER,
    TAVILY_ENDPOINT,
    BingSearchInput,
    LocalSearchInput,
    SearchInput,
    TavilySearchInput,
    bing_parser,
    local_parser,
    tavily_parser,
)
from app.tools.web_search import SearchExecutionConfig

logger = logging.getLogger(__name__)

PROVIDER_LABELS = {
    SearchBackend.TAVILY: "Tavily",
    SearchBackend.BING: "Bing",
}


def clamp_limit(requested: Any, ceiling: int) -> int:
    """Return the effective limit for a client-requested value.

    Absent or malformed values (non-integers, booleans, values below one) fall
    back to the ceiling; everything else is capped at it.
    """

    if isinstance(requested, bool) or not isinstance(requested, int) or requested < 1:
        return ceiling
    return min(requested, ceiling)


def unknown_backend_error() -> UnsupportedBackendError:
    return UnsupportedBackendError(f"Unknown backend mentioned.\nUsage: {SearchBackend.usage()}.")


def ensure_backend_allowed(backend: SearchBackend, settings: AppSettings) -> None:
    """Reject backends that cannot be used on this deployment."""

    if backend is SearchBackend.UNKNOWN:
        raise unknown_backend_error()
    if backend is SearchBackend.LOCAL_SEARCH_SERVER and settings.restricted_mode:
        raise ModeDisallowedError(
            "The backend local_search_server is only allowed on servers running outside restricted mode."
        )


def require_api_key(backend: SearchBackend, search_config: Mapping[str, Any]) -> str:
    """Return the caller's API key for ``backend`` or raise the matching credential error."""

    label = PROVIDER_LABELS[backend]
    if "api_key" not in search_config or search_config["api_key"] is None:
        raise MissingCredentialError(f"no {label} API key supplied.")
    api_key = search_config["api_key"]
    if not isinstance(api_key, str):
        raise MalformedCredentialError(f"Invalid {label} API key supplied.")
    if not api_key.strip():
        raise MissingCredentialError(f"no {label} API key supplied.")
    return api_key


def _local_endpoint(search_config: Mapping[str, Any], settings: AppSettings) -> str:
    endpoint = search_config.get("endpoint")
    if endpoint is None:
        return settings.search.local_search_endpoint
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise InvalidRequestError("The endpoint supplied is not a valid String.")
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL as exc:
        raise InvalidRequestError(f"The endpoint supplied is not a valid URL: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidRequestError("The endpoint supplied is not a valid http(s) URL.")
    return endpoint


def build_search_config(
    backend: SearchBackend,
    search_config: Mapping[str, Any],
    settings: AppSettings,
) -> SearchExecutionConfig:
    """Build the per-request execution config for ``backend``.

    Raises:
        UnsupportedBackendError: For ``SearchBackend.UNKNOWN``
        ModeDisallowedError: For the local backend in restricted mode
        MissingCredentialError / MalformedCredentialError: For a bad Bing key
    """
    ensure_backend_allowed(backend, settings)

    search = settings.search
    common = dict(
        max_search_results=clamp_limit(search_config.get("max_search_results"), search.max_search_results),
        size_limit_per_result=clamp_limit(search_config.get("size_limit_per_result"), search.size_per_search_result),
        timeout_seconds=search.timeout_seconds,
        summarization_prompt=search.summarization_prompt,
        summarize_ctx_size=search.summarize_ctx_size,
    )

    if backend is SearchBackend.TAVILY:
        config = SearchExecutionConfig(
            search_engine="tavily",
            endpoint=TAVILY_ENDPOINT,
            method="POST",
            parser=tavily_parser,
            **common,
        )
    elif backend is SearchBackend.BING:
        config = SearchExecutionConfig(
            search_engine="bing",
            endpoint=BING_ENDPOINT,
            method="GET",
            parser=bing_parser,
            additional_headers={BING_KEY_HEADER: require_api_key(backend, search_config)},
            **common,
        )
    elif backend is SearchBackend.LOCAL_SEARCH_SERVER:
        config = SearchExecutionConfig(
            search_engine="local_search_server",
            endpoint=_local_endpoint(search_config, settings),
            method="POST",
            parser=local_parser,
            **common,
        )
    else:
        raise unknown_backend_error()

    logger.debug(
        "Search config for %s: max_results=%s size_limit=%s",
        config.search_engine,
        config.max_search_results,
        config.size_limit_per_result,
    )
    return config


def build_search_input(
    backend: SearchBackend,
    query: str,
    config: SearchExecutionConfig,
    search_config: Mapping[str, Any],
) -> SearchInput:
    """Shape the provider payload for ``backend``."""

    if backend is SearchBackend.TAVILY:
        return TavilySearchInput(
            api_key=require_api_key(backend, search_config),
            query=query,
            max_results=config.max_search_results,
        )
    if backend is SearchBackend.BING:
        return BingSearchInput(q=query, count=config.max_search_results)
    if backend is SearchBackend.LOCAL_SEARCH_SERVER:
        return LocalSearchInput(term=query, max_search_results=config.max_search_results)
    raise unknown_backend_error()
