"""Environment-driven configuration for the search consultation gateway."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from dotenv import load_dotenv

DEFAULT_ENV_FILE = Path(".env")
DEFAULT_MODEL_NAME = "default"
DEFAULT_COMPLETION_BASE_URL = "http://localhost:8080/v1"
DEFAULT_MAX_SEARCH_RESULTS = 5
DEFAULT_SIZE_PER_SEARCH_RESULT = 400
DEFAULT_LOCAL_SEARCH_ENDPOINT = "https://localhost:3000/search"
DEFAULT_SUMMARIZE_CTX_SIZE = 4096
DEFAULT_SUMMARIZATION_PROMPT = (
    "You are a research assistant. Summarize the following web search results so "
    "that they answer the user's query. Keep only information relevant to the "
    "query, state facts plainly and do not invent details that are not present "
    "in the results."
)


def _to_bool(value: Optional[str], *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ObservabilitySettings:
    """Logging toggles."""

    log_level: str = "INFO"


@dataclass(frozen=True)
class CompletionSettings:
    """Where the chat completion service lives and how verdicts are requested."""

    base_url: str = DEFAULT_COMPLETION_BASE_URL
    api_key: str = "not-needed"
    max_tokens: int = 500
    max_attempts: int = 3
    backoff_seconds: float = 0.5


@dataclass(frozen=True)
class SearchSettings:
    """Server-side ceilings and defaults applied to every search."""

    max_search_results: int = DEFAULT_MAX_SEARCH_RESULTS
    size_per_search_result: int = DEFAULT_SIZE_PER_SEARCH_RESULT
    local_search_endpoint: str = DEFAULT_LOCAL_SEARCH_ENDPOINT
    timeout_seconds: float = 30.0
    summarize_ctx_size: int = DEFAULT_SUMMARIZE_CTX_SIZE
    summarization_prompt: str = DEFAULT_SUMMARIZATION_PROMPT


@dataclass(frozen=True)
class AppSettings:
    """Aggregated configuration, built once at startup and never mutated."""

    model_name: str = DEFAULT_MODEL_NAME
    restricted_mode: bool = False  # disables the local backend and summaries
    completion: CompletionSettings = field(default_factory=CompletionSettings)
    search: SearchSettings = field(default_factory=SearchSettings)
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)


def load_settings(env: Mapping[str, str] | MutableMapping[str, str] | None = None, env_file: Optional[Path] = None) -> AppSettings:
    """Load settings from the provided environment mapping (defaults to ``os.environ``).

    A ``.env`` file is read into the process environment first when present;
    variables that are already set take precedence over the file.
    """

    if env is None:
        env_file_path = env_file or DEFAULT_ENV_FILE
        if env_file_path.exists():
            load_dotenv(env_file_path, override=False)
        env = os.environ

    completion = CompletionSettings(
        base_url=env.get("COMPLETION_BASE_URL", DEFAULT_COMPLETION_BASE_URL),
        api_key=env.get("COMPLETION_API_KEY", "not-needed"),
        max_tokens=int(env.get("CONSULT_MAX_TOKENS", 500)),
        max_attempts=max(1, int(env.get("CONSULT_MAX_ATTEMPTS", 3))),
        backoff_seconds=float(env.get("CONSULT_BACKOFF_SECONDS", 0.5)),
    )

    search = SearchSettings(
        max_search_results=int(env.get("MAX_SEARCH_RESULTS", DEFAULT_MAX_SEARCH_RESULTS)),
        size_per_search_result=int(env.get("SIZE_PER_SEARCH_RESULT", DEFAULT_SIZE_PER_SEARCH_RESULT)),
        local_search_endpoint=env.get("LOCAL_SEARCH_ENDPOINT", DEFAULT_LOCAL_SEARCH_ENDPOINT),
        timeout_seconds=float(env.get("SEARCH_TIMEOUT_SECONDS", 30.0)),
        summarize_ctx_size=int(env.get("SUMMARIZE_CTX_SIZE", DEFAULT_SUMMARIZE_CTX_SIZE)),
        summarization_prompt=env.get("SUMMARIZATION_PROMPT", DEFAULT_SUMMARIZATION_PROMPT),
    )

    return AppSettings(
        model_name=env.get("MODEL_NAME", DEFAULT_MODEL_NAME),
        restricted_mode=_to_bool(env.get("RESTRICTED_MODE"), default=False),
        completion=completion,
        search=search,
        observability=ObservabilitySettings(log_level=env.get("LOG_LEVEL", "INFO")),
    )
