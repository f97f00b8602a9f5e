"""HTTP service deciding whether queries need a web search and running it."""

from .config import AppSettings, CompletionSettings, ObservabilitySettings, SearchSettings, load_settings
from .observability import configure_logging, MetricsEmitter

__all__ = [
    "AppSettings",
    "CompletionSettings",
    "ObservabilitySettings",
    "SearchSettings",
    "load_settings",
    "configure_logging",
    "MetricsEmitter",
]
