"""Logging and lightweight metrics helpers for the gateway."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Optional

from .config import ObservabilitySettings

MetricSink = Callable[[str, Dict[str, Any]], None]


def configure_logging(settings: ObservabilitySettings) -> None:
    """Configure logging according to the provided settings."""

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger(__name__).debug(
        "Logging configured", extra={"level": settings.log_level.upper()}
    )


@dataclass
class MetricsEmitter:
    """Simple metrics helper that fans out to configured sinks."""

    sinks: Iterable[MetricSink] = field(default_factory=list)
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def _emit(self, name: str, payload: Dict[str, Any]) -> None:
        self.logger.info("metric.%s", name, extra={"metric": payload})
        for sink in self.sinks:
            try:
                sink(name, payload)
            except Exception:
                self.logger.exception("Metric sink failed", extra={"metric_name": name})

    def emit_consult_attempt(self, attempt: int, model: str) -> None:
        self._emit("consult.attempt", {"attempt": attempt, "model": model})

    def emit_consult_rejected(self, attempt: int, reason: str) -> None:
        self._emit("consult.rejected", {"attempt": attempt, "reason": reason})

    def emit_search_query(self, query: str, backend: str, results_count: int = 0) -> None:
        self._emit("search.query", {"query": query, "backend": backend, "results_count": results_count})

    def emit_search_empty_results(self, query: str) -> None:
        """Emit metric when search returns empty results."""
        self.emit_metric("search.empty_results", 1, extra={"query": query[:100]})

    def emit_metric(self, name: str, value: float, extra: Optional[Dict[str, Any]] = None) -> None:
        """Emit a generic metric."""
        payload = {"value": value}
        if extra:
            payload.update(extra)
        self._emit(name, payload)
