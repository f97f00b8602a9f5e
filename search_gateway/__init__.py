"""Core types for deciding on and running web searches for a query."""

from .backends import SearchBackend
from .models import ConsultationVerdict, QueryMode, SearchResult
from .fakes import FakeCompletionService, FakeSearchTransport, tool_call_completion

__all__ = [
    "SearchBackend",
    "ConsultationVerdict",
    "QueryMode",
    "SearchResult",
    "FakeCompletionService",
    "FakeSearchTransport",
    "tool_call_completion",
]
