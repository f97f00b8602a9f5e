from dataclasses import dataclass
from enum import Enum
from typing import Optional


class QueryMode(str, Enum):
    """Response flavor requested by the client."""

    DECISION = "decide"
    COMPLETE = "complete"
    SUMMARIZE = "summarize"


@dataclass(frozen=True)
class ConsultationVerdict:
    """Whether a query needs a live web search, and what to search for."""

    needs_search: bool
    search_query: Optional[str] = None

    def __post_init__(self) -> None:
        if self.needs_search and not self.search_query:
            raise ValueError("a verdict requiring search must carry a search query")
        if not self.needs_search and self.search_query is not None:
            raise ValueError("a verdict without search cannot carry a search query")


@dataclass
class SearchResult:
    """A single normalized search result."""

    url: str
    site_name: str
    text_content: str

    def truncated(self, size_limit: int) -> "SearchResult":
        """Return a copy whose text content is at most ``size_limit`` characters."""

        if len(self.text_content) <= size_limit:
            return self
        return SearchResult(
            url=self.url,
            site_name=self.site_name,
            text_content=self.text_content[:size_limit],
        )

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "site_name": self.site_name,
            "text_content": self.text_content,
        }
