"""Search backend selection."""
from enum import Enum
from typing import Optional


class SearchBackend(str, Enum):
    """Search providers a request can select.

    ``UNKNOWN`` stands for any client-supplied name that is not recognised and
    is rejected before a provider is contacted.
    """

    TAVILY = "tavily"
    BING = "bing"
    LOCAL_SEARCH_SERVER = "local_search_server"
    UNKNOWN = "unknown"

    @classmethod
    def from_name(cls, name: Optional[str]) -> "SearchBackend":
        """Map a client-supplied backend name onto a known backend."""

        if not isinstance(name, str):
            return cls.UNKNOWN
        for backend in cls:
            if backend is not cls.UNKNOWN and backend.value == name:
                return backend
        return cls.UNKNOWN

    @classmethod
    def usage(cls) -> str:
        return ", ".join(b.value for b in cls if b is not cls.UNKNOWN)
