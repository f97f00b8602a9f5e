from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class SearchResultItem(BaseModel):
    url: str
    site_name: str
    text_content: str


class DecisionResponse(BaseModel):
    decision: bool
    query: Optional[str] = Field(None, description="Search query, or null when no search is needed.")


class SearchResultsResponse(BaseModel):
    decision: bool = True
    results: List[SearchResultItem]


class SummaryResponse(BaseModel):
    decision: bool = True
    results: str = Field(..., description="Summary of the search results.")


class HealthResponse(BaseModel):
    status: str = "ok"
    model: str
    restricted_mode: bool
