"""Search request, page and response models."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SearchMode(str, Enum):
    """How a request was expanded."""

    SIMPLE = "simple"
    KEYWORD = "keyword"


class SubQuery(BaseModel):
    """One upstream query derived from a search request."""

    label: str = Field("", description="Keyword label, empty in simple mode")
    text: str = Field(..., description="Full query text sent upstream")


class ResultItem(BaseModel):
    """A single upstream search hit."""

    title: str = ""
    snippet: str = ""
    link: str = ""
    image: str = ""
    next_start_index: int = Field(1, description="Cursor of the page after this one")
    has_more: bool = Field(False, description="Whether the upstream has more pages")


class Page(BaseModel):
    """One normalized upstream response."""

    items: list[ResultItem] = Field(default_factory=list)
    next_start_index: int = 1
    has_more: bool = False
    error: str | None = Field(
        None, description="Why the page degraded to empty, if it did"
    )

    @property
    def is_empty(self) -> bool:
        return not self.items


class AggregatedResult(BaseModel):
    """Merged and truncated results for one search request."""

    mode: SearchMode
    results: list[ResultItem] = Field(
        default_factory=list, description="Simple-mode results in upstream order"
    )
    results_by_keyword: dict[str, list[ResultItem]] = Field(
        default_factory=dict, description="Keyword-mode results per label"
    )
    incomplete_keywords: list[str] = Field(
        default_factory=list,
        description="Labels that came back short of the per-query budget",
    )
    complete: bool = Field(
        True, description="Whether every sub-query filled its result budget"
    )
    upstream_errors: int = Field(0, description="Pages degraded to empty")

    @property
    def result_count(self) -> int:
        if self.mode == SearchMode.KEYWORD:
            return sum(len(items) for items in self.results_by_keyword.values())
        return len(self.results)


class PlanSummary(BaseModel):
    """An account's active plan and remaining quota."""

    plan_type: str
    allowed_queries: int
    queries_used: int
    queries_remaining: int
    results_per_query: int


class SearchResponse(BaseModel):
    """What a caller receives for an accepted search."""

    success: bool = True
    mode: SearchMode
    results: list[ResultItem] | None = None
    results_by_keyword: dict[str, list[ResultItem]] | None = None
    count: int = Field(..., description="Items returned across all sub-queries")
    complete: bool = True
    incomplete_keywords: list[str] = Field(default_factory=list)
    upstream_errors: int = 0
    queries_used: int
    queries_remaining: int
    plan_type: str
    allowed_queries: int
    results_per_query: int


class FetchMetricsData(BaseModel):
    """Snapshot of upstream fetch counters."""

    pages_fetched: int = 0
    pages_degraded: int = 0
    degraded_by_reason: dict[str, int] = Field(default_factory=dict)
    searches_served: int = 0
    results_served: int = 0
    started_at: datetime | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    upstream_configured: bool
    metrics: FetchMetricsData
