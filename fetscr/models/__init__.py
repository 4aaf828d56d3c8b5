"""Data models."""

from .account import Account, PlanLimits, PlanType, UsageRecord
from .search import (
    AggregatedResult,
    FetchMetricsData,
    HealthResponse,
    Page,
    PlanSummary,
    ResultItem,
    SearchMode,
    SearchResponse,
    SubQuery,
)

__all__ = [
    "Account",
    "AggregatedResult",
    "FetchMetricsData",
    "HealthResponse",
    "Page",
    "PlanLimits",
    "PlanSummary",
    "PlanType",
    "ResultItem",
    "SearchMode",
    "SearchResponse",
    "SubQuery",
    "UsageRecord",
]
