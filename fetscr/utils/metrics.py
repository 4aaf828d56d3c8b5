"""Metrics tracking utilities."""

from collections import Counter
from datetime import UTC, datetime

from ..models.search import FetchMetricsData


class FetchMetrics:
    """Counters for upstream page fetches and served searches.

    Degraded pages are fetches that were turned into an empty page instead of
    failing the search; counting them by reason keeps partial result sets
    diagnosable.
    """

    def __init__(self):
        """Initialize the metrics tracker."""
        self.start_time = datetime.now(UTC)
        self.pages_fetched = 0
        self.pages_degraded = 0
        self.degraded_by_reason: Counter[str] = Counter()
        self.searches_served = 0
        self.results_served = 0

    def record_page(self) -> None:
        """Record a page that came back with a usable body."""
        self.pages_fetched += 1

    def record_degraded(self, reason: str) -> None:
        """Record a page that degraded to empty."""
        self.pages_fetched += 1
        self.pages_degraded += 1
        self.degraded_by_reason[reason] += 1

    def record_search(self, result_count: int) -> None:
        """Record a completed, billed search."""
        self.searches_served += 1
        self.results_served += result_count

    def get_metrics(self) -> FetchMetricsData:
        """Get current metrics data."""
        return FetchMetricsData(
            pages_fetched=self.pages_fetched,
            pages_degraded=self.pages_degraded,
            degraded_by_reason=dict(self.degraded_by_reason),
            searches_served=self.searches_served,
            results_served=self.results_served,
            started_at=self.start_time,
        )

    def reset(self) -> None:
        """Reset all counters."""
        self.__init__()


# Global instance for application-wide use
fetch_metrics = FetchMetrics()
