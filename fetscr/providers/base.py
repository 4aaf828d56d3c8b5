"""Base interface for upstream page fetchers.

A page fetcher issues exactly one upstream request per call and always returns
a Page. Upstream failures are normalized into an empty page with ``has_more``
unset, which the paginator treats as "no more results".
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models.search import Page


class PageFetcher(ABC):
    """Fetches one page of results for a query at a 1-based offset."""

    name: str = "base"

    @abstractmethod
    async def fetch_page(self, query_text: str, start_index: int = 1) -> Page:
        """Fetch a single page. Must not raise for upstream failures."""
        ...

    def is_configured(self) -> bool:
        """Whether the fetcher has the credentials it needs."""
        return True

    async def close(self) -> None:
        """Release any held resources."""
        return None
