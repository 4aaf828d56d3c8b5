"""Aggregation of per-sub-query pagination into one truncated result."""

import asyncio

from ..config import PaginationSettings, get_settings
from ..models.search import AggregatedResult, ResultItem, SearchMode, SubQuery
from ..providers.base import PageFetcher
from ..utils.logging import get_logger
from .paginator import PaginationResult, max_pages_for, paginate

logger = get_logger(__name__)


def detect_mode(sub_queries: list[SubQuery]) -> SearchMode:
    """A single unlabeled sub-query is a simple search; anything else is keyword mode."""
    if len(sub_queries) == 1 and not sub_queries[0].label:
        return SearchMode.SIMPLE
    return SearchMode.KEYWORD


class Aggregator:
    """Runs the paginator for each sub-query and merges the results.

    Keyword sub-queries are paginated concurrently and independently; each
    keyword gets the full per-query budget and its own page ceiling.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        pagination: PaginationSettings | None = None,
    ):
        self.fetcher = fetcher
        self.pagination = pagination or get_settings().pagination

    async def aggregate(
        self, sub_queries: list[SubQuery], results_per_query: int
    ) -> AggregatedResult:
        """Fetch, merge and truncate results for every sub-query."""
        mode = detect_mode(sub_queries)
        if mode == SearchMode.SIMPLE:
            return await self._aggregate_simple(sub_queries[0], results_per_query)
        return await self._aggregate_keywords(sub_queries, results_per_query)

    async def _aggregate_simple(
        self, sub_query: SubQuery, results_per_query: int
    ) -> AggregatedResult:
        max_pages = max_pages_for(
            results_per_query,
            self.pagination.simple_max_pages,
            self.pagination.page_size,
        )
        outcome = await paginate(
            self.fetcher,
            sub_query.text,
            results_per_query,
            max_pages,
            self.pagination.page_size,
        )
        return AggregatedResult(
            mode=SearchMode.SIMPLE,
            results=outcome.items,
            complete=len(outcome.items) >= results_per_query,
            upstream_errors=outcome.upstream_errors,
        )

    async def _aggregate_keywords(
        self, sub_queries: list[SubQuery], results_per_query: int
    ) -> AggregatedResult:
        max_pages = max_pages_for(
            results_per_query,
            self.pagination.keyword_max_pages,
            self.pagination.page_size,
        )

        # Repeated keywords share one mapping slot, first occurrence wins
        unique: dict[str, SubQuery] = {}
        for sub_query in sub_queries:
            unique.setdefault(sub_query.label, sub_query)

        semaphore = asyncio.Semaphore(self.pagination.max_concurrent_keywords)

        async def run(sub_query: SubQuery) -> PaginationResult:
            async with semaphore:
                try:
                    return await paginate(
                        self.fetcher,
                        sub_query.text,
                        results_per_query,
                        max_pages,
                        self.pagination.page_size,
                    )
                except Exception as e:
                    logger.error(
                        f"Pagination failed for keyword '{sub_query.label}': {e}"
                    )
                    return PaginationResult(upstream_errors=1, stop_reason="error")

        outcomes = await asyncio.gather(*(run(sq) for sq in unique.values()))

        results_by_keyword: dict[str, list[ResultItem]] = {}
        incomplete: list[str] = []
        upstream_errors = 0
        for label, outcome in zip(unique, outcomes, strict=True):
            results_by_keyword[label] = outcome.items
            upstream_errors += outcome.upstream_errors
            if len(outcome.items) < results_per_query:
                incomplete.append(label)

        return AggregatedResult(
            mode=SearchMode.KEYWORD,
            results_by_keyword=results_by_keyword,
            incomplete_keywords=incomplete,
            complete=not incomplete,
            upstream_errors=upstream_errors,
        )
