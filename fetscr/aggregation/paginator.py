"""Pagination of a single sub-query against a page fetcher."""

import math
from dataclasses import dataclass, field

from ..models.search import ResultItem
from ..providers.base import PageFetcher
from ..utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 10


@dataclass
class PaginationResult:
    """Items collected for one sub-query plus how the loop ended."""

    items: list[ResultItem] = field(default_factory=list)
    pages_fetched: int = 0
    upstream_errors: int = 0
    stop_reason: str = "page_limit"


def max_pages_for(target_count: int, cap: int, page_size: int = DEFAULT_PAGE_SIZE) -> int:
    """Pages needed to reach ``target_count`` at ``page_size`` per page, at most ``cap``."""
    if target_count <= 0:
        return 0
    return min(math.ceil(target_count / page_size), cap)


async def paginate(
    fetcher: PageFetcher,
    query_text: str,
    target_count: int,
    max_pages: int,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> PaginationResult:
    """Fetch pages in order until the target is met or the upstream runs dry.

    Stops on the first empty page, when the upstream reports no further pages,
    once ``target_count`` items are collected, or after ``max_pages`` fetches.
    The collected items are truncated to exactly ``target_count``.
    """
    result = PaginationResult()
    collected: list[ResultItem] = []
    start = 1

    for _ in range(max_pages):
        page = await fetcher.fetch_page(query_text, start)
        result.pages_fetched += 1

        if page.is_empty:
            if page.error:
                result.upstream_errors += 1
            result.stop_reason = "exhausted"
            break

        collected.extend(page.items)
        start = page.next_start_index or start + page_size

        if not page.has_more:
            result.stop_reason = "no_more_pages"
            break
        if len(collected) >= target_count:
            result.stop_reason = "satisfied"
            break

    result.items = collected[:target_count]
    logger.debug(
        f"Paginated '{query_text}': {len(result.items)} items over "
        f"{result.pages_fetched} page(s), stopped: {result.stop_reason}"
    )
    return result
