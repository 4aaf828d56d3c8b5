"""Google Custom Search JSON API page fetcher."""

from typing import Any

import httpx

from ..config import GoogleSearchSettings, get_settings
from ..models.search import Page, ResultItem
from ..utils.errors import MissingConfigurationError, UpstreamUnavailableError
from ..utils.logging import get_logger
from ..utils.metrics import FetchMetrics, fetch_metrics
from ..utils.retry import RetryConfig
from .base import PageFetcher
from .retry_mixin import RetryMixin

logger = get_logger(__name__)


class GoogleCSEFetcher(PageFetcher, RetryMixin):
    """Fetches result pages from the Google Custom Search JSON API."""

    name = "google_cse"

    def __init__(
        self,
        settings: GoogleSearchSettings | None = None,
        client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
        metrics: FetchMetrics | None = None,
    ):
        self.settings = settings or get_settings().google
        if not self.settings.api_key.get_secret_value():
            raise MissingConfigurationError("google__api_key")
        if not self.settings.search_engine_id:
            raise MissingConfigurationError("google__search_engine_id")

        self.client = client or httpx.AsyncClient(
            timeout=self.settings.timeout,
            limits=httpx.Limits(max_connections=20),
        )
        self.retry_config = retry_config
        self.metrics = metrics or fetch_metrics

    async def fetch_page(self, query_text: str, start_index: int = 1) -> Page:
        """Fetch one page of results starting at a 1-based offset."""
        params = {
            "key": self.settings.api_key.get_secret_value(),
            "cx": self.settings.search_engine_id,
            "q": query_text,
            "start": start_index,
        }

        @self.with_retry
        async def make_request() -> httpx.Response:
            try:
                response = await self.client.get(self.settings.base_url, params=params)
            except httpx.HTTPError as e:
                raise UpstreamUnavailableError(
                    reason="transport", original_error=e
                ) from e
            if not response.is_success:
                raise UpstreamUnavailableError(
                    reason="http_status", upstream_status=response.status_code
                )
            return response

        try:
            response = await make_request()
            data = response.json()
        except UpstreamUnavailableError as e:
            return self._degraded(query_text, start_index, e.reason, e.message)
        except ValueError as e:
            return self._degraded(query_text, start_index, "malformed", str(e))

        if not isinstance(data, dict):
            return self._degraded(
                query_text, start_index, "malformed", "Response body is not an object"
            )

        raw_items = data.get("items")
        if raw_items is None:
            # A query with no hits has no "items" key at all
            self.metrics.record_page()
            logger.debug(f"No results for '{query_text}' at start={start_index}")
            return Page()
        if not isinstance(raw_items, list):
            return self._degraded(
                query_text, start_index, "malformed", "'items' is not a list"
            )

        cursor = self._next_page_cursor(data)
        next_start_index = cursor or 1
        has_more = cursor is not None and cursor <= self.settings.max_start_index

        items = [
            self._to_result_item(raw, next_start_index, has_more)
            for raw in raw_items
            if isinstance(raw, dict)
        ]

        self.metrics.record_page()
        logger.debug(
            f"Fetched {len(items)} results for '{query_text}' at start={start_index} "
            f"(next={next_start_index}, has_more={has_more})"
        )
        return Page(items=items, next_start_index=next_start_index, has_more=has_more)

    def _degraded(
        self, query_text: str, start_index: int, reason: str, message: str
    ) -> Page:
        self.metrics.record_degraded(reason)
        logger.warning(
            f"Upstream page for '{query_text}' at start={start_index} degraded "
            f"to empty ({reason}): {message}"
        )
        return Page(error=f"{reason}: {message}")

    @staticmethod
    def _next_page_cursor(data: dict[str, Any]) -> int | None:
        queries = data.get("queries")
        if not isinstance(queries, dict):
            return None
        next_page = queries.get("nextPage")
        if not isinstance(next_page, list) or not next_page:
            return None
        first = next_page[0]
        if not isinstance(first, dict):
            return None
        try:
            return int(first["startIndex"])
        except (KeyError, TypeError, ValueError):
            return None

    @staticmethod
    def _to_result_item(
        raw: dict[str, Any], next_start_index: int, has_more: bool
    ) -> ResultItem:
        image = ""
        pagemap = raw.get("pagemap")
        if isinstance(pagemap, dict):
            thumbnails = pagemap.get("cse_thumbnail")
            if isinstance(thumbnails, list) and thumbnails:
                first = thumbnails[0]
                if isinstance(first, dict):
                    image = first.get("src") or ""

        return ResultItem(
            title=raw.get("title") or "",
            snippet=raw.get("snippet") or "",
            link=raw.get("link") or "",
            image=image,
            next_start_index=next_start_index,
            has_more=has_more,
        )

    def is_configured(self) -> bool:
        return bool(
            self.settings.api_key.get_secret_value() and self.settings.search_engine_id
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()
