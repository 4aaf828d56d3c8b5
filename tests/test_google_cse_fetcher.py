"""Tests for the Google Custom Search page fetcher."""

import httpx
import pytest

from fetscr.config import GoogleSearchSettings
from fetscr.providers.google_cse import GoogleCSEFetcher
from fetscr.utils.errors import MissingConfigurationError
from fetscr.utils.metrics import FetchMetrics
from fetscr.utils.retry import RetryConfig

API_URL = "https://www.googleapis.com/customsearch/v1"


def make_body(count=10, start=1, next_start=11):
    body = {
        "items": [
            {
                "title": f"Result {start + i}",
                "snippet": f"Snippet {start + i}",
                "link": f"https://example.com/{start + i}",
                "pagemap": {"cse_thumbnail": [{"src": f"https://img/{start + i}.png"}]},
            }
            for i in range(count)
        ]
    }
    if next_start is not None:
        body["queries"] = {"nextPage": [{"startIndex": next_start}]}
    return body


@pytest.fixture
def google_settings():
    return GoogleSearchSettings(api_key="test_key", search_engine_id="test_cx")


@pytest.fixture
def fetch_metrics():
    return FetchMetrics()


@pytest.fixture
def fetcher(google_settings, fetch_metrics):
    return GoogleCSEFetcher(
        google_settings,
        retry_config=RetryConfig(max_retries=0, jitter=False),
        metrics=fetch_metrics,
    )


class TestConfiguration:
    def test_requires_api_key(self):
        with pytest.raises(MissingConfigurationError) as exc_info:
            GoogleCSEFetcher(GoogleSearchSettings(search_engine_id="cx"))

        assert exc_info.value.details["config_key"] == "google__api_key"

    def test_requires_search_engine_id(self):
        with pytest.raises(MissingConfigurationError) as exc_info:
            GoogleCSEFetcher(GoogleSearchSettings(api_key="key"))

        assert exc_info.value.details["config_key"] == "google__search_engine_id"

    def test_is_configured(self, fetcher):
        assert fetcher.is_configured() is True

    def test_reads_settings_from_environment(self, mock_env):
        fetcher = GoogleCSEFetcher()

        assert fetcher.settings.api_key.get_secret_value() == "test_google_key"
        assert fetcher.settings.search_engine_id == "test_cx"


class TestFetchPage:
    @pytest.mark.asyncio
    async def test_sends_credentials_query_and_offset(self, respx_mock, fetcher):
        route = respx_mock.get(API_URL).mock(
            return_value=httpx.Response(200, json=make_body())
        )

        await fetcher.fetch_page("coffee beans", 11)

        params = route.calls.last.request.url.params
        assert params["key"] == "test_key"
        assert params["cx"] == "test_cx"
        assert params["q"] == "coffee beans"
        assert params["start"] == "11"

    @pytest.mark.asyncio
    async def test_normalizes_items(self, respx_mock, fetcher, fetch_metrics):
        respx_mock.get(API_URL).mock(return_value=httpx.Response(200, json=make_body()))

        page = await fetcher.fetch_page("coffee")

        assert len(page.items) == 10
        first = page.items[0]
        assert first.title == "Result 1"
        assert first.snippet == "Snippet 1"
        assert first.link == "https://example.com/1"
        assert first.image == "https://img/1.png"
        assert first.next_start_index == 11
        assert first.has_more is True
        assert page.next_start_index == 11
        assert page.has_more is True
        assert page.error is None
        assert fetch_metrics.pages_fetched == 1
        assert fetch_metrics.pages_degraded == 0

    @pytest.mark.asyncio
    async def test_missing_thumbnail_gives_empty_image(self, respx_mock, fetcher):
        body = {"items": [{"title": "No image", "link": "https://example.com"}]}
        respx_mock.get(API_URL).mock(return_value=httpx.Response(200, json=body))

        page = await fetcher.fetch_page("coffee")

        assert page.items[0].image == ""
        assert page.items[0].snippet == ""

    @pytest.mark.asyncio
    async def test_absent_cursor_ends_pagination(self, respx_mock, fetcher):
        respx_mock.get(API_URL).mock(
            return_value=httpx.Response(200, json=make_body(count=4, next_start=None))
        )

        page = await fetcher.fetch_page("coffee")

        assert len(page.items) == 4
        assert page.next_start_index == 1
        assert page.has_more is False

    @pytest.mark.parametrize("next_start,has_more", [(91, True), (100, True), (101, False)])
    @pytest.mark.asyncio
    async def test_cursor_ceiling(self, respx_mock, fetcher, next_start, has_more):
        respx_mock.get(API_URL).mock(
            return_value=httpx.Response(200, json=make_body(next_start=next_start))
        )

        page = await fetcher.fetch_page("coffee", 81)

        assert page.next_start_index == next_start
        assert page.has_more is has_more

    @pytest.mark.asyncio
    async def test_no_items_key_is_empty_not_degraded(self, respx_mock, fetcher, fetch_metrics):
        respx_mock.get(API_URL).mock(
            return_value=httpx.Response(200, json={"searchInformation": {}})
        )

        page = await fetcher.fetch_page("zzzz")

        assert page.is_empty
        assert page.has_more is False
        assert page.error is None
        assert fetch_metrics.pages_degraded == 0

    @pytest.mark.parametrize("status", [400, 403, 429, 500, 503])
    @pytest.mark.asyncio
    async def test_http_error_degrades_to_empty(self, respx_mock, fetcher, fetch_metrics, status):
        respx_mock.get(API_URL).mock(return_value=httpx.Response(status))

        page = await fetcher.fetch_page("coffee")

        assert page.is_empty
        assert page.has_more is False
        assert page.error.startswith("http_status")
        assert fetch_metrics.degraded_by_reason == {"http_status": 1}

    @pytest.mark.asyncio
    async def test_transport_error_degrades_to_empty(self, respx_mock, fetcher, fetch_metrics):
        respx_mock.get(API_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        page = await fetcher.fetch_page("coffee")

        assert page.is_empty
        assert page.error.startswith("transport")
        assert fetch_metrics.degraded_by_reason == {"transport": 1}

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>not json</html>"),
            httpx.Response(200, json=["not", "an", "object"]),
            httpx.Response(200, json={"items": "not a list"}),
        ],
    )
    @pytest.mark.asyncio
    async def test_malformed_body_degrades_to_empty(
        self, respx_mock, fetcher, fetch_metrics, response
    ):
        respx_mock.get(API_URL).mock(return_value=response)

        page = await fetcher.fetch_page("coffee")

        assert page.is_empty
        assert page.has_more is False
        assert fetch_metrics.degraded_by_reason == {"malformed": 1}


class TestRetry:
    @pytest.mark.asyncio
    async def test_retries_retryable_status(self, respx_mock, google_settings, fetch_metrics):
        fetcher = GoogleCSEFetcher(
            google_settings,
            retry_config=RetryConfig(max_retries=2, base_delay=0.01, jitter=False),
            metrics=fetch_metrics,
        )
        route = respx_mock.get(API_URL).mock(
            side_effect=[httpx.Response(503), httpx.Response(200, json=make_body())]
        )

        page = await fetcher.fetch_page("coffee")

        assert route.call_count == 2
        assert len(page.items) == 10
        assert fetch_metrics.pages_degraded == 0

    @pytest.mark.asyncio
    async def test_does_not_retry_client_errors(self, respx_mock, google_settings, fetch_metrics):
        fetcher = GoogleCSEFetcher(
            google_settings,
            retry_config=RetryConfig(max_retries=2, base_delay=0.01, jitter=False),
            metrics=fetch_metrics,
        )
        route = respx_mock.get(API_URL).mock(return_value=httpx.Response(403))

        page = await fetcher.fetch_page("coffee")

        assert route.call_count == 1
        assert page.is_empty

    @pytest.mark.asyncio
    async def test_exhausted_retries_degrade(self, respx_mock, google_settings, fetch_metrics):
        fetcher = GoogleCSEFetcher(
            google_settings,
            retry_config=RetryConfig(max_retries=1, base_delay=0.01, jitter=False),
            metrics=fetch_metrics,
        )
        route = respx_mock.get(API_URL).mock(return_value=httpx.Response(500))

        page = await fetcher.fetch_page("coffee")

        assert route.call_count == 2
        assert page.is_empty
        assert fetch_metrics.pages_degraded == 1

    @pytest.mark.asyncio
    async def test_retries_connection_errors(self, respx_mock, google_settings, fetch_metrics):
        fetcher = GoogleCSEFetcher(
            google_settings,
            retry_config=RetryConfig(max_retries=2, base_delay=0.01, jitter=False),
            metrics=fetch_metrics,
        )
        route = respx_mock.get(API_URL).mock(
            side_effect=[
                httpx.ConnectError("connection refused"),
                httpx.Response(200, json=make_body()),
            ]
        )

        page = await fetcher.fetch_page("coffee")

        assert route.call_count == 2
        assert len(page.items) == 10

    @pytest.mark.parametrize(
        "error",
        [httpx.UnsupportedProtocol("bad scheme"), httpx.TooManyRedirects("loop")],
    )
    @pytest.mark.asyncio
    async def test_does_not_retry_permanent_transport_errors(
        self, respx_mock, google_settings, fetch_metrics, error
    ):
        fetcher = GoogleCSEFetcher(
            google_settings,
            retry_config=RetryConfig(max_retries=3, base_delay=0.01, jitter=False),
            metrics=fetch_metrics,
        )
        route = respx_mock.get(API_URL).mock(side_effect=error)

        page = await fetcher.fetch_page("coffee")

        assert route.call_count == 1
        assert page.is_empty
        assert fetch_metrics.degraded_by_reason == {"transport": 1}

@pytest.mark.asyncio
async def test_close_closes_client(google_settings):
    client = httpx.AsyncClient()
    fetcher = GoogleCSEFetcher(google_settings, client=client)

    await fetcher.close()

    assert client.is_closed
