"""Search engine: quota-checked, billed, aggregated searches.

The engine is the single entry point the tool, HTTP and CLI surfaces call.
A search runs expansion, account lookup, quota admission, aggregation and
commit in that order, so invalid requests, unknown accounts and exhausted
quotas are all rejected before any upstream call.
"""

from __future__ import annotations

from .aggregation import Aggregator, compose_query, expand_query, is_keyword_request
from .config import AppSettings, get_settings
from .models.account import Account, PlanType, UsageRecord
from .models.search import AggregatedResult, PlanSummary, SearchMode, SearchResponse
from .providers.base import PageFetcher
from .quota import QuotaGate, resolve_plan
from .storage.base import AccountStore
from .utils.errors import (
    AccountNotFoundError,
    InvalidRequestError,
    MissingConfigurationError,
)
from .utils.logging import get_logger, log_search
from .utils.metrics import FetchMetrics, fetch_metrics

logger = get_logger(__name__)


def audit_query_text(query: str | None, keywords: str | None) -> str:
    """Text recorded in the usage record for a search."""
    if is_keyword_request(keywords):
        return f"{query or ''} - {keywords}"
    return compose_query(query, keywords)


def summarize_plan(account: Account) -> PlanSummary:
    return PlanSummary(
        plan_type=account.plan_type,
        allowed_queries=account.allowed_queries,
        queries_used=account.queries_used,
        queries_remaining=account.queries_remaining,
        results_per_query=account.results_per_query,
    )


class SearchEngine:
    """Orchestrates searches, plan changes and history for accounts."""

    def __init__(
        self,
        store: AccountStore,
        fetcher: PageFetcher | None = None,
        settings: AppSettings | None = None,
        metrics: FetchMetrics | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.fetcher = fetcher
        self.aggregator = (
            Aggregator(fetcher, self.settings.pagination) if fetcher else None
        )
        self.gate = QuotaGate(
            store, strict_reservation=self.settings.quota.strict_reservation
        )
        self.metrics = metrics or fetch_metrics

    async def search(
        self, account_id: str, query: str | None, keywords: str | None = ""
    ) -> SearchResponse:
        """Run a search for an account and bill it once.

        Raises:
            InvalidRequestError: Nothing to search for.
            AccountNotFoundError: Unknown account.
            QuotaExceededError: The account has no queries left.
            PersistenceError: Usage could not be recorded.
        """
        sub_queries = expand_query(query, keywords)
        if self.aggregator is None:
            raise MissingConfigurationError(
                "google__api_key", "No upstream search provider is configured"
            )
        account = await self._require_account(account_id)
        await self.gate.check_and_reserve(account)

        aggregated = await self.aggregator.aggregate(
            sub_queries, account.results_per_query
        )

        await self.gate.commit(
            account.id, aggregated.result_count, audit_query_text(query, keywords)
        )
        self.metrics.record_search(aggregated.result_count)
        log_search(
            logger,
            account.id,
            aggregated.mode.value,
            aggregated.result_count,
            aggregated.upstream_errors,
        )

        updated = await self._require_account(account.id)
        return self._build_response(aggregated, updated)

    async def get_plan(self, account_id: str) -> PlanSummary:
        """Return the account's active plan and remaining quota."""
        return summarize_plan(await self._require_account(account_id))

    async def change_plan(
        self,
        account_id: str,
        plan: str,
        queries: int = 0,
        results_per_query: int = 0,
    ) -> PlanSummary:
        """Switch an account to a plan, resetting its usage.

        Unrecognized plan ids are stored as-is with a zero quota.
        """
        plan = (plan or "").strip()
        if not plan:
            raise InvalidRequestError("Missing plan", field="plan")

        await self._require_account(account_id)
        limits = resolve_plan(plan, queries, results_per_query)
        await self.store.update_plan(account_id, plan, limits)

        if PlanType.parse(plan) == PlanType.UNKNOWN:
            logger.warning(f"Account {account_id} moved to unrecognized plan '{plan}'")
        logger.info(
            f"Account {account_id} plan set to {plan}: "
            f"{limits.allowed_queries} queries, {limits.results_per_query} results"
        )
        return await self.get_plan(account_id)

    async def search_history(self, account_id: str) -> list[UsageRecord]:
        """Return the account's searches, most recent first."""
        await self._require_account(account_id)
        return await self.store.list_usage_records(account_id)

    async def close(self) -> None:
        if self.fetcher is not None:
            await self.fetcher.close()
        await self.store.close()

    async def _require_account(self, account_id: str) -> Account:
        account = await self.store.find_account(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    @staticmethod
    def _build_response(
        aggregated: AggregatedResult, account: Account
    ) -> SearchResponse:
        keyword_mode = aggregated.mode == SearchMode.KEYWORD
        return SearchResponse(
            mode=aggregated.mode,
            results=None if keyword_mode else aggregated.results,
            results_by_keyword=aggregated.results_by_keyword if keyword_mode else None,
            count=aggregated.result_count,
            complete=aggregated.complete,
            incomplete_keywords=aggregated.incomplete_keywords,
            upstream_errors=aggregated.upstream_errors,
            queries_used=account.queries_used,
            queries_remaining=account.queries_remaining,
            plan_type=account.plan_type,
            allowed_queries=account.allowed_queries,
            results_per_query=account.results_per_query,
        )
