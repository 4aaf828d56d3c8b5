"""In-process account store."""

import asyncio
import uuid

from ..models.account import Account, PlanLimits, PlanType, UsageRecord
from ..utils.errors import PersistenceError
from .base import AccountStore


class InMemoryAccountStore(AccountStore):
    """Account store backed by dictionaries and guarded by an asyncio lock.

    Atomicity holds within one event loop only; use the SQL store when several
    processes serve the same accounts.
    """

    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._records: list[UsageRecord] = []
        self._lock = asyncio.Lock()

    async def find_account(self, account_id: str) -> Account | None:
        async with self._lock:
            account = self._accounts.get(account_id)
            return account.model_copy() if account else None

    async def create_account(
        self,
        account_id: str | None = None,
        plan_type: str = PlanType.FREE.value,
        limits: PlanLimits | None = None,
    ) -> Account:
        limits = limits or self.default_limits(plan_type)
        account = Account(
            id=account_id or uuid.uuid4().hex,
            plan_type=plan_type,
            allowed_queries=limits.allowed_queries,
            results_per_query=limits.results_per_query,
            queries_used=0,
        )
        async with self._lock:
            if account.id in self._accounts:
                raise PersistenceError(
                    "create_account", f"Account '{account.id}' already exists"
                )
            self._accounts[account.id] = account
        return account.model_copy()

    async def increment_usage(self, account_id: str) -> None:
        async with self._lock:
            account = self._require(account_id, "increment_usage")
            account.queries_used += 1

    async def reserve_usage(self, account_id: str) -> bool:
        async with self._lock:
            account = self._require(account_id, "reserve_usage")
            if account.queries_used >= account.allowed_queries:
                return False
            account.queries_used += 1
            return True

    async def update_plan(
        self, account_id: str, plan_type: str, limits: PlanLimits
    ) -> None:
        async with self._lock:
            account = self._require(account_id, "update_plan")
            account.plan_type = plan_type
            account.allowed_queries = limits.allowed_queries
            account.results_per_query = limits.results_per_query
            account.queries_used = 0

    async def append_usage_record(
        self, account_id: str, query_text: str, result_count: int
    ) -> UsageRecord:
        record = UsageRecord(
            account_id=account_id, query_text=query_text, result_count=result_count
        )
        async with self._lock:
            self._records.append(record)
        return record

    async def list_usage_records(self, account_id: str) -> list[UsageRecord]:
        async with self._lock:
            return [r for r in reversed(self._records) if r.account_id == account_id]

    def _require(self, account_id: str, operation: str) -> Account:
        account = self._accounts.get(account_id)
        if account is None:
            raise PersistenceError(operation, f"Account '{account_id}' does not exist")
        return account
