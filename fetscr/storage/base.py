"""Account store interface.

The store owns accounts and the usage audit trail. The engine reads account
snapshots and asks the store for increments; it never caches mutable state
across requests. Implementations must make ``increment_usage`` and
``reserve_usage`` atomic at the storage layer, since engine instances in
different processes share nothing but the store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models.account import Account, PlanLimits, PlanType, UsageRecord
from ..quota.plans import resolve_plan


class AccountStore(ABC):
    """Persistent record store for accounts and usage records."""

    async def initialize(self) -> None:
        """Prepare the backing storage (create tables, open pools)."""
        return None

    async def close(self) -> None:
        """Release any held resources."""
        return None

    @abstractmethod
    async def find_account(self, account_id: str) -> Account | None:
        """Return a snapshot of the account, or None if it does not exist."""
        ...

    @abstractmethod
    async def create_account(
        self,
        account_id: str | None = None,
        plan_type: str = PlanType.FREE.value,
        limits: PlanLimits | None = None,
    ) -> Account:
        """Create an account with zero usage on the given plan."""
        ...

    @abstractmethod
    async def increment_usage(self, account_id: str) -> None:
        """Atomically add one to ``queries_used``."""
        ...

    @abstractmethod
    async def reserve_usage(self, account_id: str) -> bool:
        """Atomically add one to ``queries_used`` only while it is below the allowance.

        Returns:
            True if a slot was reserved, False if the account is at its limit.

        Raises:
            PersistenceError: If the account does not exist.
        """
        ...

    @abstractmethod
    async def update_plan(
        self, account_id: str, plan_type: str, limits: PlanLimits
    ) -> None:
        """Switch the account's plan and reset ``queries_used`` to 0."""
        ...

    @abstractmethod
    async def append_usage_record(
        self, account_id: str, query_text: str, result_count: int
    ) -> UsageRecord:
        """Append one audit row."""
        ...

    @abstractmethod
    async def list_usage_records(self, account_id: str) -> list[UsageRecord]:
        """Return the account's audit rows, most recent first."""
        ...

    @staticmethod
    def default_limits(plan_type: str) -> PlanLimits:
        return resolve_plan(plan_type)
