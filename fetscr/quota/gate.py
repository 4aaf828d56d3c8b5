"""Quota admission and usage reconciliation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..models.account import Account
from ..utils.errors import PersistenceError, QuotaExceededError
from ..utils.logging import get_logger

if TYPE_CHECKING:
    from ..storage.base import AccountStore

logger = get_logger(__name__)


class QuotaGate:
    """Admits searches against an account's allowance and bills completed ones.

    In the default mode admission only reads the snapshot and the increment
    happens at commit, after the upstream fetches. Two concurrent searches for
    an account with one slot left can therefore both be admitted. With
    ``strict_reservation`` the slot is taken at admission by a conditional
    increment in the store, which closes that window; a request abandoned
    after admission then stays charged.
    """

    def __init__(self, store: AccountStore, strict_reservation: bool = False):
        self.store = store
        self.strict_reservation = strict_reservation

    async def check_and_reserve(self, account: Account) -> None:
        """Admit a search or raise QuotaExceededError.

        Raises:
            QuotaExceededError: When the account has no queries left.
            PersistenceError: When a strict reservation cannot be written.
        """
        if account.queries_used >= account.allowed_queries:
            self._deny(account)

        if self.strict_reservation and not await self.store.reserve_usage(account.id):
            self._deny(account)

    async def commit(self, account_id: str, result_count: int, query_text: str) -> None:
        """Bill one completed search and append its audit record.

        The usage increment must succeed; its PersistenceError propagates so
        the caller is never told an unbilled search succeeded. A failed audit
        append is logged and otherwise ignored.
        """
        if not self.strict_reservation:
            await self.store.increment_usage(account_id)

        try:
            await self.store.append_usage_record(account_id, query_text, result_count)
        except PersistenceError as e:
            logger.error(
                f"Usage record for account {account_id} was not written "
                f"(usage already billed): {e}"
            )

    def _deny(self, account: Account) -> None:
        logger.info(
            f"Quota exhausted for account {account.id}: "
            f"{account.queries_used}/{account.allowed_queries}"
        )
        raise QuotaExceededError(
            account.id,
            allowed_queries=account.allowed_queries,
            queries_used=account.queries_used,
        )
