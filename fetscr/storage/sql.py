"""SQL account store on the SQLAlchemy async engine.

Usage counters are only ever changed with single UPDATE statements
(``queries_used = queries_used + 1``), so concurrent engine instances in
separate processes stay consistent without in-process locking.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    desc,
    insert,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from ..config import DatabaseSettings, get_settings
from ..models.account import Account, PlanLimits, PlanType, UsageRecord
from ..utils.errors import PersistenceError
from ..utils.logging import get_logger
from .base import AccountStore

logger = get_logger(__name__)

metadata = MetaData()

accounts = Table(
    "accounts",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("plan_type", String(32), nullable=False, default=PlanType.FREE.value),
    Column("allowed_queries", Integer, nullable=False, default=0),
    Column("queries_used", Integer, nullable=False, default=0),
    Column("results_per_query", Integer, nullable=False, default=0),
)

usage_records = Table(
    "usage_records",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "account_id",
        String(64),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("query_text", Text, nullable=False),
    Column("result_count", Integer, nullable=False),
    Column("timestamp", DateTime(timezone=True), nullable=False),
)


class SQLAccountStore(AccountStore):
    """Account store on any SQLAlchemy async dialect (aiosqlite, asyncpg)."""

    def __init__(
        self,
        settings: DatabaseSettings | None = None,
        engine: AsyncEngine | None = None,
    ):
        self.settings = settings or get_settings().database
        self.engine = engine or create_async_engine(
            self.settings.url,
            echo=self.settings.echo,
            pool_pre_ping=True,
        )

    async def initialize(self) -> None:
        """Create tables if they do not exist."""
        async with self._connection("initialize") as conn:
            await conn.run_sync(metadata.create_all)
        logger.info(f"Account store ready ({self.engine.url.get_backend_name()})")

    async def close(self) -> None:
        await self.engine.dispose()

    @asynccontextmanager
    async def _connection(self, operation: str) -> AsyncGenerator[AsyncConnection, None]:
        """Transactional connection; storage failures surface as PersistenceError."""
        try:
            async with self.engine.begin() as conn:
                yield conn
        except PersistenceError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Account store operation '{operation}' failed: {e}")
            raise PersistenceError(operation, original_error=e) from e

    async def find_account(self, account_id: str) -> Account | None:
        async with self._connection("find_account") as conn:
            result = await conn.execute(
                select(accounts).where(accounts.c.id == account_id)
            )
            row = result.mappings().first()
        return Account(**row) if row else None

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
        try:
            async with self._connection("create_account") as conn:
                await conn.execute(insert(accounts).values(**account.model_dump()))
        except PersistenceError as e:
            if isinstance(e.original_error, IntegrityError):
                raise PersistenceError(
                    "create_account",
                    f"Account '{account.id}' already exists",
                    original_error=e.original_error,
                ) from e
            raise
        return account

    async def increment_usage(self, account_id: str) -> None:
        async with self._connection("increment_usage") as conn:
            result = await conn.execute(
                update(accounts)
                .where(accounts.c.id == account_id)
                .values(queries_used=accounts.c.queries_used + 1)
            )
            if result.rowcount != 1:
                raise PersistenceError(
                    "increment_usage", f"Account '{account_id}' does not exist"
                )

    async def reserve_usage(self, account_id: str) -> bool:
        async with self._connection("reserve_usage") as conn:
            result = await conn.execute(
                update(accounts)
                .where(accounts.c.id == account_id)
                .where(accounts.c.queries_used < accounts.c.allowed_queries)
                .values(queries_used=accounts.c.queries_used + 1)
            )
            if result.rowcount == 1:
                return True
            exists = await conn.scalar(
                select(accounts.c.id).where(accounts.c.id == account_id)
            )
            if exists is None:
                raise PersistenceError(
                    "reserve_usage", f"Account '{account_id}' does not exist"
                )
            return False

    async def update_plan(
        self, account_id: str, plan_type: str, limits: PlanLimits
    ) -> None:
        async with self._connection("update_plan") as conn:
            result = await conn.execute(
                update(accounts)
                .where(accounts.c.id == account_id)
                .values(
                    plan_type=plan_type,
                    allowed_queries=limits.allowed_queries,
                    results_per_query=limits.results_per_query,
                    queries_used=0,
                )
            )
            if result.rowcount != 1:
                raise PersistenceError(
                    "update_plan", f"Account '{account_id}' does not exist"
                )

    async def append_usage_record(
        self, account_id: str, query_text: str, result_count: int
    ) -> UsageRecord:
        record = UsageRecord(
            account_id=account_id,
            query_text=query_text,
            result_count=result_count,
            timestamp=datetime.now(UTC),
        )
        async with self._connection("append_usage_record") as conn:
            await conn.execute(insert(usage_records).values(**record.model_dump()))
        return record

    async def list_usage_records(self, account_id: str) -> list[UsageRecord]:
        async with self._connection("list_usage_records") as conn:
            result = await conn.execute(
                select(
                    usage_records.c.account_id,
                    usage_records.c.query_text,
                    usage_records.c.result_count,
                    usage_records.c.timestamp,
                )
                .where(usage_records.c.account_id == account_id)
                .order_by(desc(usage_records.c.timestamp), desc(usage_records.c.id))
            )
            rows = result.mappings().all()
        return [UsageRecord(**row) for row in rows]
