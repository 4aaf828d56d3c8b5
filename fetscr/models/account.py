"""Account and plan models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class PlanType(str, Enum):
    """Closed set of plan identifiers."""

    FREE = "free"
    SUB1 = "sub1"
    SUB2 = "sub2"
    SUB3 = "sub3"
    SUB4 = "sub4"
    ENTERPRISE = "enterprise"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str) -> "PlanType":
        """Map a raw plan id to a member by exact match; anything else is UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class PlanLimits(BaseModel):
    """What a plan allows: queries per billing period and results per query."""

    allowed_queries: int = Field(..., ge=0)
    results_per_query: int = Field(..., ge=0)


class Account(BaseModel):
    """Snapshot of an account's plan and usage counters."""

    id: str
    plan_type: str = PlanType.FREE.value
    allowed_queries: int = Field(0, ge=0)
    queries_used: int = Field(0, ge=0)
    results_per_query: int = Field(0, ge=0)

    @property
    def queries_remaining(self) -> int:
        return max(0, self.allowed_queries - self.queries_used)


class UsageRecord(BaseModel):
    """Append-only audit row, one per completed search."""

    account_id: str
    query_text: str
    result_count: int = Field(..., ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
