"""Plan limits and quota enforcement."""

from .gate import QuotaGate
from .plans import FIXED_PLANS, resolve_plan

__all__ = ["FIXED_PLANS", "QuotaGate", "resolve_plan"]
