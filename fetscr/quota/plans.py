"""Plan resolution: plan id to (allowed_queries, results_per_query)."""

from ..models.account import PlanLimits, PlanType

ENTERPRISE_QUERY_BOUNDS = (1, 10000)
ENTERPRISE_RESULT_BOUNDS = (1, 100)

FIXED_PLANS: dict[PlanType, PlanLimits] = {
    PlanType.FREE: PlanLimits(allowed_queries=2, results_per_query=5),
    PlanType.SUB1: PlanLimits(allowed_queries=30, results_per_query=20),
    PlanType.SUB2: PlanLimits(allowed_queries=30, results_per_query=50),
    PlanType.SUB3: PlanLimits(allowed_queries=30, results_per_query=25),
    PlanType.SUB4: PlanLimits(allowed_queries=20, results_per_query=50),
}

# Unrecognized plans get no quota at all
ZERO_PLAN = PlanLimits(allowed_queries=0, results_per_query=0)


def clamp(value: int, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return max(low, min(high, value))


def resolve_plan(
    plan_id: str | PlanType,
    requested_queries: int = 0,
    requested_results: int = 0,
) -> PlanLimits:
    """Resolve a plan id to its limits.

    Fixed tiers ignore the requested values. Enterprise takes the requested
    values clamped to its bounds. Anything else resolves to a zero-quota plan.
    """
    plan = plan_id if isinstance(plan_id, PlanType) else PlanType.parse(plan_id)

    if plan == PlanType.ENTERPRISE:
        return PlanLimits(
            allowed_queries=clamp(int(requested_queries), ENTERPRISE_QUERY_BOUNDS),
            results_per_query=clamp(int(requested_results), ENTERPRISE_RESULT_BOUNDS),
        )

    return FIXED_PLANS.get(plan, ZERO_PLAN).model_copy()
