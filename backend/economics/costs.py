from __future__ import annotations

from typing import Iterable, Optional

from .model import CostContext, FixedCost

# Multiplier from one period's amount to a per-day amount.
DAILY_FACTORS = {
    "daily": 1.0,
    "weekly": 1.0 / 7,
    "monthly": 12.0 / 365,
    "quarterly": 4.0 / 365,
    "yearly": 1.0 / 365,
}


def daily_amount(cost: FixedCost) -> float:
    factor = DAILY_FACTORS.get(cost.frequency)
    if factor is None:
        raise ValueError(f"Unknown cost frequency: {cost.frequency!r}")
    return float(cost.amount or 0) * factor


def daily_fixed_total(costs: Iterable[FixedCost]) -> float:
    return sum((daily_amount(c) for c in costs if c.active), 0.0)


def resolve_reimbursement(default: Optional[float], override: Optional[float] = None) -> float:
    """Day-specific override wins over the clinic-wide default."""
    if override is not None:
        return float(override)
    return float(default or 0)


def build_cost_context(
    costs: Iterable[FixedCost],
    default_reimbursement: Optional[float],
    override: Optional[float] = None,
) -> CostContext:
    return CostContext(
        daily_fixed_cost=daily_fixed_total(costs),
        avg_reimbursement=resolve_reimbursement(default_reimbursement, override),
    )
