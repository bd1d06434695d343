from __future__ import annotations

from typing import Mapping, Optional, Sequence

from .model import Assignment, CostContext, DailyResult, StaffMember, Target

# Placeholder for a third cost category; always zero for now.
MATERIALS_COST = 0.0


def compute_labor_cost(
    assignments: Sequence[Assignment],
    staff_by_id: Mapping[str, StaffMember],
) -> float:
    """
    Sum rate x hours for each assignment whose staff id is in the lookup.
    Assignments pointing at unknown staff are skipped.
    """
    total = 0.0
    for assignment in assignments:
        staff = staff_by_id.get(assignment.staff_id)
        if staff is None:
            continue
        total += float(staff.hourly_rate) * float(assignment.hours or 0)
    return total


def _patients_for_target(total_cost: float, avg_reimbursement: float, target: Target) -> Optional[float]:
    if avg_reimbursement <= 0:
        return None
    if target.mode == "margin":
        denom = 1 - target.value / 100
        if denom <= 0:
            return None
        return total_cost / (avg_reimbursement * denom)
    return (total_cost + target.value) / avg_reimbursement


def compute_daily_result(
    labor_cost: float,
    daily_fixed_cost: float,
    avg_reimbursement: float,
    patients_seen: float,
    target: Target,
) -> DailyResult:
    total_cost = labor_cost + daily_fixed_cost + MATERIALS_COST
    revenue_so_far = (patients_seen or 0) * avg_reimbursement
    return DailyResult(
        labor_cost=labor_cost,
        materials_cost=MATERIALS_COST,
        total_cost=total_cost,
        revenue_so_far=revenue_so_far,
        profit_now=revenue_so_far - total_cost,
        patients_needed=_patients_for_target(total_cost, avg_reimbursement, target),
    )


def calculate_day(
    assignments: Sequence[Assignment],
    staff_by_id: Mapping[str, StaffMember],
    costs: CostContext,
    patients_seen: float,
    target: Target,
) -> DailyResult:
    labor_cost = compute_labor_cost(assignments, staff_by_id)
    return compute_daily_result(
        labor_cost,
        costs.daily_fixed_cost,
        costs.avg_reimbursement,
        patients_seen,
        target,
    )
