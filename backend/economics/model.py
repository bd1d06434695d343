"""
Data structures for the daily economics calculator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

PHYSICIAN = "Physician"
ROLES = [PHYSICIAN, "PA", "RN", "LVN", "MA", "Xray Tech", "Front Desk", "Admin"]
FREQUENCIES = ["daily", "weekly", "monthly", "quarterly", "yearly"]
TARGET_MODES = ("margin", "amount")


@dataclass(frozen=True)
class StaffMember:
    id: str
    name: str
    role: str  # one of ROLES
    hourly_rate: float = 0.0
    default_daily_hours: Optional[float] = None
    active: bool = True


@dataclass(frozen=True)
class Assignment:
    staff_id: str
    hours: Optional[float] = 0.0


@dataclass(frozen=True)
class CostContext:
    daily_fixed_cost: float = 0.0
    avg_reimbursement: float = 0.0


@dataclass(frozen=True)
class Target:
    """Profit goal: a margin percentage of revenue or an absolute amount."""

    mode: str
    value: float = 0.0

    def __post_init__(self) -> None:
        if self.mode not in TARGET_MODES:
            raise ValueError(f"Unknown target mode: {self.mode!r}")

    @classmethod
    def margin(cls, percent: float) -> "Target":
        return cls(mode="margin", value=percent)

    @classmethod
    def amount(cls, value: float) -> "Target":
        return cls(mode="amount", value=value)


@dataclass(frozen=True)
class DailyResult:
    labor_cost: float
    materials_cost: float
    total_cost: float
    revenue_so_far: float
    profit_now: float
    # None when the target is not computable; negative when already met.
    patients_needed: Optional[float]


@dataclass(frozen=True)
class FixedCost:
    id: str
    name: str
    amount: float
    frequency: str = "monthly"  # one of FREQUENCIES
    active: bool = True


@dataclass(frozen=True)
class LoggedAssignment:
    staff_id: str
    hours_worked: float
    hourly_rate: float


@dataclass
class DailyLog:
    id: str
    work_date: date
    patients_seen: float
    avg_reimbursement: float
    daily_fixed_cost: float
    assignments: List[LoggedAssignment] = field(default_factory=list)


@dataclass(frozen=True)
class DailyPnL:
    work_date: date
    patients_seen: float
    labor_cost: float
    fixed_cost: float
    total_cost: float
    total_revenue: float
    profit: float
    margin_pct: Optional[float] = None
