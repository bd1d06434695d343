# Expose main calculator API.
from .engine import MATERIALS_COST, calculate_day, compute_daily_result, compute_labor_cost
from .costs import build_cost_context, daily_amount, daily_fixed_total, resolve_reimbursement
from .model import (
    Assignment,
    CostContext,
    DailyLog,
    DailyPnL,
    DailyResult,
    FixedCost,
    LoggedAssignment,
    StaffMember,
    Target,
)
from .report import daily_pnl_rows, export_report_to_csv, export_report_to_excel

__all__ = [
    "MATERIALS_COST",
    "calculate_day",
    "compute_daily_result",
    "compute_labor_cost",
    "build_cost_context",
    "daily_amount",
    "daily_fixed_total",
    "resolve_reimbursement",
    "Assignment",
    "CostContext",
    "DailyLog",
    "DailyPnL",
    "DailyResult",
    "FixedCost",
    "LoggedAssignment",
    "StaffMember",
    "Target",
    "daily_pnl_rows",
    "export_report_to_csv",
    "export_report_to_excel",
]
