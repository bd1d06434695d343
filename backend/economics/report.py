from __future__ import annotations

from io import BytesIO
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .engine import compute_daily_result, compute_labor_cost
from .model import Assignment, DailyLog, DailyPnL, StaffMember, Target

REPORT_COLUMNS = [
    "Date",
    "Patients",
    "Labor Cost",
    "Fixed Cost",
    "Total Cost",
    "Revenue",
    "Profit",
    "Margin %",
]


def daily_pnl(log: DailyLog) -> DailyPnL:
    # Rates were snapshotted when the day was saved, so later raises
    # do not rewrite history.
    staff_by_id = {
        a.staff_id: StaffMember(id=a.staff_id, name=a.staff_id, role="", hourly_rate=a.hourly_rate)
        for a in log.assignments
    }
    assignments = [Assignment(staff_id=a.staff_id, hours=a.hours_worked) for a in log.assignments]
    labor_cost = compute_labor_cost(assignments, staff_by_id)
    result = compute_daily_result(
        labor_cost,
        log.daily_fixed_cost,
        log.avg_reimbursement,
        log.patients_seen,
        Target.amount(0),
    )
    margin = (result.profit_now / result.revenue_so_far * 100) if result.revenue_so_far else None
    return DailyPnL(
        work_date=log.work_date,
        patients_seen=log.patients_seen,
        labor_cost=result.labor_cost,
        fixed_cost=log.daily_fixed_cost,
        total_cost=result.total_cost,
        total_revenue=result.revenue_so_far,
        profit=result.profit_now,
        margin_pct=margin,
    )


def daily_pnl_rows(logs: Iterable[DailyLog], limit: Optional[int] = 30) -> List[DailyPnL]:
    """Newest work date first, capped at `limit` rows."""
    rows = sorted((daily_pnl(log) for log in logs), key=lambda r: r.work_date, reverse=True)
    if limit is not None:
        rows = rows[: max(0, limit)]
    return rows


def _report_records(rows: Iterable[DailyPnL]) -> List[Dict[str, object]]:
    return [
        {
            "Date": row.work_date.strftime("%Y-%m-%d"),
            "Patients": row.patients_seen,
            "Labor Cost": round(row.labor_cost, 2),
            "Fixed Cost": round(row.fixed_cost, 2),
            "Total Cost": round(row.total_cost, 2),
            "Revenue": round(row.total_revenue, 2),
            "Profit": round(row.profit, 2),
            "Margin %": round(row.margin_pct, 1) if row.margin_pct is not None else None,
        }
        for row in rows
    ]


def report_frame(rows: Iterable[DailyPnL]) -> pd.DataFrame:
    return pd.DataFrame(_report_records(rows), columns=REPORT_COLUMNS)


def _summary_frame(rows: List[DailyPnL]) -> pd.DataFrame:
    days = len(rows)
    revenue = sum(r.total_revenue for r in rows)
    cost = sum(r.total_cost for r in rows)
    profit = sum(r.profit for r in rows)
    return pd.DataFrame(
        [
            {"Metric": "Days", "Value": days},
            {"Metric": "Patients", "Value": sum(r.patients_seen for r in rows)},
            {"Metric": "Total Revenue", "Value": round(revenue, 2)},
            {"Metric": "Total Cost", "Value": round(cost, 2)},
            {"Metric": "Total Profit", "Value": round(profit, 2)},
            {"Metric": "Average Profit / Day", "Value": round(profit / days, 2) if days else ""},
        ]
    )


def export_report_to_excel(rows: Iterable[DailyPnL], *, file_path: Optional[str] = None) -> bytes:
    """
    Write the daily P&L table to an Excel workbook.
    Returns the bytes buffer; optionally writes to `file_path`.
    """
    rows = list(rows)
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="xlsxwriter") as writer:
        report_df = report_frame(rows)
        report_df.to_excel(writer, sheet_name="Daily P&L", index=False)
        _summary_frame(rows).to_excel(writer, sheet_name="Summary", index=False)

        sheet = writer.sheets["Daily P&L"]
        money = writer.book.add_format({"num_format": "$#,##0.00"})
        sheet.set_column(0, 0, 12)
        sheet.set_column(2, 6, 14, money)

    data = buf.getvalue()
    if file_path:
        with open(file_path, "wb") as f:
            f.write(data)
    return data


def export_report_to_csv(rows: Iterable[DailyPnL]) -> str:
    return report_frame(rows).to_csv(index=False)
