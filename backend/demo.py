from __future__ import annotations

from datetime import date, timedelta

from backend import clinic_db
from backend.economics import (
    Assignment,
    FixedCost,
    LoggedAssignment,
    StaffMember,
    Target,
    calculate_day,
    daily_pnl_rows,
    export_report_to_excel,
)


def build_sample_staff():
    staff = [
        StaffMember(id="dr-patel", name="Dr. Patel", role="Physician", hourly_rate=135.0, default_daily_hours=9),
        StaffMember(id="dr-ng", name="Dr. Ng", role="Physician", hourly_rate=128.0),
        StaffMember(id="lee", name="Jordan Lee", role="PA", hourly_rate=62.0, default_daily_hours=8),
        StaffMember(id="ortiz", name="Sam Ortiz", role="RN", hourly_rate=44.0, default_daily_hours=10),
        StaffMember(id="kim", name="Alex Kim", role="MA", hourly_rate=21.5),
        StaffMember(id="brooks", name="Casey Brooks", role="Xray Tech", hourly_rate=29.0, default_daily_hours=6),
        StaffMember(id="reyes", name="Morgan Reyes", role="Front Desk", hourly_rate=18.0),
        StaffMember(id="hale", name="Taylor Hale", role="Admin", hourly_rate=24.0, active=False),
    ]
    return staff


def build_fixed_costs():
    return [
        FixedCost(id="rent", name="Rent", amount=9125.0, frequency="monthly"),
        FixedCost(id="malpractice", name="Malpractice insurance", amount=18250.0, frequency="yearly"),
        FixedCost(id="utilities", name="Utilities", amount=420.0, frequency="weekly"),
        FixedCost(id="ehr", name="EHR license", amount=2400.0, frequency="quarterly"),
        FixedCost(id="old-lease", name="Old copier lease", amount=300.0, frequency="monthly", active=False),
    ]


def seed(start: date, days: int = 5) -> None:
    clinic_db.init_db()
    staff = build_sample_staff()
    for member in staff:
        clinic_db.save_staff(member)
    for cost in build_fixed_costs():
        clinic_db.save_fixed_cost(cost)
    clinic_db.set_default_reimbursement(145.0)

    lookup = {s.id: s for s in staff}
    crew = ["dr-patel", "lee", "ortiz", "kim", "reyes"]
    for offset in range(days):
        work_date = start + timedelta(days=offset)
        costs = clinic_db.load_cost_context(work_date)
        clinic_db.save_daily_log(
            work_date,
            patients_seen=28 + 3 * offset,
            assignments=[
                LoggedAssignment(staff_id=sid, hours_worked=lookup[sid].default_daily_hours or 8, hourly_rate=lookup[sid].hourly_rate)
                for sid in crew
            ],
            avg_reimbursement=costs.avg_reimbursement,
            daily_fixed_cost=costs.daily_fixed_cost,
        )


def main():
    today = date.today()
    seed(today - timedelta(days=5))

    lookup = clinic_db.get_staff_lookup()
    costs = clinic_db.load_cost_context(today)
    picked = [Assignment("dr-patel", 9), Assignment("ortiz", 10), Assignment("kim", 8), Assignment("reyes", 8)]
    result = calculate_day(picked, lookup, costs, patients_seen=12, target=Target.margin(20))
    print(
        f"Labor ${result.labor_cost:,.2f}, fixed ${costs.daily_fixed_cost:,.2f}, "
        f"profit now ${result.profit_now:,.2f}, patients for 20% margin={result.patients_needed}"
    )

    rows = daily_pnl_rows(clinic_db.list_daily_logs())
    data = export_report_to_excel(rows, file_path="daily_pnl_demo.xlsx")
    print(f"Exported {len(rows)} days, bytes={len(data)}")


if __name__ == "__main__":
    main()
