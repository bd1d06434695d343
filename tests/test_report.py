from datetime import date

import pytest

from backend.economics import DailyLog, LoggedAssignment, daily_pnl_rows, export_report_to_csv, export_report_to_excel
from backend.economics.report import REPORT_COLUMNS, daily_pnl, report_frame


def _log(day: int, patients: float = 10, reimb: float = 150.0, fixed: float = 300.0) -> DailyLog:
    return DailyLog(
        id=f"log-{day}",
        work_date=date(2025, 3, day),
        patients_seen=patients,
        avg_reimbursement=reimb,
        daily_fixed_cost=fixed,
        assignments=[
            LoggedAssignment(staff_id="doc", hours_worked=4, hourly_rate=100.0),
            LoggedAssignment(staff_id="rn", hours_worked=2.5, hourly_rate=40.0),
        ],
    )


class TestDailyPnL:
    def test_uses_snapshotted_rates(self):
        row = daily_pnl(_log(3))
        assert row.labor_cost == pytest.approx(500.0)
        assert row.total_cost == pytest.approx(800.0)
        assert row.total_revenue == pytest.approx(1500.0)
        assert row.profit == pytest.approx(700.0)
        assert row.margin_pct == pytest.approx(700 / 1500 * 100)

    def test_margin_absent_without_revenue(self):
        row = daily_pnl(_log(3, patients=0))
        assert row.margin_pct is None
        assert row.profit == pytest.approx(-800.0)

    def test_rows_newest_first_and_limited(self):
        logs = [_log(2), _log(9), _log(5)]
        rows = daily_pnl_rows(logs, limit=2)
        assert [r.work_date.day for r in rows] == [9, 5]

    def test_no_limit(self):
        assert len(daily_pnl_rows([_log(1), _log(2)], limit=None)) == 2


class TestExport:
    def test_frame_columns(self):
        frame = report_frame(daily_pnl_rows([_log(4)]))
        assert list(frame.columns) == REPORT_COLUMNS
        assert frame.iloc[0]["Date"] == "2025-03-04"
        assert frame.iloc[0]["Profit"] == pytest.approx(700.0)

    def test_csv(self):
        text = export_report_to_csv(daily_pnl_rows([_log(4), _log(5)]))
        lines = text.strip().splitlines()
        assert lines[0] == ",".join(REPORT_COLUMNS)
        assert lines[1].startswith("2025-03-05")
        assert len(lines) == 3

    def test_excel_bytes_and_file(self, tmp_path):
        target = tmp_path / "pnl.xlsx"
        data = export_report_to_excel(daily_pnl_rows([_log(4)]), file_path=str(target))
        assert data[:2] == b"PK"
        assert target.read_bytes() == data

    def test_excel_with_no_rows(self):
        assert export_report_to_excel([])[:2] == b"PK"
