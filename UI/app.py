from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple
from pathlib import Path
import sys

import pandas as pd
import streamlit as st  # type: ignore[import]

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend import clinic_db
from backend.economics import (
    Assignment,
    CostContext,
    StaffMember,
    Target,
    calculate_day,
    daily_pnl_rows,
    export_report_to_csv,
    export_report_to_excel,
)
from backend.economics.costs import resolve_reimbursement
from backend.economics.report import report_frame
from backend.economics.roster import (
    available,
    default_hours_for,
    pick,
    resolve_hours,
    set_hours,
    split_roster,
    unpick,
)

st.set_page_config(page_title="Clinic Daily P&L", layout="wide")
st.title("Clinic Daily P&L")


def init_defaults() -> None:
    defaults = {
        "work_date": date.today(),
        "patients_seen": 0.0,
        "target_type": "margin",
        "target_margin": 20.0,
        "target_amount": 0.0,
        "use_override": False,
        "reimb_override": 0.0,
        "picked_physicians": (),
        "picked_others": (),
        "report_days": 30,
    }
    for key, value in defaults.items():
        st.session_state.setdefault(key, value)


init_defaults()
clinic_db.init_db()

staff: List[StaffMember] = clinic_db.list_staff()
staff_by_id: Dict[str, StaffMember] = {s.id: s for s in staff}
physicians, others = split_roster(staff)


def money(value: Optional[float]) -> str:
    if value is None:
        return "—"
    return f"${value:,.2f}"


def staff_label(member: StaffMember, with_role: bool = False) -> str:
    role = f" ({member.role})" if with_role else ""
    return (
        f"{member.name}{role} — ${member.hourly_rate:,.2f}/hr "
        f"(default {default_hours_for(member):g}h)"
    )


def _sync_default_hours(select_key: str, hours_key: str) -> None:
    member = staff_by_id.get(st.session_state.get(select_key) or "")
    st.session_state[hours_key] = default_hours_for(member)


def staff_card(title: str, pool: List[StaffMember], state_key: str, prefix: str, with_role: bool) -> None:
    """Add/edit/remove flow for one group of staff on today's crew."""
    picked: Tuple[Assignment, ...] = st.session_state[state_key]
    st.subheader(title)

    options = [""] + [s.id for s in available(pool, picked)]
    select_key = f"{prefix}_to_add"
    hours_key = f"{prefix}_hours"
    st.session_state.setdefault(hours_key, 8.0)
    col_pick, col_hours, col_add = st.columns([3, 1, 1])
    with col_pick:
        selected = st.selectbox(
            f"Select {prefix}…",
            options=options,
            format_func=lambda sid: staff_label(staff_by_id[sid], with_role) if sid else "—",
            key=select_key,
            on_change=_sync_default_hours,
            args=(select_key, hours_key),
        )
    with col_hours:
        requested = st.number_input("Hours", min_value=0.0, step=0.25, key=hours_key)
    with col_add:
        st.write("")
        if st.button(f"Add {prefix}", key=f"add_{prefix}", disabled=not selected):
            hours = resolve_hours(requested, staff_by_id.get(selected))
            st.session_state[state_key] = pick(picked, selected, hours)
            st.rerun()

    if not picked:
        st.caption(f"No {prefix} added yet.")
        return

    for assignment in picked:
        member = staff_by_id.get(assignment.staff_id)
        col_name, col_h, col_remove = st.columns([3, 1, 1])
        with col_name:
            if member is None:
                st.markdown(f"~~{assignment.staff_id}~~ (no longer on roster)")
            else:
                suffix = f" · {member.role}" if with_role else ""
                st.markdown(f"**{member.name}**{suffix}  \n${member.hourly_rate:,.2f}/hr")
        with col_h:
            hours = st.number_input(
                "Hours",
                min_value=0.0,
                step=0.25,
                value=float(assignment.hours or 0),
                key=f"{prefix}_h_{assignment.staff_id}",
                label_visibility="collapsed",
            )
            if hours != assignment.hours:
                st.session_state[state_key] = set_hours(st.session_state[state_key], assignment.staff_id, hours)
        with col_remove:
            if st.button("Remove", key=f"{prefix}_rm_{assignment.staff_id}"):
                st.session_state[state_key] = unpick(st.session_state[state_key], assignment.staff_id)
                st.rerun()


def current_target() -> Target:
    if st.session_state["target_type"] == "margin":
        return Target.margin(float(st.session_state["target_margin"] or 0))
    return Target.amount(float(st.session_state["target_amount"] or 0))


def current_costs(work_date: date) -> CostContext:
    costs = clinic_db.load_cost_context(work_date)
    override = float(st.session_state["reimb_override"]) if st.session_state["use_override"] else None
    return CostContext(
        daily_fixed_cost=costs.daily_fixed_cost,
        avg_reimbursement=resolve_reimbursement(costs.avg_reimbursement, override),
    )


def save_day(work_date: date, picks: List[Assignment], costs: CostContext) -> str:
    # Unknown staff raise here, before anything is written.
    log_id = clinic_db.save_daily_log(
        work_date,
        float(st.session_state["patients_seen"] or 0),
        clinic_db.snapshot_assignments(picks, staff_by_id),
        costs.avg_reimbursement,
        costs.daily_fixed_cost,
    )
    if st.session_state["use_override"]:
        clinic_db.set_reimbursement_override(work_date, float(st.session_state["reimb_override"]))
    return log_id


with st.sidebar:
    st.header("Day")
    work_date = st.date_input("Work date", key="work_date")
    st.number_input("Patients seen so far", min_value=0.0, step=1.0, key="patients_seen")
    st.checkbox("Override avg reimbursement for this day", key="use_override")
    if st.session_state["use_override"]:
        st.number_input("Avg reimbursement per visit", min_value=0.0, step=5.0, key="reimb_override")

    st.subheader("Target")
    st.radio(
        "Target type",
        options=["margin", "amount"],
        format_func=lambda v: "Margin %" if v == "margin" else "Profit $",
        key="target_type",
        horizontal=True,
    )
    if st.session_state["target_type"] == "margin":
        st.number_input("Target margin (%)", step=1.0, key="target_margin")
    else:
        st.number_input("Target profit ($)", step=50.0, key="target_amount")


tab_calc, tab_reports = st.tabs(["Calculator", "Reports"])

with tab_calc:
    col_staff, col_numbers = st.columns([3, 2])
    with col_staff:
        with st.container(border=True):
            staff_card("Physicians", physicians, "picked_physicians", "physician", with_role=False)
        with st.container(border=True):
            staff_card("All Other Staff", others, "picked_others", "staff", with_role=True)

    all_picked = list(st.session_state["picked_physicians"]) + list(st.session_state["picked_others"])
    costs = current_costs(work_date)
    result = calculate_day(
        all_picked,
        staff_by_id,
        costs,
        float(st.session_state["patients_seen"] or 0),
        current_target(),
    )

    with col_numbers:
        with st.container(border=True):
            st.subheader("Today")
            m1, m2 = st.columns(2)
            m1.metric("Labor cost", money(result.labor_cost))
            m2.metric("Fixed cost (daily)", money(costs.daily_fixed_cost))
            m1.metric("Total cost", money(result.total_cost))
            m2.metric("Avg reimbursement", money(costs.avg_reimbursement))
            m1.metric("Revenue so far", money(result.revenue_so_far))
            m2.metric("Profit now", money(result.profit_now))

            needed = result.patients_needed
            if needed is None:
                st.info("Patients for target: not computable (set a reimbursement above $0 and a margin below 100%).")
            elif needed <= 0:
                st.success(f"Target already met at zero patients ({needed:.1f}).")
            else:
                st.metric("Patients for target", f"{needed:.1f}")

        if st.button("Save day", type="primary"):
            try:
                log_id = save_day(work_date, all_picked, costs)
                st.success(f"Saved ✔ ({log_id[:8]})")
            except Exception as exc:
                st.error(f"Save failed: {exc}")

with tab_reports:
    st.subheader("Daily P&L")
    days = st.number_input("Days", min_value=1, max_value=365, step=1, key="report_days")
    rows = daily_pnl_rows(clinic_db.list_daily_logs(limit=int(days)), limit=int(days))
    if not rows:
        st.info("No saved days yet.")
    else:
        frame = report_frame(rows)
        st.dataframe(frame, width="stretch", hide_index=True)
        chart_df = pd.DataFrame(
            [{"Date": r.work_date, "Revenue": r.total_revenue, "Total Cost": r.total_cost} for r in rows]
        ).set_index("Date").sort_index()
        st.line_chart(chart_df)
        col_x, col_c = st.columns(2)
        with col_x:
            st.download_button(
                "Download Excel",
                data=export_report_to_excel(rows),
                file_name="daily_pnl.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            )
        with col_c:
            st.download_button(
                "Download CSV",
                data=export_report_to_csv(rows),
                file_name="daily_pnl.csv",
                mime="text/csv",
            )
