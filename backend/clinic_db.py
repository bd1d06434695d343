from __future__ import annotations

"""
Clinic storage layer (staff directory, cost ledger, daily logs) with two backends:
- Postgres (recommended for production): set CLINIC_DB_BACKEND=postgres and DATABASE_URL
- JSON file (fallback/dev): default if DATABASE_URL is missing
"""

import json
import logging
import os
import uuid
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from dotenv import load_dotenv

from backend.economics.costs import build_cost_context
from backend.economics.model import (
    FREQUENCIES,
    ROLES,
    Assignment,
    CostContext,
    DailyLog,
    FixedCost,
    LoggedAssignment,
    StaffMember,
)

load_dotenv()

logger = logging.getLogger(__name__)

# Config
DB_BACKEND = os.getenv("CLINIC_DB_BACKEND", "json").lower()
DATABASE_URL = os.getenv("DATABASE_URL")

# JSON defaults
DEFAULT_STORE = Path(__file__).resolve().parent.parent / "clinic_store.json"
STORE_PATH = Path(os.getenv("CLINIC_STORE_PATH", str(DEFAULT_STORE)))


def _now() -> str:
    return datetime.utcnow().isoformat()


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _opt_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


# -----------------------
# Validation
# -----------------------
def _check_staff(member: StaffMember) -> None:
    if not (member.id or "").strip():
        raise ValueError("Staff id is required")
    if member.role not in ROLES:
        raise ValueError(f"Unknown role {member.role!r}; expected one of {', '.join(ROLES)}")
    if member.hourly_rate < 0:
        raise ValueError("Hourly rate must be non-negative")
    if member.default_daily_hours is not None and member.default_daily_hours < 0:
        raise ValueError("Default daily hours must be non-negative")


def _check_fixed_cost(cost: FixedCost) -> None:
    if not (cost.id or "").strip():
        raise ValueError("Fixed cost id is required")
    if cost.frequency not in FREQUENCIES:
        raise ValueError(f"Unknown frequency {cost.frequency!r}; expected one of {', '.join(FREQUENCIES)}")
    if cost.amount < 0:
        raise ValueError("Fixed cost amount must be non-negative")


def _check_log(patients_seen: float, assignments: List[LoggedAssignment]) -> None:
    if patients_seen < 0:
        raise ValueError("Patients seen must be non-negative")
    seen = set()
    for a in assignments:
        if a.staff_id in seen:
            raise ValueError(f"Staff {a.staff_id} is assigned more than once")
        seen.add(a.staff_id)
        if a.hours_worked < 0:
            raise ValueError(f"Hours for {a.staff_id} must be non-negative")


def _staff_sort_key(member: StaffMember):
    return (member.role, member.name.lower())


# -----------------------
# JSON backend helpers
# -----------------------
def _empty_store() -> Dict[str, Any]:
    return {
        "staff": [],
        "fixed_costs": [],
        "settings": {"default_avg_reimb": 0.0},
        "reimbursement_overrides": {},
        "daily_logs": [],
    }


def _load_json() -> Dict[str, Any]:
    if not STORE_PATH.exists():
        return _empty_store()
    try:
        data = json.loads(STORE_PATH.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(f"Could not read clinic store {STORE_PATH}: {exc}; starting empty")
        return _empty_store()
    for key, value in _empty_store().items():
        data.setdefault(key, value)
    return data


def _save_json(data: Dict[str, Any]) -> None:
    STORE_PATH.parent.mkdir(parents=True, exist_ok=True)
    tmp = STORE_PATH.with_suffix(".tmp")
    tmp.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    tmp.replace(STORE_PATH)


def _staff_from_row(row: Dict[str, Any]) -> StaffMember:
    return StaffMember(
        id=str(row["id"]),
        name=row.get("name") or "",
        role=row.get("role") or "",
        hourly_rate=float(row.get("hourly_rate") or 0),
        default_daily_hours=_opt_float(row.get("default_daily_hours")),
        active=row.get("active") is not False,
    )


def _cost_from_row(row: Dict[str, Any]) -> FixedCost:
    return FixedCost(
        id=str(row["id"]),
        name=row.get("name") or "",
        amount=float(row.get("amount") or 0),
        frequency=row.get("frequency") or "monthly",
        active=row.get("active") is not False,
    )


def _log_from_row(row: Dict[str, Any]) -> DailyLog:
    return DailyLog(
        id=str(row["id"]),
        work_date=_as_date(row["work_date"]),
        patients_seen=float(row.get("patients_seen") or 0),
        avg_reimbursement=float(row.get("avg_reimbursement") or 0),
        daily_fixed_cost=float(row.get("daily_fixed_cost") or 0),
        assignments=[
            LoggedAssignment(
                staff_id=str(a["staff_id"]),
                hours_worked=float(a.get("hours_worked") or 0),
                hourly_rate=float(a.get("hourly_rate") or 0),
            )
            for a in row.get("assignments", [])
        ],
    )


class JsonClinicStore:
    def init_db(self):
        if not STORE_PATH.exists():
            _save_json(_empty_store())

    # --- staff directory ---
    def list_staff(self, active_only: bool = False) -> List[StaffMember]:
        staff = [_staff_from_row(r) for r in _load_json()["staff"]]
        if active_only:
            staff = [s for s in staff if s.active]
        return sorted(staff, key=_staff_sort_key)

    def save_staff(self, member: StaffMember) -> None:
        data = _load_json()
        rows = [r for r in data["staff"] if r.get("id") != member.id]
        rows.append(asdict(member))
        data["staff"] = rows
        _save_json(data)

    # --- cost ledger ---
    def list_fixed_costs(self, active_only: bool = False) -> List[FixedCost]:
        costs = [_cost_from_row(r) for r in _load_json()["fixed_costs"]]
        if active_only:
            costs = [c for c in costs if c.active]
        return sorted(costs, key=lambda c: c.name.lower())

    def save_fixed_cost(self, cost: FixedCost) -> None:
        data = _load_json()
        rows = [r for r in data["fixed_costs"] if r.get("id") != cost.id]
        rows.append(asdict(cost))
        data["fixed_costs"] = rows
        _save_json(data)

    def get_default_reimbursement(self) -> float:
        return float(_load_json()["settings"].get("default_avg_reimb") or 0)

    def set_default_reimbursement(self, value: float) -> None:
        data = _load_json()
        data["settings"]["default_avg_reimb"] = float(value)
        _save_json(data)

    def get_reimbursement_override(self, work_date: date) -> Optional[float]:
        return _opt_float(_load_json()["reimbursement_overrides"].get(work_date.isoformat()))

    def set_reimbursement_override(self, work_date: date, value: Optional[float]) -> None:
        data = _load_json()
        overrides = data["reimbursement_overrides"]
        if value is None:
            overrides.pop(work_date.isoformat(), None)
        else:
            overrides[work_date.isoformat()] = float(value)
        _save_json(data)

    # --- daily logs ---
    def save_daily_log(
        self,
        work_date: date,
        patients_seen: float,
        assignments: List[LoggedAssignment],
        avg_reimbursement: float,
        daily_fixed_cost: float,
    ) -> str:
        data = _load_json()
        logs = data["daily_logs"]
        key = work_date.isoformat()
        existing = next((r for r in logs if r.get("work_date") == key), None)
        record = {
            "work_date": key,
            "patients_seen": float(patients_seen),
            "avg_reimbursement": float(avg_reimbursement),
            "daily_fixed_cost": float(daily_fixed_cost),
            "assignments": [asdict(a) for a in assignments],
            "updated_at": _now(),
        }
        if existing:
            existing.update(record)
            log_id = existing["id"]
        else:
            log_id = str(uuid.uuid4())
            logs.append({"id": log_id, "created_at": _now(), **record})
        _save_json(data)
        return log_id

    def list_daily_logs(self, limit: Optional[int] = None) -> List[DailyLog]:
        logs = sorted(
            (_log_from_row(r) for r in _load_json()["daily_logs"]),
            key=lambda log: log.work_date,
            reverse=True,
        )
        return logs[:limit] if limit is not None else logs

    def get_daily_log(self, log_id: str) -> Optional[DailyLog]:
        row = next((r for r in _load_json()["daily_logs"] if r.get("id") == log_id), None)
        return _log_from_row(row) if row else None


# -----------------------
# Postgres backend helpers
# -----------------------
class PostgresClinicStore:
    def __init__(self, dsn: str):
        import psycopg2  # type: ignore

        self.dsn = dsn
        self.psycopg2 = psycopg2

    def _conn(self):
        return self.psycopg2.connect(self.dsn)

    def init_db(self):
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS staff (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                role TEXT NOT NULL,
                hourly_rate NUMERIC NOT NULL DEFAULT 0,
                default_daily_hours NUMERIC,
                active BOOLEAN NOT NULL DEFAULT TRUE
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS fixed_costs (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                amount NUMERIC NOT NULL DEFAULT 0,
                frequency TEXT NOT NULL DEFAULT 'monthly',
                active BOOLEAN NOT NULL DEFAULT TRUE
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS clinic_settings (
                id INTEGER PRIMARY KEY DEFAULT 1,
                default_avg_reimb NUMERIC NOT NULL DEFAULT 0
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS reimbursement_overrides (
                work_date DATE PRIMARY KEY,
                avg_reimb NUMERIC NOT NULL
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS daily_logs (
                id TEXT PRIMARY KEY,
                work_date DATE UNIQUE NOT NULL,
                patients_seen NUMERIC NOT NULL DEFAULT 0,
                avg_reimbursement NUMERIC NOT NULL DEFAULT 0,
                daily_fixed_cost NUMERIC NOT NULL DEFAULT 0,
                created_at TIMESTAMPTZ,
                updated_at TIMESTAMPTZ
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS daily_staff_assignments (
                daily_log_id TEXT NOT NULL REFERENCES daily_logs(id) ON DELETE CASCADE,
                staff_id TEXT NOT NULL,
                hours_worked NUMERIC NOT NULL DEFAULT 0,
                hourly_rate NUMERIC NOT NULL DEFAULT 0,
                PRIMARY KEY (daily_log_id, staff_id)
            );
            """
        )
        conn.commit()
        conn.close()

    # --- staff directory ---
    def list_staff(self, active_only: bool = False) -> List[StaffMember]:
        conn = self._conn()
        cur = conn.cursor()
        sql = "SELECT id, name, role, hourly_rate, default_daily_hours, active FROM staff"
        if active_only:
            sql += " WHERE active"
        cur.execute(sql + " ORDER BY role, lower(name)")
        rows = cur.fetchall()
        conn.close()
        keys = ["id", "name", "role", "hourly_rate", "default_daily_hours", "active"]
        return [_staff_from_row(dict(zip(keys, r))) for r in rows]

    def save_staff(self, member: StaffMember) -> None:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO staff (id, name, role, hourly_rate, default_daily_hours, active)
            VALUES (%s, %s, %s, %s, %s, %s)
            ON CONFLICT (id)
            DO UPDATE SET name = EXCLUDED.name,
                          role = EXCLUDED.role,
                          hourly_rate = EXCLUDED.hourly_rate,
                          default_daily_hours = EXCLUDED.default_daily_hours,
                          active = EXCLUDED.active;
            """,
            (member.id, member.name, member.role, member.hourly_rate, member.default_daily_hours, member.active),
        )
        conn.commit()
        conn.close()

    # --- cost ledger ---
    def list_fixed_costs(self, active_only: bool = False) -> List[FixedCost]:
        conn = self._conn()
        cur = conn.cursor()
        sql = "SELECT id, name, amount, frequency, active FROM fixed_costs"
        if active_only:
            sql += " WHERE active"
        cur.execute(sql + " ORDER BY lower(name)")
        rows = cur.fetchall()
        conn.close()
        keys = ["id", "name", "amount", "frequency", "active"]
        return [_cost_from_row(dict(zip(keys, r))) for r in rows]

    def save_fixed_cost(self, cost: FixedCost) -> None:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO fixed_costs (id, name, amount, frequency, active)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (id)
            DO UPDATE SET name = EXCLUDED.name,
                          amount = EXCLUDED.amount,
                          frequency = EXCLUDED.frequency,
                          active = EXCLUDED.active;
            """,
            (cost.id, cost.name, cost.amount, cost.frequency, cost.active),
        )
        conn.commit()
        conn.close()

    def get_default_reimbursement(self) -> float:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT default_avg_reimb FROM clinic_settings WHERE id=1")
        row = cur.fetchone()
        conn.close()
        return float(row[0]) if row and row[0] is not None else 0.0

    def set_default_reimbursement(self, value: float) -> None:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO clinic_settings (id, default_avg_reimb) VALUES (1, %s)
            ON CONFLICT (id) DO UPDATE SET default_avg_reimb = EXCLUDED.default_avg_reimb;
            """,
            (value,),
        )
        conn.commit()
        conn.close()

    def get_reimbursement_override(self, work_date: date) -> Optional[float]:
        conn = self._conn()
        cur = conn.cursor()
        cur.execute("SELECT avg_reimb FROM reimbursement_overrides WHERE work_date=%s", (work_date,))
        row = cur.fetchone()
        conn.close()
        return _opt_float(row[0]) if row else None

    def set_reimbursement_override(self, work_date: date, value: Optional[float]) -> None:
        conn = self._conn()
        cur = conn.cursor()
        if value is None:
            cur.execute("DELETE FROM reimbursement_overrides WHERE work_date=%s", (work_date,))
        else:
            cur.execute(
                """
                INSERT INTO reimbursement_overrides (work_date, avg_reimb) VALUES (%s, %s)
                ON CONFLICT (work_date) DO UPDATE SET avg_reimb = EXCLUDED.avg_reimb;
                """,
                (work_date, value),
            )
        conn.commit()
        conn.close()

    # --- daily logs ---
    def save_daily_log(
        self,
        work_date: date,
        patients_seen: float,
        assignments: List[LoggedAssignment],
        avg_reimbursement: float,
        daily_fixed_cost: float,
    ) -> str:
        now = datetime.utcnow()
        conn = self._conn()
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO daily_logs (id, work_date, patients_seen, avg_reimbursement, daily_fixed_cost, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (work_date)
            DO UPDATE SET patients_seen = EXCLUDED.patients_seen,
                          avg_reimbursement = EXCLUDED.avg_reimbursement,
                          daily_fixed_cost = EXCLUDED.daily_fixed_cost,
                          updated_at = EXCLUDED.updated_at
            RETURNING id;
            """,
            (str(uuid.uuid4()), work_date, patients_seen, avg_reimbursement, daily_fixed_cost, now, now),
        )
        log_id = cur.fetchone()[0]
        cur.execute("DELETE FROM daily_staff_assignments WHERE daily_log_id=%s", (log_id,))
        for a in assignments:
            cur.execute(
                """
                INSERT INTO daily_staff_assignments (daily_log_id, staff_id, hours_worked, hourly_rate)
                VALUES (%s, %s, %s, %s)
                """,
                (log_id, a.staff_id, a.hours_worked, a.hourly_rate),
            )
        conn.commit()
        conn.close()
        return log_id

    def _fetch_logs(self, where: str = "", params: tuple = (), limit: Optional[int] = None) -> List[DailyLog]:
        conn = self._conn()
        cur = conn.cursor()
        sql = "SELECT id, work_date, patients_seen, avg_reimbursement, daily_fixed_cost FROM daily_logs"
        if where:
            sql += f" WHERE {where}"
        sql += " ORDER BY work_date DESC"
        if limit is not None:
            sql += " LIMIT %s"
            params = params + (limit,)
        cur.execute(sql, params)
        log_rows = cur.fetchall()
        keys = ["id", "work_date", "patients_seen", "avg_reimbursement", "daily_fixed_cost"]
        records = [dict(zip(keys, r)) for r in log_rows]
        for record in records:
            cur.execute(
                "SELECT staff_id, hours_worked, hourly_rate FROM daily_staff_assignments WHERE daily_log_id=%s ORDER BY staff_id",
                (record["id"],),
            )
            record["assignments"] = [
                dict(zip(["staff_id", "hours_worked", "hourly_rate"], r)) for r in cur.fetchall()
            ]
        conn.close()
        return [_log_from_row(r) for r in records]

    def list_daily_logs(self, limit: Optional[int] = None) -> List[DailyLog]:
        return self._fetch_logs(limit=limit)

    def get_daily_log(self, log_id: str) -> Optional[DailyLog]:
        logs = self._fetch_logs("id=%s", (log_id,))
        return logs[0] if logs else None


# -----------------------
# Backend selector
# -----------------------
if DB_BACKEND == "postgres" and DATABASE_URL:
    _backend = PostgresClinicStore(DATABASE_URL)
else:
    if DB_BACKEND == "postgres":
        logger.warning("CLINIC_DB_BACKEND=postgres but DATABASE_URL is not set; using JSON store")
    _backend = JsonClinicStore()


def init_db():
    _backend.init_db()


def list_staff(active_only: bool = False) -> List[StaffMember]:
    return _backend.list_staff(active_only=active_only)


def get_staff_lookup(active_only: bool = False) -> Dict[str, StaffMember]:
    return {s.id: s for s in list_staff(active_only=active_only)}


def snapshot_assignments(
    assignments: Iterable[Assignment],
    staff_by_id: Dict[str, StaffMember],
) -> List[LoggedAssignment]:
    """Attach each staff member's current rate; unknown ids are an error."""
    assignments = list(assignments)
    unknown = [a.staff_id for a in assignments if a.staff_id not in staff_by_id]
    if unknown:
        raise ValueError(f"Unknown staff id(s): {', '.join(unknown)}")
    return [
        LoggedAssignment(
            staff_id=a.staff_id,
            hours_worked=float(a.hours or 0),
            hourly_rate=staff_by_id[a.staff_id].hourly_rate,
        )
        for a in assignments
    ]


def save_staff(member: StaffMember) -> None:
    _check_staff(member)
    _backend.save_staff(member)
    logger.info(f"Saved staff {member.id} ({member.role})")


def list_fixed_costs(active_only: bool = False) -> List[FixedCost]:
    return _backend.list_fixed_costs(active_only=active_only)


def save_fixed_cost(cost: FixedCost) -> None:
    _check_fixed_cost(cost)
    _backend.save_fixed_cost(cost)
    logger.info(f"Saved fixed cost {cost.id} ({cost.frequency})")


def get_default_reimbursement() -> float:
    return _backend.get_default_reimbursement()


def set_default_reimbursement(value: float) -> None:
    if value < 0:
        raise ValueError("Average reimbursement must be non-negative")
    _backend.set_default_reimbursement(value)


def get_reimbursement_override(work_date: date) -> Optional[float]:
    return _backend.get_reimbursement_override(work_date)


def set_reimbursement_override(work_date: date, value: Optional[float]) -> None:
    if value is not None and value < 0:
        raise ValueError("Average reimbursement must be non-negative")
    _backend.set_reimbursement_override(work_date, value)


def load_cost_context(work_date: Optional[date] = None) -> CostContext:
    override = get_reimbursement_override(work_date) if work_date else None
    return build_cost_context(
        list_fixed_costs(active_only=True),
        get_default_reimbursement(),
        override,
    )


def save_daily_log(
    work_date: date,
    patients_seen: float,
    assignments: Iterable[LoggedAssignment],
    avg_reimbursement: float,
    daily_fixed_cost: float,
) -> str:
    assignments = list(assignments)
    _check_log(patients_seen, assignments)
    log_id = _backend.save_daily_log(work_date, patients_seen, assignments, avg_reimbursement, daily_fixed_cost)
    logger.info(f"Saved daily log {log_id} for {work_date.isoformat()} ({len(assignments)} staff)")
    return log_id


def list_daily_logs(limit: Optional[int] = None) -> List[DailyLog]:
    return _backend.list_daily_logs(limit=limit)


def get_daily_log(log_id: str) -> Optional[DailyLog]:
    return _backend.get_daily_log(log_id)
