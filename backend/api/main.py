from __future__ import annotations

from dataclasses import asdict
from datetime import date
from typing import List, Optional
import logging
import os

import jwt
from dotenv import load_dotenv
from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

load_dotenv()

from backend import clinic_db
from backend.economics import (
    Assignment,
    CostContext,
    Target,
    calculate_day,
    daily_pnl_rows,
    export_report_to_csv,
    export_report_to_excel,
)
from backend.economics.costs import resolve_reimbursement
from .schemas import (
    CalculatorRequest,
    CostContextOut,
    DailyPnLOut,
    DailyResultOut,
    SaveDayRequest,
    SaveDayResponse,
    StaffOut,
)


API_KEY = os.getenv("API_KEY")
JWT_SECRET = os.getenv("JWT_SECRET")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
REPORT_DAYS = int(os.getenv("REPORT_DAYS", "30"))

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Clinic Daily P&L API", version="0.1.0")
clinic_db.init_db()


@app.middleware("http")
async def add_security_headers(request, call_next):
    response = await call_next(request)
    response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "SAMEORIGIN"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


def _decode_jwt(token: str) -> dict:
    return jwt.decode(token, JWT_SECRET, algorithms=["HS256"], audience=JWT_AUDIENCE)


def require_auth(
    authorization: str = Header(default=None),
    x_api_key: str = Header(default=None, alias="x-api-key"),
) -> dict:
    """
    Accept either a Bearer JWT issued by the managed backend or a matching x-api-key.
    If neither is configured in the environment, allow all.
    """
    if JWT_SECRET and authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
        try:
            return _decode_jwt(token)
        except jwt.PyJWTError as exc:
            logger.warning(f"Rejected bearer token: {exc}")
            raise HTTPException(status_code=401, detail="Invalid token")
    if API_KEY and x_api_key == API_KEY:
        return {"sub": "api-key"}
    if not API_KEY and not JWT_SECRET:
        return {"sub": "public"}
    raise HTTPException(status_code=401, detail="Unauthorized")


router = APIRouter(prefix="/api")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _resolve_costs(work_date: Optional[date], override: Optional[float]) -> CostContext:
    costs = clinic_db.load_cost_context(work_date)
    if override is None:
        return costs
    return CostContext(
        daily_fixed_cost=costs.daily_fixed_cost,
        avg_reimbursement=resolve_reimbursement(costs.avg_reimbursement, override),
    )


@router.get("/health")
def healthcheck() -> dict:
    return {"status": "ok"}


@router.get("/staff", response_model=List[StaffOut], dependencies=[Depends(require_auth)])
def list_staff(active_only: bool = True) -> List[StaffOut]:
    return [StaffOut(**asdict(s)) for s in clinic_db.list_staff(active_only=active_only)]


@router.get("/cost-context", response_model=CostContextOut, dependencies=[Depends(require_auth)])
def cost_context(work_date: Optional[date] = None) -> CostContextOut:
    costs = clinic_db.load_cost_context(work_date)
    return CostContextOut(
        work_date=work_date,
        daily_fixed_cost=costs.daily_fixed_cost,
        avg_reimbursement=costs.avg_reimbursement,
    )


@router.post("/calculator", response_model=DailyResultOut, dependencies=[Depends(require_auth)])
def run_calculator(request: CalculatorRequest) -> DailyResultOut:
    costs = _resolve_costs(request.work_date, request.avg_reimbursement_override)
    assignments = [Assignment(staff_id=a.staff_id, hours=a.hours) for a in request.assignments]
    try:
        target = Target(mode=request.target.mode, value=request.target.value)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    result = calculate_day(
        assignments,
        clinic_db.get_staff_lookup(),
        costs,
        request.patients_seen,
        target,
    )
    needed = result.patients_needed
    return DailyResultOut(
        **asdict(result),
        target_met=needed is not None and request.patients_seen >= needed,
        avg_reimbursement=costs.avg_reimbursement,
        daily_fixed_cost=costs.daily_fixed_cost,
    )


@router.post("/daily-logs", response_model=SaveDayResponse, dependencies=[Depends(require_auth)])
def save_day(request: SaveDayRequest) -> SaveDayResponse:
    costs = _resolve_costs(request.work_date, request.avg_reimbursement_override)
    try:
        logged = clinic_db.snapshot_assignments(
            [Assignment(staff_id=a.staff_id, hours=a.hours) for a in request.assignments],
            clinic_db.get_staff_lookup(),
        )
        log_id = clinic_db.save_daily_log(
            request.work_date,
            request.patients_seen,
            logged,
            costs.avg_reimbursement,
            costs.daily_fixed_cost,
        )
    except ValueError as exc:
        logger.warning(f"Rejected save for {request.work_date}: {exc}")
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    # Only persist the override once the log itself was accepted.
    if request.avg_reimbursement_override is not None:
        clinic_db.set_reimbursement_override(request.work_date, request.avg_reimbursement_override)
    return SaveDayResponse(id=log_id, work_date=request.work_date)


def _report_rows(limit: int):
    if limit < 1:
        raise HTTPException(status_code=400, detail="limit must be at least 1")
    return daily_pnl_rows(clinic_db.list_daily_logs(limit=limit), limit=limit)


@router.get("/reports/daily", response_model=List[DailyPnLOut], dependencies=[Depends(require_auth)])
def daily_report(limit: int = REPORT_DAYS) -> List[DailyPnLOut]:
    return [DailyPnLOut(**asdict(row)) for row in _report_rows(limit)]


@router.get("/reports/daily/export/csv", dependencies=[Depends(require_auth)])
def export_report_csv(limit: int = REPORT_DAYS):
    rows = _report_rows(limit)
    if not rows:
        raise HTTPException(status_code=404, detail="No saved days")
    return PlainTextResponse(
        content=export_report_to_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="daily_pnl.csv"'},
    )


@router.get("/reports/daily/export/xlsx", dependencies=[Depends(require_auth)])
def export_report_xlsx(limit: int = REPORT_DAYS):
    rows = _report_rows(limit)
    if not rows:
        raise HTTPException(status_code=404, detail="No saved days")
    return Response(
        content=export_report_to_excel(rows),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": 'attachment; filename="daily_pnl.xlsx"'},
    )


app.include_router(router)
