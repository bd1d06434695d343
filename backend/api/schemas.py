from __future__ import annotations

from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class StaffOut(BaseModel):
    id: str
    name: str
    role: str
    hourly_rate: float
    default_daily_hours: Optional[float] = None
    active: bool = True


class AssignmentIn(BaseModel):
    staff_id: str
    hours: float = Field(default=0.0, ge=0)


class TargetIn(BaseModel):
    mode: Literal["margin", "amount"] = "margin"
    value: float = 20.0


class CostContextOut(BaseModel):
    work_date: Optional[date] = None
    daily_fixed_cost: float
    avg_reimbursement: float


class CalculatorRequest(BaseModel):
    work_date: Optional[date] = None
    patients_seen: float = Field(default=0.0, ge=0)
    assignments: List[AssignmentIn] = Field(default_factory=list)
    target: TargetIn = Field(default_factory=TargetIn)
    avg_reimbursement_override: Optional[float] = Field(default=None, ge=0)


class DailyResultOut(BaseModel):
    labor_cost: float
    materials_cost: float
    total_cost: float
    revenue_so_far: float
    profit_now: float
    patients_needed: Optional[float]
    target_met: bool = False
    avg_reimbursement: float
    daily_fixed_cost: float


class SaveDayRequest(BaseModel):
    work_date: date
    patients_seen: float = Field(default=0.0, ge=0)
    assignments: List[AssignmentIn] = Field(default_factory=list)
    avg_reimbursement_override: Optional[float] = Field(default=None, ge=0)


class SaveDayResponse(BaseModel):
    id: str
    work_date: date


class DailyPnLOut(BaseModel):
    work_date: date
    patients_seen: float
    labor_cost: float
    fixed_cost: float
    total_cost: float
    total_revenue: float
    profit: float
    margin_pct: Optional[float] = None
