from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Tuple

from .model import PHYSICIAN, Assignment, StaffMember

DEFAULT_HOURS = 8.0

Selection = Tuple[Assignment, ...]


def default_hours_for(staff: Optional[StaffMember]) -> float:
    if staff is not None and staff.default_daily_hours is not None:
        return float(staff.default_daily_hours)
    return DEFAULT_HOURS


def resolve_hours(requested: Optional[float], staff: Optional[StaffMember]) -> float:
    # Zero or blank falls through to the staff default, then to 8h.
    if requested:
        return float(requested)
    if staff is not None and staff.default_daily_hours:
        return float(staff.default_daily_hours)
    return DEFAULT_HOURS


def split_roster(staff: Iterable[StaffMember]) -> Tuple[List[StaffMember], List[StaffMember]]:
    """Active staff split into (physicians, everyone else)."""
    physicians: List[StaffMember] = []
    others: List[StaffMember] = []
    for member in staff:
        if member.active is False:
            continue
        if member.role == PHYSICIAN:
            physicians.append(member)
        else:
            others.append(member)
    return physicians, others


def available(staff: Iterable[StaffMember], picked: Sequence[Assignment]) -> List[StaffMember]:
    taken = {a.staff_id for a in picked}
    return [s for s in staff if s.id not in taken]


def pick(picked: Sequence[Assignment], staff_id: str, hours: float) -> Selection:
    if not staff_id or any(a.staff_id == staff_id for a in picked):
        return tuple(picked)
    return tuple(picked) + (Assignment(staff_id=staff_id, hours=hours),)


def set_hours(picked: Sequence[Assignment], staff_id: str, hours: float) -> Selection:
    return tuple(
        Assignment(staff_id=a.staff_id, hours=hours) if a.staff_id == staff_id else a
        for a in picked
    )


def unpick(picked: Sequence[Assignment], staff_id: str) -> Selection:
    return tuple(a for a in picked if a.staff_id != staff_id)
