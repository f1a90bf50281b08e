"""Staffing reports: hours worked, overtime, ranking, shift coverage, labour cost."""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Dict, List, Tuple

from sqlalchemy import distinct, func
from sqlmodel import Session, select

from app.config import AppConfig
from application.report_params import ReportParams
from domain.ranking import dense_rank
from domain.report import ReportCategory, ReportDefinition, Row
from domain.rota import Assignment, ShiftTemplate, minutes_to_hours
from infrastructure.models import RotaModel, ShiftModel, StaffModel

DEFAULT_OVERTIME_HOURS = 25.0
HOURS_PER_WEEK = 168.0


def _full_name(first_name: str, last_name: str) -> str:
    return f"{first_name} {last_name}".strip()


def _assignments(session: Session, params: ReportParams) -> List[Assignment]:
    stmt = (
        select(
            RotaModel.staff_id,
            StaffModel.first_name,
            StaffModel.last_name,
            ShiftModel.shift_id,
            ShiftModel.start_time,
            ShiftModel.end_time,
            RotaModel.rota_date,
        )
        .select_from(RotaModel)
        .join(StaffModel, StaffModel.staff_id == RotaModel.staff_id)
        .join(ShiftModel, ShiftModel.shift_id == RotaModel.shift_id)
    )
    if params.start:
        stmt = stmt.where(RotaModel.rota_date >= params.start)
    if params.end:
        stmt = stmt.where(RotaModel.rota_date <= params.end)
    stmt = stmt.order_by(RotaModel.rota_date, RotaModel.staff_id)

    return [
        Assignment(
            staff_id=row.staff_id,
            staff_name=_full_name(row.first_name, row.last_name),
            shift=ShiftTemplate(row.shift_id, row.start_time, row.end_time),
            rota_date=row.rota_date,
        )
        for row in session.exec(stmt).all()
    ]


def _weekly_minutes(assignments: List[Assignment]) -> Dict[Tuple[date, str], int]:
    minutes: Dict[Tuple[date, str], int] = defaultdict(int)
    for assignment in assignments:
        minutes[(assignment.week_start, assignment.staff_id)] += assignment.worked_minutes
    return minutes


def _names(assignments: List[Assignment]) -> Dict[str, str]:
    return {assignment.staff_id: assignment.staff_name for assignment in assignments}


def _weekly_rows(assignments: List[Assignment], min_minutes_exclusive: float | None = None) -> List[Row]:
    names = _names(assignments)
    rows: List[Row] = []
    for (week, staff_id), minutes in sorted(_weekly_minutes(assignments).items()):
        if min_minutes_exclusive is not None and minutes <= min_minutes_exclusive:
            continue
        rows.append(
            {
                "staff_id": staff_id,
                "staff_name": names[staff_id],
                "week_start": week,
                "total_worked_hours": minutes_to_hours(minutes),
            }
        )
    return rows


def _total_minutes(assignments: List[Assignment]) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for assignment in assignments:
        totals[assignment.staff_id] += assignment.worked_minutes
    return totals


# Reports --------------------------------------------------------------------
def weekly_hours(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    return _weekly_rows(_assignments(session, params))


def overtime_employees(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    threshold = params.threshold
    if threshold is None:
        threshold = float(settings.staffing.get("overtime_threshold_hours", DEFAULT_OVERTIME_HOURS))
    # compared in whole minutes so rounding never moves a row across the line
    return _weekly_rows(_assignments(session, params), min_minutes_exclusive=threshold * 60)


def hours_rank(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    assignments = _assignments(session, params)
    names = _names(assignments)
    totals = sorted(_total_minutes(assignments).items())
    ranks = dense_rank(minutes for _, minutes in totals)

    rows = [
        {
            "staff_id": staff_id,
            "staff_name": names[staff_id],
            "total_worked_hours": minutes_to_hours(minutes),
            "hours_rank": rank,
        }
        for (staff_id, minutes), rank in zip(totals, ranks)
    ]
    rows.sort(key=lambda row: (row["hours_rank"], row["staff_id"]))
    return rows


def _shift_groups(session: Session, params: ReportParams, *, overlapping: bool) -> List[Row]:
    staff_count = func.count(distinct(RotaModel.staff_id))
    stmt = select(RotaModel.shift_id, RotaModel.rota_date, staff_count.label("staff_count"))
    if params.start:
        stmt = stmt.where(RotaModel.rota_date >= params.start)
    if params.end:
        stmt = stmt.where(RotaModel.rota_date <= params.end)
    stmt = (
        stmt.group_by(RotaModel.shift_id, RotaModel.rota_date)
        .having(staff_count > 1 if overlapping else staff_count <= 1)
        .order_by(RotaModel.rota_date, RotaModel.shift_id)
    )
    return [
        {"shift_id": row.shift_id, "rota_date": row.rota_date, "staff_count": row.staff_count}
        for row in session.exec(stmt).all()
    ]


def shift_overlaps(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    return _shift_groups(session, params, overlapping=True)


def understaffed_shifts(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    return _shift_groups(session, params, overlapping=False)


def staff_cost(session: Session, params: ReportParams, settings: AppConfig) -> List[Row]:
    totals = _total_minutes(_assignments(session, params))
    staff = {member.staff_id: member for member in session.exec(select(StaffModel)).all()}

    rows: List[Row] = []
    for staff_id, minutes in sorted(totals.items()):
        member = staff[staff_id]
        rows.append(
            {
                "staff_id": staff_id,
                "staff_name": _full_name(member.first_name, member.last_name),
                "position": member.position,
                "total_worked_hours": minutes_to_hours(minutes),
                "sal_per_hour": member.sal_per_hour,
                "staff_cost": round(minutes / 60.0 * member.sal_per_hour, 2),
            }
        )
    return rows


_WEEKLY_COLUMNS = ("staff_id", "staff_name", "week_start", "total_worked_hours")
_SHIFT_COLUMNS = ("shift_id", "rota_date", "staff_count")

STAFFING_REPORTS = [
    ReportDefinition(
        name="weekly-hours",
        title="Weekly hours",
        category=ReportCategory.STAFFING,
        description="Hours worked per employee and ISO week (end time minus start time per shift).",
        columns=_WEEKLY_COLUMNS,
        handler=weekly_hours,
    ),
    ReportDefinition(
        name="overtime-employees",
        title="Overtime employees",
        category=ReportCategory.STAFFING,
        description="Employees whose weekly hours exceed the overtime threshold.",
        columns=_WEEKLY_COLUMNS,
        handler=overtime_employees,
        threshold_range=(0.0, HOURS_PER_WEEK),
        threshold_exclusive_low=True,
    ),
    ReportDefinition(
        name="hours-rank",
        title="Hours ranking",
        category=ReportCategory.STAFFING,
        description="Dense rank of employees by total hours worked, most hours first.",
        columns=("staff_id", "staff_name", "total_worked_hours", "hours_rank"),
        handler=hours_rank,
    ),
    ReportDefinition(
        name="shift-overlaps",
        title="Shift overlaps",
        category=ReportCategory.STAFFING,
        description="Shift and date pairs with more than one staff member assigned.",
        columns=_SHIFT_COLUMNS,
        handler=shift_overlaps,
    ),
    ReportDefinition(
        name="understaffed-shifts",
        title="Understaffed shifts",
        category=ReportCategory.STAFFING,
        description="Shift and date pairs with at most one staff member assigned.",
        columns=_SHIFT_COLUMNS,
        handler=understaffed_shifts,
    ),
    ReportDefinition(
        name="staff-cost",
        title="Staff cost",
        category=ReportCategory.STAFFING,
        description="Hours worked times hourly salary per employee.",
        columns=(
            "staff_id",
            "staff_name",
            "position",
            "total_worked_hours",
            "sal_per_hour",
            "staff_cost",
        ),
        handler=staff_cost,
    ),
]
