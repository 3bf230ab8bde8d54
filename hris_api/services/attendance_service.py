# hris_api/services/attendance_service.py
from __future__ import annotations

import logging
from datetime import date, datetime, time

from sqlalchemy.exc import IntegrityError

from hris_api.common.errors import Conflict, PreconditionFailed, ValidationFailed
from hris_api.common.paging import float_arg, int_arg, search_filter, text_q
from hris_api.common.periods import month_bounds
from hris_api.extensions import db
from hris_api.models.attendance import Attendance
from hris_api.models.employee import Employee
from hris_api.models.master import Department
from hris_api.models.user import User
from hris_api.services.identity import Actor, subject_id

log = logging.getLogger(__name__)


def _as_dt(v) -> datetime:
    return v if isinstance(v, datetime) else datetime.combine(date.min, v)


def compute_work_hour(check_in: time | datetime | None, check_out: time | datetime | None) -> float:
    """Whole minutes between check-in and check-out, as hours to 2 decimals. No break deduction."""
    if check_in is None or check_out is None:
        return 0.0
    minutes = int((_as_dt(check_out) - _as_dt(check_in)).total_seconds() // 60)
    return round(max(minutes, 0) / 60, 2)


def format_work_hour(hours) -> str:
    """8.5 -> '08:30'"""
    total = int(round(float(hours or 0) * 60))
    return f"{total // 60:02d}:{total % 60:02d}"


def _day_row(sid: int, day: date) -> Attendance | None:
    return Attendance.query.filter_by(employee_id=sid, date=day).first()


def check_in(actor: Actor, now: datetime | None = None) -> Attendance:
    sid = subject_id(actor)
    now = now or datetime.now()
    row = _day_row(sid, now.date())
    if row and row.check_in_time:
        raise Conflict("You have already checked in today")
    if not row:
        row = Attendance(employee_id=sid, date=now.date(), work_hour=0)
        db.session.add(row)
    row.check_in_time = now.time().replace(microsecond=0)
    try:
        db.session.commit()
    except IntegrityError:
        # a concurrent check-in already inserted today's row
        db.session.rollback()
        log.warning("duplicate check-in subject=%s date=%s", sid, now.date())
        raise Conflict("You have already checked in today")
    log.info("check-in subject=%s date=%s at %s", sid, row.date, row.check_in_time)
    return row


def check_out(actor: Actor, now: datetime | None = None) -> Attendance:
    sid = subject_id(actor)
    now = now or datetime.now()
    row = _day_row(sid, now.date())
    if not row or not row.check_in_time:
        raise PreconditionFailed("You have not checked in today", code="NOT_CHECKED_IN")
    if row.check_out_time:
        raise Conflict("You have already checked out today")
    out = now.time().replace(microsecond=0)
    if out < row.check_in_time:
        raise ValidationFailed({"check_out_time": ["Check-out cannot be earlier than check-in."]})
    row.check_out_time = out
    row.work_hour = compute_work_hour(row.check_in_time, out)
    db.session.commit()
    log.info("check-out subject=%s date=%s work_hour=%s", sid, row.date, row.work_hour)
    return row


def _apply_month(qry, month):
    if not month:
        return qry
    bounds = month_bounds(month)
    if bounds is None:
        raise ValidationFailed({"month": ["The month must be in YYYY-MM format."]})
    lo, hi = bounds
    return qry.filter(Attendance.date >= lo, Attendance.date <= hi)


def own_attendance_query(actor: Actor, month=None):
    qry = Attendance.query.filter(Attendance.employee_id == subject_id(actor))
    return _apply_month(qry, month)


def attendance_query(actor: Actor, args):
    """AdminHR sees every row; a Manager only rows of the departments it manages."""
    qry = (
        Attendance.query
        .outerjoin(Employee, Employee.id == Attendance.employee_id)
        .outerjoin(User, User.id == Employee.user_id)
        .outerjoin(Department, Department.id == Employee.department_id)
    )
    if actor.is_manager:
        qry = qry.filter(Employee.department_id.in_(sorted(actor.managed_department_ids)))

    emp_id = int_arg(args, "employee_id")
    if emp_id is not None:
        qry = qry.filter(Attendance.employee_id == emp_id)
    qry = _apply_month(qry, args.get("month"))

    s = text_q(args)
    if s:
        qry = qry.filter(search_filter(s, User.name, User.email, Employee.employee_code, Employee.position))
    dept = (args.get("department") or "").strip()
    if dept:
        qry = qry.filter(Department.name.ilike(f"%{dept}%"))

    lo, hi = float_arg(args, "min_hours"), float_arg(args, "max_hours")
    if lo is not None:
        qry = qry.filter(Attendance.work_hour >= lo)
    if hi is not None:
        qry = qry.filter(Attendance.work_hour <= hi)
    return qry


SORTABLE = {
    "date": Attendance.date,
    "work_hour": Attendance.work_hour,
    "check_in_time": Attendance.check_in_time,
    "employee_name": User.name,
    "created_at": Attendance.created_at,
}
