# hris_api/services/leave_service.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import aliased

from hris_api.common.errors import Conflict, NotFound, ValidationFailed
from hris_api.common.paging import int_arg, search_filter, text_q
from hris_api.common.periods import month_bounds, overlaps, parse_date
from hris_api.extensions import db
from hris_api.models.employee import Employee
from hris_api.models.leave import LeaveRequest, LeaveStatus
from hris_api.models.master import Department
from hris_api.models.user import Role, User
from hris_api.services import notifications, storage
from hris_api.services.identity import Actor, subject_id, target_for_subject
from hris_api.services.policies import ensure, may_modify_own_leave, may_review_leave, may_view_leave

log = logging.getLogger(__name__)

OUTCOMES = {"approve": LeaveStatus.APPROVED, "reject": LeaveStatus.REJECTED}
DEFAULT_NOTES = {
    LeaveStatus.APPROVED: "Leave request has been approved.",
    LeaveStatus.REJECTED: "Leave request has been rejected.",
}
MAX_REASON = 1000
MAX_NOTE = 500


def get_leave(leave_id: int) -> LeaveRequest:
    leave = db.session.get(LeaveRequest, leave_id)
    if not leave:
        raise NotFound("Leave request not found")
    return leave


def _clean(data: dict, current: LeaveRequest | None = None):
    errors = {}
    start = parse_date(data["start_date"]) if "start_date" in data else (current.start_date if current else None)
    end = parse_date(data["end_date"]) if "end_date" in data else (current.end_date if current else None)
    if start is None:
        errors["start_date"] = ["The start date is required and must be a valid date."]
    if end is None:
        errors["end_date"] = ["The end date is required and must be a valid date."]
    if start and end and end < start:
        errors["end_date"] = ["The end date must be a date after or equal to start date."]

    reason = data.get("reason") if "reason" in data else (current.reason if current else None)
    if reason is not None and len(str(reason)) > MAX_REASON:
        errors["reason"] = [f"The reason may not be greater than {MAX_REASON} characters."]
    if errors:
        raise ValidationFailed(errors)
    return start, end, reason


def submit_leave(actor: Actor, data: dict, photo=None) -> LeaveRequest:
    sid = subject_id(actor)
    start, end, reason = _clean(data)
    if photo:
        storage.validate_photo(photo)
    leave = LeaveRequest(
        employee_id=sid,
        start_date=start,
        end_date=end,
        total_days=LeaveRequest.span_days(start, end),
        reason=reason,
        # status is never taken from input
        status=LeaveStatus.PENDING,
    )
    if photo:
        leave.photo = storage.store_photo(photo, prefix=f"leave_{sid}")
    db.session.add(leave)
    db.session.commit()
    log.info("leave submitted id=%s subject=%s %s..%s", leave.id, sid, start, end)
    return leave


def _ensure_modifiable(actor: Actor, leave: LeaveRequest, action: str):
    decision = may_modify_own_leave(subject_id(actor), leave.employee_id, leave.status)
    if decision.reason == "already_reviewed":
        raise Conflict("Cannot modify a leave request that has already been reviewed")
    ensure(decision, action)


def update_own_leave(actor: Actor, leave: LeaveRequest, data: dict, photo=None) -> LeaveRequest:
    _ensure_modifiable(actor, leave, "update leave")
    start, end, reason = _clean(data, current=leave)
    if photo:
        storage.validate_photo(photo)
        # previous file goes first, then the replacement is written
        storage.delete_photo(leave.photo)
        leave.photo = storage.store_photo(photo, prefix=f"leave_{leave.employee_id}")
    leave.start_date = start
    leave.end_date = end
    leave.total_days = LeaveRequest.span_days(start, end)
    leave.reason = reason
    db.session.commit()
    log.info("leave updated id=%s", leave.id)
    return leave


def delete_own_leave(actor: Actor, leave: LeaveRequest):
    _ensure_modifiable(actor, leave, "delete leave")
    storage.delete_photo(leave.photo)
    db.session.delete(leave)
    db.session.commit()
    log.info("leave deleted id=%s", leave.id)


def review_leave(actor: Actor, leave: LeaveRequest, outcome, note=None, now: datetime | None = None) -> LeaveRequest:
    status = OUTCOMES.get((outcome or "").strip().lower())
    if status is None:
        raise ValidationFailed({"status": ["The status must be approve or reject."]})
    if note is not None and len(str(note)) > MAX_NOTE:
        raise ValidationFailed({"reviewer_note": [f"The reviewer note may not be greater than {MAX_NOTE} characters."]})

    target = target_for_subject(leave.employee_id)
    ensure(may_review_leave(actor, target), "review leave")
    if leave.status is not LeaveStatus.PENDING:
        raise Conflict("Leave request has already been reviewed")

    leave.status = status
    leave.reviewed_by = actor.user_id
    leave.reviewed_at = now or datetime.utcnow()
    leave.reviewer_note = note or DEFAULT_NOTES[status]

    if target.user_id is not None:
        kind = notifications.LEAVE_APPROVED if status is LeaveStatus.APPROVED else notifications.LEAVE_REJECTED
        notifications.notify(
            target.user_id, kind,
            f"Your leave request for {leave.start_date:%Y-%m-%d} to {leave.end_date:%Y-%m-%d} "
            f"was {status.value.lower()}.",
        )
    db.session.commit()
    log.info("leave reviewed id=%s status=%s by=%s", leave.id, status.value, actor.user_id)
    return leave


def ensure_can_view(actor: Actor, leave: LeaveRequest):
    ensure(may_view_leave(actor, target_for_subject(leave.employee_id)), "view leave")


def _apply_period(qry, period):
    if not period:
        return qry
    bounds = month_bounds(period)
    if bounds is None:
        raise ValidationFailed({"period": ["The period must be in YYYY-MM format."]})
    return qry.filter(overlaps(LeaveRequest.start_date, LeaveRequest.end_date, *bounds))


def _apply_status(qry, status):
    if not status:
        return qry
    try:
        st = LeaveStatus(status.strip().capitalize())
    except ValueError:
        raise ValidationFailed({"status": ["Unknown leave status."]})
    return qry.filter(LeaveRequest.status == st)


def own_leave_query(actor: Actor, status=None, period=None):
    qry = LeaveRequest.query.filter(LeaveRequest.employee_id == subject_id(actor))
    qry = _apply_status(qry, status)
    return _apply_period(qry, period)


def _owned_by_admin_hr():
    """Rows whose owner is an AdminHR, with or without an employee profile."""
    admin, profile = aliased(User), aliased(Employee)
    profileless_admins = (
        select(admin.id)
        .outerjoin(profile, profile.user_id == admin.id)
        .where(admin.role == Role.ADMIN_HR, profile.id.is_(None))
    )
    return or_(
        User.role == Role.ADMIN_HR,
        and_(Employee.id.is_(None), LeaveRequest.employee_id.in_(profileless_admins)),
    )


def leave_query(actor: Actor, args):
    qry = (
        LeaveRequest.query
        .outerjoin(Employee, Employee.id == LeaveRequest.employee_id)
        .outerjoin(User, User.id == Employee.user_id)
        .outerjoin(Department, Department.id == Employee.department_id)
    )
    if actor.is_manager:
        qry = qry.filter(or_(
            Employee.department_id.in_(sorted(actor.managed_department_ids)),
            _owned_by_admin_hr(),
        ))

    qry = _apply_status(qry, args.get("status"))
    emp_id = int_arg(args, "employee_id")
    if emp_id is not None:
        qry = qry.filter(LeaveRequest.employee_id == emp_id)
    qry = _apply_period(qry, args.get("period"))

    s = text_q(args)
    if s:
        qry = qry.filter(search_filter(
            s, User.name, User.email, Employee.employee_code, Department.name,
            Employee.position, LeaveRequest.reason,
        ))
    dept = (args.get("department") or "").strip()
    if dept:
        qry = qry.filter(Department.name.ilike(f"%{dept}%"))

    lo, hi = parse_date(args.get("date_from")), parse_date(args.get("date_to"))
    if lo and hi:
        qry = qry.filter(overlaps(LeaveRequest.start_date, LeaveRequest.end_date, lo, hi))
    elif lo:
        qry = qry.filter(LeaveRequest.end_date >= lo)
    elif hi:
        qry = qry.filter(LeaveRequest.start_date <= hi)

    min_days, max_days = int_arg(args, "min_days"), int_arg(args, "max_days")
    if min_days is not None:
        qry = qry.filter(LeaveRequest.total_days >= min_days)
    if max_days is not None:
        qry = qry.filter(LeaveRequest.total_days <= max_days)
    return qry


SORTABLE = {
    "created_at": LeaveRequest.created_at,
    "start_date": LeaveRequest.start_date,
    "end_date": LeaveRequest.end_date,
    "status": LeaveRequest.status,
    "total_days": LeaveRequest.total_days,
    "employee_name": User.name,
}
