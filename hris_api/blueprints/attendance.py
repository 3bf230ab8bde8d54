# hris_api/blueprints/attendance.py
from flask import Blueprint, request

from hris_api.common.auth import roles_required
from hris_api.common.http import ok
from hris_api.common.paging import page_size, paginate, sort_param
from hris_api.models.attendance import Attendance
from hris_api.models.user import Role, User
from hris_api.services import attendance_service as svc
from hris_api.services.identity import resolve_actor

bp = Blueprint("attendance", __name__, url_prefix="/api/attendances")

SELF_ROLES = (Role.EMPLOYEE, Role.ADMIN_HR)


def _t(v):
    return v.strftime("%H:%M:%S") if v else None


def _row(a: Attendance):
    emp = a.employee
    return {
        "id": a.id,
        "employee_name": emp.name if emp else None,
        "date": a.date.isoformat(),
        "check_in_time": _t(a.check_in_time),
        "check_out_time": _t(a.check_out_time),
        "work_hour": float(a.work_hour or 0),
        "work_hour_display": svc.format_work_hour(a.work_hour),
    }


def _detail(a: Attendance):
    return {
        **_row(a),
        "employee_id": a.employee_id,
        "created_at": a.created_at.isoformat() if a.created_at else None,
        "updated_at": a.updated_at.isoformat() if a.updated_at else None,
    }


@bp.post("/check-in")
@roles_required(*SELF_ROLES)
def check_in(current_user: User):
    row = svc.check_in(resolve_actor(current_user))
    return ok(_detail(row), 201, message="Checked in")


@bp.post("/check-out")
@roles_required(*SELF_ROLES)
def check_out(current_user: User):
    row = svc.check_out(resolve_actor(current_user))
    return ok(_detail(row), message="Checked out")


@bp.get("/me")
@roles_required(*SELF_ROLES)
def my_attendance(current_user: User):
    qry = svc.own_attendance_query(resolve_actor(current_user), request.args.get("month"))
    qry = qry.order_by(Attendance.date.desc())
    page, size = page_size(max_size=50)
    items, meta = paginate(qry, page, size)
    return ok([_detail(a) for a in items], **meta)


@bp.get("")
@roles_required(Role.ADMIN_HR, Role.MANAGER)
def list_attendance(current_user: User):
    qry = svc.attendance_query(resolve_actor(current_user), request.args)
    qry = qry.order_by(sort_param(svc.SORTABLE, "date"), Attendance.id.desc())
    page, size = page_size()
    items, meta = paginate(qry, page, size)
    filters = {k: request.args.get(k) for k in ("employee_id", "month", "search", "department", "min_hours", "max_hours")}
    return ok([_row(a) for a in items], **meta, filters=filters)
