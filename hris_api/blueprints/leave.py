# hris_api/blueprints/leave.py
from flask import Blueprint, request

from hris_api.common.auth import roles_required
from hris_api.common.http import ok
from hris_api.common.paging import page_size, paginate, sort_param
from hris_api.models.leave import LeaveRequest
from hris_api.models.user import Role, User
from hris_api.services import leave_service as svc
from hris_api.services.identity import resolve_actor

bp = Blueprint("leave", __name__, url_prefix="/api/leave-requests")

REQUESTER_ROLES = (Role.EMPLOYEE, Role.ADMIN_HR)
REVIEWER_ROLES = (Role.ADMIN_HR, Role.MANAGER)


def _payload():
    """JSON body, or form fields plus the ``photo`` file for multipart requests."""
    if request.mimetype == "multipart/form-data":
        return request.form.to_dict(), request.files.get("photo")
    return request.get_json(silent=True, force=True) or {}, None


def _row(x: LeaveRequest):
    emp = x.employee
    return {
        "id": x.id,
        "employee_name": emp.name if emp else None,
        "department": emp.department.name if emp and emp.department else None,
        "start_date": x.start_date.isoformat(),
        "end_date": x.end_date.isoformat(),
        "total_days": x.total_days,
        "reason": x.reason,
        "status": x.status.value,
        "has_photo": bool(x.photo),
        "created_at": x.created_at.isoformat() if x.created_at else None,
    }


def _detail(x: LeaveRequest):
    return {
        **_row(x),
        "employee_id": x.employee_id,
        "reviewed_by": x.reviewed_by,
        "reviewer_name": x.reviewer.name if x.reviewer else None,
        "reviewed_at": x.reviewed_at.isoformat() if x.reviewed_at else None,
        "reviewer_note": x.reviewer_note,
        "photo": x.photo,
        "updated_at": x.updated_at.isoformat() if x.updated_at else None,
    }


@bp.post("")
@roles_required(*REQUESTER_ROLES)
def submit(current_user: User):
    data, photo = _payload()
    leave = svc.submit_leave(resolve_actor(current_user), data, photo)
    return ok(_detail(leave), 201, message="Leave request submitted")


@bp.get("/me")
@roles_required(*REQUESTER_ROLES)
def my_requests(current_user: User):
    qry = svc.own_leave_query(resolve_actor(current_user), request.args.get("status"), request.args.get("period"))
    qry = qry.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
    page, size = page_size(max_size=50)
    items, meta = paginate(qry, page, size)
    return ok([_detail(x) for x in items], **meta)


@bp.get("")
@roles_required(*REVIEWER_ROLES)
def list_requests(current_user: User):
    qry = svc.leave_query(resolve_actor(current_user), request.args)
    qry = qry.order_by(sort_param(svc.SORTABLE, "created_at"), LeaveRequest.id.desc())
    page, size = page_size()
    items, meta = paginate(qry, page, size)
    filters = {
        k: request.args.get(k)
        for k in ("status", "employee_id", "period", "search", "department",
                  "date_from", "date_to", "min_days", "max_days")
    }
    return ok([_row(x) for x in items], **meta, filters=filters)


@bp.get("/<int:leave_id>")
@roles_required(Role.ADMIN_HR, Role.MANAGER, Role.EMPLOYEE)
def show(current_user: User, leave_id: int):
    leave = svc.get_leave(leave_id)
    svc.ensure_can_view(resolve_actor(current_user), leave)
    return ok(_detail(leave))


@bp.put("/<int:leave_id>")
@roles_required(*REQUESTER_ROLES)
def update(current_user: User, leave_id: int):
    data, photo = _payload()
    leave = svc.update_own_leave(resolve_actor(current_user), svc.get_leave(leave_id), data, photo)
    return ok(_detail(leave), message="Leave request updated")


@bp.delete("/<int:leave_id>")
@roles_required(*REQUESTER_ROLES)
def delete(current_user: User, leave_id: int):
    svc.delete_own_leave(resolve_actor(current_user), svc.get_leave(leave_id))
    return ok({"id": leave_id}, message="Leave request deleted")


@bp.patch("/<int:leave_id>/review")
@roles_required(*REVIEWER_ROLES)
def review(current_user: User, leave_id: int):
    data = request.get_json(silent=True, force=True) or {}
    leave = svc.review_leave(
        resolve_actor(current_user), svc.get_leave(leave_id),
        data.get("status"), data.get("reviewer_note"),
    )
    return ok(_detail(leave), message=f"Leave request {leave.status.value.lower()}")
