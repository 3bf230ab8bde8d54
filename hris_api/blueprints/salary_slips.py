# hris_api/blueprints/salary_slips.py
from flask import Blueprint, request

from hris_api.common.auth import roles_required
from hris_api.common.http import ok
from hris_api.common.paging import page_size, paginate, sort_param
from hris_api.models.salary_slip import SalarySlip
from hris_api.models.user import Role, User
from hris_api.services import salary_service as svc
from hris_api.services.identity import resolve_actor

bp = Blueprint("salary_slips", __name__, url_prefix="/api/salary-slips")


def _money(v):
    return float(v) if v is not None else 0.0


def _row(s: SalarySlip):
    emp = s.employee
    return {
        "id": s.id,
        "employee_name": emp.name if emp else None,
        "period_month": s.period_month,
        "basic_salary": _money(s.basic_salary),
        "allowance": _money(s.allowance),
        "deduction": _money(s.deduction),
        "total_salary": _money(s.total_salary),
        "remarks": s.remarks,
    }


def _detail(s: SalarySlip):
    return {
        **_row(s),
        "employee_id": s.employee_id,
        "created_by": s.created_by,
        "created_at": s.created_at.isoformat() if s.created_at else None,
        "updated_at": s.updated_at.isoformat() if s.updated_at else None,
    }


@bp.get("")
@roles_required(Role.ADMIN_HR)
def list_slips(current_user: User):
    qry = svc.slip_query(request.args)
    allowed = {"period_month": SalarySlip.period_month, "total_salary": SalarySlip.total_salary,
               "created_at": SalarySlip.created_at}
    qry = qry.order_by(sort_param(allowed, "created_at"), SalarySlip.id.desc())
    page, size = page_size()
    items, meta = paginate(qry, page, size)
    return ok([_row(s) for s in items], **meta)


@bp.get("/me")
@roles_required(Role.ADMIN_HR, Role.MANAGER, Role.EMPLOYEE)
def my_slips(current_user: User):
    qry = svc.own_slip_query(resolve_actor(current_user), request.args.get("period"))
    qry = qry.order_by(SalarySlip.period_month.desc(), SalarySlip.id.desc())
    page, size = page_size(max_size=50)
    items, meta = paginate(qry, page, size)
    return ok([_detail(s) for s in items], **meta)


@bp.get("/<int:slip_id>")
@roles_required(Role.ADMIN_HR, Role.MANAGER, Role.EMPLOYEE)
def show(current_user: User, slip_id: int):
    slip = svc.get_slip(slip_id)
    svc.ensure_can_view(resolve_actor(current_user), slip)
    return ok(_detail(slip))


@bp.post("")
@roles_required(Role.ADMIN_HR)
def create(current_user: User):
    data = request.get_json(silent=True, force=True) or {}
    slip = svc.create_slip(resolve_actor(current_user), data)
    return ok(_detail(slip), 201, message="Salary slip created")


@bp.put("/<int:slip_id>")
@roles_required(Role.ADMIN_HR)
def update(current_user: User, slip_id: int):
    data = request.get_json(silent=True, force=True) or {}
    slip = svc.update_slip(resolve_actor(current_user), svc.get_slip(slip_id), data)
    return ok(_detail(slip), message="Salary slip updated")


@bp.delete("/<int:slip_id>")
@roles_required(Role.ADMIN_HR)
def delete(current_user: User, slip_id: int):
    svc.delete_slip(resolve_actor(current_user), svc.get_slip(slip_id))
    return ok({"id": slip_id}, message="Salary slip deleted")
