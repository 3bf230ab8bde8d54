# hris_api/blueprints/employees.py
from flask import Blueprint, request

from hris_api.common.auth import roles_required
from hris_api.common.http import ok
from hris_api.common.paging import page_size, paginate, sort_param, text_q
from hris_api.models.employee import Employee
from hris_api.models.user import Role, User
from hris_api.services import employee_service as svc
from hris_api.services.identity import resolve_actor, target_for_employee
from hris_api.services.policies import ensure, may_view_employee

bp = Blueprint("employees", __name__, url_prefix="/api/employees")


def _row(e: Employee):
    u, d = e.user, e.department
    return {
        "id": e.id,
        "employee_code": e.employee_code,
        "name": u.name if u else None,
        "email": u.email if u else None,
        "role": u.role.value if u else None,
        "position": e.position,
        "department": d.name if d else None,
        "join_date": e.join_date.isoformat() if e.join_date else None,
        "employment_status": e.employment_status.value,
    }


def _detail(e: Employee):
    d = e.department
    return {
        **_row(e),
        "user_id": e.user_id,
        "department_id": e.department_id,
        "department_manager": {"id": d.manager.id, "name": d.manager.name} if d and d.manager else None,
        "contact": e.contact,
        "status_active": e.user.status_active if e.user else None,
        "created_at": e.created_at.isoformat() if e.created_at else None,
        "updated_at": e.updated_at.isoformat() if e.updated_at else None,
    }


@bp.get("")
@roles_required(Role.ADMIN_HR, Role.MANAGER)
def list_employees(current_user: User):
    actor = resolve_actor(current_user)
    qry = svc.employee_query(actor, request.args)
    qry = qry.order_by(sort_param(svc.SORTABLE, "name", "asc"))
    page, size = page_size()
    items, meta = paginate(qry, page, size)
    filters = {k: request.args.get(k) for k in ("search", "department", "employment_status", "position")}
    return ok([_row(e) for e in items], **meta, filters=filters)


@bp.get("/managers")
@roles_required(Role.ADMIN_HR, Role.MANAGER)
def list_managers(current_user: User):
    rows = svc.managers_query(text_q()).all()
    return ok([{"id": u.id, "name": u.name, "email": u.email} for u in rows])


@bp.get("/<int:employee_id>")
@roles_required(Role.ADMIN_HR, Role.MANAGER, Role.EMPLOYEE)
def get_employee(current_user: User, employee_id: int):
    emp = svc.get_employee(employee_id)
    ensure(may_view_employee(resolve_actor(current_user), target_for_employee(emp)), "view employee")
    return ok(_detail(emp))


@bp.post("")
@roles_required(Role.ADMIN_HR)
def create_employee(current_user: User):
    data = request.get_json(silent=True, force=True) or {}
    emp = svc.create_employee(data)
    return ok(_detail(emp), 201, message="Employee created")


@bp.put("/<int:employee_id>")
@roles_required(Role.ADMIN_HR)
def update_employee(current_user: User, employee_id: int):
    data = request.get_json(silent=True, force=True) or {}
    emp = svc.update_employee(svc.get_employee(employee_id), data)
    return ok(_detail(emp), message="Employee updated")


@bp.delete("/<int:employee_id>")
@roles_required(Role.ADMIN_HR)
def delete_employee(current_user: User, employee_id: int):
    svc.delete_employee(svc.get_employee(employee_id))
    return ok({"id": employee_id}, message="Employee deleted")
