# hris_api/blueprints/departments.py
from __future__ import annotations

import logging

from flask import Blueprint, request

from hris_api.common.auth import login_required, roles_required
from hris_api.common.errors import Conflict, NotFound, ValidationFailed
from hris_api.common.http import ok
from hris_api.common.paging import page_size, paginate, search_filter, sort_param, text_q
from hris_api.extensions import db
from hris_api.models.master import Department
from hris_api.models.user import Role, User

log = logging.getLogger(__name__)

bp = Blueprint("departments", __name__, url_prefix="/api/departments")

MANAGER_ROLES = (Role.MANAGER, Role.ADMIN_HR)


# ---------- row shape ----------
def _manager(u):
    return {"id": u.id, "name": u.name, "email": u.email} if u else None


def _row(x: Department):
    return {
        "id": x.id,
        "name": x.name,
        "description": x.description,
        "manager": _manager(x.manager),
        "employee_count": x.employees.count(),
    }


def _detail(x: Department):
    return {
        **_row(x),
        "manager_id": x.manager_id,
        "created_at": x.created_at.isoformat() if x.created_at else None,
        "updated_at": x.updated_at.isoformat() if x.updated_at else None,
    }


def _get(dep_id: int) -> Department:
    x = db.session.get(Department, dep_id)
    if not x:
        raise NotFound("Department not found")
    return x


def _clean(data: dict, current: Department | None = None) -> dict:
    errors, out = {}, {}
    if "name" in data or current is None:
        name = (str(data.get("name") or "")).strip()
        if not name:
            errors["name"] = ["The name field is required."]
        elif len(name) > 100:
            errors["name"] = ["The name may not be greater than 100 characters."]
        else:
            dup = Department.query.filter(db.func.lower(Department.name) == name.lower())
            if current is not None:
                dup = dup.filter(Department.id != current.id)
            if dup.first():
                raise Conflict("A department with the same name already exists")
        out["name"] = name
    if "description" in data:
        out["description"] = data.get("description")
    if "manager_id" in data:
        mid = data.get("manager_id")
        if mid in (None, ""):
            out["manager_id"] = None
        else:
            try:
                mgr = db.session.get(User, int(mid))
            except (TypeError, ValueError):
                mgr = None
            if mgr is None or mgr.role not in MANAGER_ROLES:
                errors["manager_id"] = ["The manager must be a user with the manager or admin_hr role."]
            else:
                out["manager_id"] = mgr.id
    if errors:
        raise ValidationFailed(errors)
    return out


# ---------- routes ----------
@bp.get("")
@login_required
def list_departments(current_user: User):
    qry = Department.query.outerjoin(User, User.id == Department.manager_id)
    s = text_q()
    if s:
        qry = qry.filter(search_filter(s, Department.name, Department.description, User.name))

    allowed = {
        "name": Department.name,
        "manager": User.name,
        "created_at": Department.created_at,
    }
    qry = qry.order_by(sort_param(allowed, "name", "asc"))
    page, size = page_size()
    items, meta = paginate(qry, page, size)
    return ok([_row(i) for i in items], **meta)


@bp.get("/<int:dep_id>")
@login_required
def get_department(current_user: User, dep_id: int):
    return ok(_detail(_get(dep_id)))


@bp.post("")
@roles_required(Role.ADMIN_HR)
def create_department(current_user: User):
    data = request.get_json(silent=True, force=True) or {}
    obj = Department(**_clean(data))
    db.session.add(obj)
    db.session.commit()
    log.info("department created id=%s name=%s", obj.id, obj.name)
    return ok(_detail(obj), 201, message="Department created")


@bp.put("/<int:dep_id>")
@roles_required(Role.ADMIN_HR)
def update_department(current_user: User, dep_id: int):
    obj = _get(dep_id)
    data = request.get_json(silent=True, force=True) or {}
    for k, v in _clean(data, current=obj).items():
        setattr(obj, k, v)
    db.session.commit()
    return ok(_detail(obj), message="Department updated")


@bp.delete("/<int:dep_id>")
@roles_required(Role.ADMIN_HR)
def delete_department(current_user: User, dep_id: int):
    obj = _get(dep_id)
    if obj.employees.count():
        raise Conflict("Department still has employees and cannot be deleted")
    db.session.delete(obj)
    db.session.commit()
    log.info("department deleted id=%s", dep_id)
    return ok({"id": dep_id}, message="Department deleted")
