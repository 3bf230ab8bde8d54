# hris_api/blueprints/profile.py
from flask import Blueprint

from hris_api.blueprints.auth import user_payload
from hris_api.common.auth import login_required
from hris_api.common.http import ok
from hris_api.models.user import User

bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@bp.get("")
@login_required
def show(current_user: User):
    data = user_payload(current_user)
    emp = current_user.employee
    if emp:
        dept = emp.department
        data["employee"] = {
            "id": emp.id,
            "employee_code": emp.employee_code,
            "position": emp.position,
            "join_date": emp.join_date.isoformat() if emp.join_date else None,
            "employment_status": emp.employment_status.value,
            "contact": emp.contact,
            "department": {
                "id": dept.id,
                "name": dept.name,
                "manager": {"id": dept.manager.id, "name": dept.manager.name, "email": dept.manager.email}
                if dept.manager else None,
            } if dept else None,
        }
    else:
        data["employee"] = None
    return ok(data)
