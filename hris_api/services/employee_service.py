# hris_api/services/employee_service.py
"""
Employee profiles together with their principal. Creating or updating both
happens in one transaction so a principal never ends up half-provisioned.
"""
from __future__ import annotations

import logging
import re

from hris_api.common.errors import Conflict, NotFound, ValidationFailed
from hris_api.common.paging import search_filter, text_q
from hris_api.common.periods import parse_date
from hris_api.extensions import db
from hris_api.models.employee import Employee, EmploymentStatus
from hris_api.models.master import Department
from hris_api.models.user import Role, User
from hris_api.services import storage
from hris_api.services.identity import Actor

log = logging.getLogger(__name__)

CODE_PREFIX = "HR-"
CODE_RE = re.compile(r"^HR-(\d+)$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD = 6


def get_employee(employee_id: int) -> Employee:
    emp = db.session.get(Employee, employee_id)
    if not emp:
        raise NotFound("Employee not found")
    return emp


def next_employee_code() -> str:
    highest = 0
    for (code,) in db.session.query(Employee.employee_code).filter(Employee.employee_code.like(f"{CODE_PREFIX}%")):
        m = CODE_RE.match(code or "")
        if m:
            highest = max(highest, int(m.group(1)))
    return f"{CODE_PREFIX}{highest + 1:02d}"


def _user_fields(data: dict, errors: dict, partial: bool, user: User | None = None) -> dict:
    out = {}
    if "name" in data or not partial:
        name = (str(data.get("name") or "")).strip()
        if not name:
            errors["name"] = ["The name field is required."]
        out["name"] = name
    if "email" in data or not partial:
        email = (str(data.get("email") or "")).strip().lower()
        if not EMAIL_RE.match(email):
            errors["email"] = ["The email must be a valid email address."]
        else:
            dup = User.query.filter(User.email == email)
            if user is not None:
                dup = dup.filter(User.id != user.id)
            if dup.first():
                raise Conflict("The email has already been taken")
        out["email"] = email
    if "password" in data or not partial:
        password = data.get("password") or ""
        if len(password) < MIN_PASSWORD:
            errors["password"] = [f"The password must be at least {MIN_PASSWORD} characters."]
        out["password"] = password
    if "role" in data or not partial:
        role = Role.parse(data.get("role") or Role.EMPLOYEE.value)
        if role is None:
            errors["role"] = ["The selected role is invalid."]
        out["role"] = role
    if "status_active" in data:
        out["status_active"] = bool(data.get("status_active"))
    return out


def _profile_fields(data: dict, errors: dict, partial: bool, emp: Employee | None = None) -> dict:
    out = {}
    if "position" in data or not partial:
        position = (str(data.get("position") or "")).strip()
        if not position:
            errors["position"] = ["The position field is required."]
        out["position"] = position
    if "department_id" in data or not partial:
        dept = None
        try:
            dept = db.session.get(Department, int(data.get("department_id")))
        except (TypeError, ValueError):
            pass
        if dept is None:
            errors["department_id"] = ["The selected department is invalid."]
        out["department_id"] = dept.id if dept else None
    if "join_date" in data or not partial:
        jd = parse_date(data.get("join_date"))
        if jd is None:
            errors["join_date"] = ["The join date must be a valid date."]
        out["join_date"] = jd
    if "employment_status" in data or not partial:
        raw = data.get("employment_status") or EmploymentStatus.PERMANENT.value
        try:
            out["employment_status"] = EmploymentStatus(raw)
        except ValueError:
            errors["employment_status"] = ["The selected employment status is invalid."]
    if "contact" in data:
        out["contact"] = data.get("contact")
    if data.get("employee_code"):
        code = str(data["employee_code"]).strip()
        dup = Employee.query.filter(Employee.employee_code == code)
        if emp is not None:
            dup = dup.filter(Employee.id != emp.id)
        if dup.first():
            raise Conflict("The employee code has already been taken")
        out["employee_code"] = code
    return out


def create_employee(data: dict) -> Employee:
    """
    Two modes: attach a profile to an existing principal (``user_id``) or
    create the principal from name/email/password/role in the same call.
    """
    errors = {}
    existing = None
    if data.get("user_id") not in (None, ""):
        try:
            existing = db.session.get(User, int(data["user_id"]))
        except (TypeError, ValueError):
            existing = None
        if existing is None:
            raise NotFound("User not found")
        if existing.employee is not None:
            raise Conflict("This user already has an employee profile")
        user_fields = {}
    else:
        user_fields = _user_fields(data, errors, partial=False)
    profile = _profile_fields(data, errors, partial=False)
    if errors:
        raise ValidationFailed(errors)

    try:
        user = existing
        if user is None:
            password = user_fields.pop("password")
            user = User(**user_fields)
            user.set_password(password)
            db.session.add(user)
            db.session.flush()
        profile.setdefault("employee_code", next_employee_code())
        emp = Employee(user_id=user.id, **profile)
        db.session.add(emp)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("employee created id=%s code=%s user=%s", emp.id, emp.employee_code, user.id)
    return emp


def update_employee(emp: Employee, data: dict) -> Employee:
    errors = {}
    user_fields = _user_fields(data, errors, partial=True, user=emp.user)
    profile = _profile_fields(data, errors, partial=True, emp=emp)
    if errors:
        raise ValidationFailed(errors)

    try:
        password = user_fields.pop("password", None)
        for k, v in user_fields.items():
            setattr(emp.user, k, v)
        if password:
            emp.user.set_password(password)
        for k, v in profile.items():
            setattr(emp, k, v)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("employee updated id=%s", emp.id)
    return emp


def delete_employee(emp: Employee):
    emp_id = emp.id
    photos = [x.photo for x in emp.leave_requests if x.photo]
    db.session.delete(emp)
    db.session.commit()
    # files go only once the rows are gone
    for name in photos:
        storage.delete_photo(name)
    log.info("employee deleted id=%s", emp_id)


def employee_query(actor: Actor, args):
    qry = (
        Employee.query
        .join(User, User.id == Employee.user_id)
        .join(Department, Department.id == Employee.department_id)
    )
    if actor.is_manager:
        qry = qry.filter(Employee.department_id.in_(sorted(actor.managed_department_ids)))

    s = text_q(args)
    if s:
        qry = qry.filter(search_filter(s, User.name, User.email, Employee.employee_code, Employee.position))
    dept = (args.get("department") or "").strip()
    if dept:
        if dept.isdigit():
            qry = qry.filter(Employee.department_id == int(dept))
        else:
            qry = qry.filter(Department.name.ilike(f"%{dept}%"))
    status = (args.get("employment_status") or "").strip()
    if status:
        try:
            qry = qry.filter(Employee.employment_status == EmploymentStatus(status))
        except ValueError:
            raise ValidationFailed({"employment_status": ["The selected employment status is invalid."]})
    position = (args.get("position") or "").strip()
    if position:
        qry = qry.filter(Employee.position.ilike(f"%{position}%"))
    return qry


SORTABLE = {
    "name": User.name,
    "employee_code": Employee.employee_code,
    "position": Employee.position,
    "department": Department.name,
    "join_date": Employee.join_date,
    "created_at": Employee.created_at,
}


def managers_query(search=None):
    qry = User.query.filter(User.role == Role.MANAGER, User.status_active.is_(True))
    if search:
        qry = qry.filter(search_filter(search, User.name, User.email))
    return qry.order_by(User.name.asc())
