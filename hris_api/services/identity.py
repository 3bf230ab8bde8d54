# hris_api/services/identity.py
"""
Resolve an authenticated principal into the values authorization needs:
its role, its employee profile (if any) and the departments it manages.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from hris_api.common.errors import ProfileUnavailable
from hris_api.extensions import db
from hris_api.models.employee import Employee
from hris_api.models.master import Department
from hris_api.models.user import Role, User


@dataclass(frozen=True)
class Actor:
    user_id: int
    role: Role
    employee_id: Optional[int] = None
    managed_department_ids: FrozenSet[int] = field(default_factory=frozenset)

    @property
    def is_admin_hr(self) -> bool:
        return self.role is Role.ADMIN_HR

    @property
    def is_manager(self) -> bool:
        return self.role is Role.MANAGER


@dataclass(frozen=True)
class Target:
    """The employee a record belongs to, as seen by the policies."""
    employee_id: int
    user_id: Optional[int] = None
    role: Optional[Role] = None
    department_id: Optional[int] = None


def resolve_actor(user: User) -> Actor:
    emp = user.employee
    managed = frozenset(
        d_id for (d_id,) in db.session.query(Department.id).filter(Department.manager_id == user.id)
    )
    return Actor(
        user_id=user.id,
        role=user.role,
        employee_id=emp.id if emp else None,
        managed_department_ids=managed,
    )


def subject_id(actor: Actor) -> int:
    """
    Employee id used for personal attendance/leave/slip/review records.
    An AdminHR without a profile acts under its own principal id.
    """
    if actor.employee_id is not None:
        return actor.employee_id
    if actor.is_admin_hr:
        return actor.user_id
    raise ProfileUnavailable()


def target_for_employee(emp: Employee) -> Target:
    user = emp.user
    return Target(
        employee_id=emp.id,
        user_id=user.id if user else None,
        role=user.role if user else None,
        department_id=emp.department_id,
    )


def target_for_subject(sid: int) -> Target:
    """Owner of an attendance/leave row: employee first, then an aliased AdminHR."""
    emp = db.session.get(Employee, sid)
    if emp:
        return target_for_employee(emp)
    user = db.session.get(User, sid)
    if user and user.is_admin_hr and user.employee is None:
        return Target(employee_id=sid, user_id=user.id, role=user.role)
    return Target(employee_id=sid)
