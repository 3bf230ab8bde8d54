# hris_api/services/policies.py
"""
Authorization predicates for the leave and performance-review workflows.

Every predicate is a pure function of the acting principal and the record's
owner and returns a ``Decision`` carrying a reason tag. Callers turn denials
into errors with ``ensure``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from hris_api.common.errors import Forbidden
from hris_api.models.leave import LeaveStatus
from hris_api.models.user import Role
from hris_api.services.identity import Actor, Target

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = "ok"

    def __bool__(self):
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


MESSAGES = {
    "role_not_permitted": "Your role is not permitted to perform this action",
    "self_review": "You cannot review your own records",
    "admin_target_requires_manager": "Records of an Admin HR can only be reviewed by a Manager",
    "outside_managed_department": "The employee is not in a department you manage",
    "not_review_author": "You can only change reviews you wrote",
    "not_owner": "You can only change your own leave requests",
    "already_reviewed": "Cannot modify a leave request that has already been reviewed",
    "not_visible": "You are not allowed to view this record",
}


def ensure(decision: Decision, action: str = "action"):
    if not decision.allowed:
        log.warning("denied %s: %s", action, decision.reason)
        raise Forbidden(MESSAGES.get(decision.reason, "Forbidden"), payload={"reason": decision.reason})
    return decision


def _reviewer_precedence(actor: Actor, target: Target) -> Decision:
    if actor.role not in (Role.ADMIN_HR, Role.MANAGER):
        return deny("role_not_permitted")
    # 1. AdminHR never reviews itself
    if actor.role is Role.ADMIN_HR and target.user_id is not None and target.user_id == actor.user_id:
        return deny("self_review")
    # 2. an AdminHR's records go to a Manager
    if target.role is Role.ADMIN_HR:
        return ALLOW if actor.role is Role.MANAGER else deny("admin_target_requires_manager")
    # 3. Managers stay inside the departments they manage
    if actor.role is Role.MANAGER and target.department_id not in actor.managed_department_ids:
        return deny("outside_managed_department")
    return ALLOW


def may_review_leave(actor: Actor, target: Target) -> Decision:
    return _reviewer_precedence(actor, target)


def may_create_review(actor: Actor, target: Target) -> Decision:
    return _reviewer_precedence(actor, target)


def may_update_review(actor: Actor, target: Target, reviewer_id: int) -> Decision:
    if actor.role is Role.MANAGER and reviewer_id != actor.user_id:
        return deny("not_review_author")
    return _reviewer_precedence(actor, target)


def may_delete_review(actor: Actor, reviewer_id: int) -> Decision:
    if actor.role is Role.ADMIN_HR:
        return ALLOW
    if actor.role is Role.MANAGER:
        return ALLOW if reviewer_id == actor.user_id else deny("not_review_author")
    return deny("role_not_permitted")


def may_view_review(actor: Actor, target: Target, reviewer_id: int) -> Decision:
    if actor.role is Role.ADMIN_HR:
        return ALLOW
    if actor.role is Role.MANAGER:
        return ALLOW if reviewer_id == actor.user_id else deny("not_visible")
    return ALLOW if target.user_id == actor.user_id else deny("not_visible")


def may_modify_own_leave(actor_subject_id: int, owner_subject_id: int, status: LeaveStatus) -> Decision:
    if actor_subject_id != owner_subject_id:
        return deny("not_owner")
    if status is not LeaveStatus.PENDING:
        return deny("already_reviewed")
    return ALLOW


def may_view_employee(actor: Actor, target: Target) -> Decision:
    """AdminHR, the Manager of the employee's department, or the employee itself."""
    if actor.role is Role.ADMIN_HR:
        return ALLOW
    if target.user_id is not None and target.user_id == actor.user_id:
        return ALLOW
    if actor.role is Role.MANAGER and target.department_id in actor.managed_department_ids:
        return ALLOW
    return deny("not_visible")


def may_view_leave(actor: Actor, target: Target) -> Decision:
    # any Manager may review an AdminHR's leave, so it must be able to see it
    if actor.role is Role.MANAGER and target.role is Role.ADMIN_HR:
        return ALLOW
    return may_view_employee(actor, target)
