import pytest

from hris_api.models.leave import LeaveStatus
from hris_api.models.user import Role
from hris_api.services.identity import Actor, Target
from hris_api.services.policies import (
    may_create_review, may_delete_review, may_modify_own_leave, may_review_leave,
    may_update_review, may_view_employee, may_view_leave, may_view_review,
)

ADMIN = Actor(user_id=1, role=Role.ADMIN_HR)
MANAGER = Actor(user_id=2, role=Role.MANAGER, employee_id=20, managed_department_ids=frozenset({10}))
EMPLOYEE = Actor(user_id=3, role=Role.EMPLOYEE, employee_id=30)

STAFF_IN_10 = Target(employee_id=31, user_id=4, role=Role.EMPLOYEE, department_id=10)
STAFF_IN_11 = Target(employee_id=32, user_id=5, role=Role.EMPLOYEE, department_id=11)
OTHER_ADMIN = Target(employee_id=33, user_id=6, role=Role.ADMIN_HR, department_id=11)
ADMIN_ITSELF = Target(employee_id=1, user_id=1, role=Role.ADMIN_HR)


@pytest.mark.parametrize("predicate", [may_review_leave, may_create_review])
def test_admin_cannot_review_itself(predicate):
    d = predicate(ADMIN, ADMIN_ITSELF)
    assert not d.allowed
    assert d.reason == "self_review"


@pytest.mark.parametrize("predicate", [may_review_leave, may_create_review])
def test_admin_target_requires_manager(predicate):
    d = predicate(ADMIN, OTHER_ADMIN)
    assert not d and d.reason == "admin_target_requires_manager"
    # any manager may review an Admin HR, department does not matter
    assert predicate(MANAGER, OTHER_ADMIN).allowed


@pytest.mark.parametrize("predicate", [may_review_leave, may_create_review])
def test_manager_is_scoped_to_managed_departments(predicate):
    assert predicate(MANAGER, STAFF_IN_10).allowed
    d = predicate(MANAGER, STAFF_IN_11)
    assert not d and d.reason == "outside_managed_department"


def test_admin_reviews_ordinary_employee():
    assert may_review_leave(ADMIN, STAFF_IN_11).allowed
    assert may_create_review(ADMIN, STAFF_IN_10).allowed


def test_employee_role_never_reviews():
    assert may_review_leave(EMPLOYEE, STAFF_IN_10).reason == "role_not_permitted"
    assert may_create_review(EMPLOYEE, STAFF_IN_10).reason == "role_not_permitted"


def test_self_review_wins_over_admin_target_rule():
    # both rule 1 and rule 2 match; rule 1 decides the reason
    assert may_review_leave(ADMIN, ADMIN_ITSELF).reason == "self_review"


def test_update_review_by_non_author_manager_is_denied_even_in_own_department():
    d = may_update_review(MANAGER, STAFF_IN_10, reviewer_id=99)
    assert not d and d.reason == "not_review_author"
    assert may_update_review(MANAGER, STAFF_IN_10, reviewer_id=MANAGER.user_id).allowed


def test_update_review_keeps_precedence_for_authors():
    assert may_update_review(MANAGER, STAFF_IN_11, reviewer_id=MANAGER.user_id).reason == "outside_managed_department"
    assert may_update_review(ADMIN, OTHER_ADMIN, reviewer_id=ADMIN.user_id).reason == "admin_target_requires_manager"
    assert may_update_review(ADMIN, STAFF_IN_11, reviewer_id=99).allowed


def test_delete_review_rules():
    assert may_delete_review(ADMIN, reviewer_id=99).allowed
    assert may_delete_review(MANAGER, reviewer_id=MANAGER.user_id).allowed
    assert may_delete_review(MANAGER, reviewer_id=99).reason == "not_review_author"
    assert may_delete_review(EMPLOYEE, reviewer_id=EMPLOYEE.user_id).reason == "role_not_permitted"


def test_view_review_rules():
    own = Target(employee_id=30, user_id=EMPLOYEE.user_id, role=Role.EMPLOYEE, department_id=10)
    assert may_view_review(EMPLOYEE, own, reviewer_id=2).allowed
    assert not may_view_review(EMPLOYEE, STAFF_IN_10, reviewer_id=2).allowed
    assert may_view_review(MANAGER, STAFF_IN_11, reviewer_id=MANAGER.user_id).allowed
    assert not may_view_review(MANAGER, STAFF_IN_10, reviewer_id=99).allowed
    assert may_view_review(ADMIN, STAFF_IN_10, reviewer_id=99).allowed


def test_modify_own_leave_only_while_pending():
    assert may_modify_own_leave(30, 30, LeaveStatus.PENDING).allowed
    assert may_modify_own_leave(30, 31, LeaveStatus.PENDING).reason == "not_owner"
    for st in (LeaveStatus.APPROVED, LeaveStatus.REJECTED):
        d = may_modify_own_leave(30, 30, st)
        assert not d and d.reason == "already_reviewed"


def test_view_employee():
    assert may_view_employee(ADMIN, STAFF_IN_11).allowed
    assert may_view_employee(MANAGER, STAFF_IN_10).allowed
    assert not may_view_employee(MANAGER, STAFF_IN_11).allowed
    own = Target(employee_id=30, user_id=EMPLOYEE.user_id, role=Role.EMPLOYEE, department_id=10)
    assert may_view_employee(EMPLOYEE, own).allowed
    assert not may_view_employee(EMPLOYEE, STAFF_IN_10).allowed


def test_view_leave_follows_review_reach():
    # managers see every Admin HR's leave, since any of them may review it
    assert may_view_leave(MANAGER, OTHER_ADMIN).allowed
    assert may_view_leave(MANAGER, STAFF_IN_10).allowed
    assert may_view_leave(MANAGER, STAFF_IN_11).reason == "not_visible"
    assert not may_view_leave(EMPLOYEE, OTHER_ADMIN)
