# hris_api/services/review_service.py
from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import or_

from hris_api.common.errors import Forbidden, NotFound, ValidationFailed
from hris_api.common.paging import float_arg, int_arg, search_filter, text_q
from hris_api.common.periods import apply_period, parse_date
from hris_api.extensions import db
from hris_api.models.employee import Employee
from hris_api.models.master import Department
from hris_api.models.performance import PerformanceReview
from hris_api.models.user import User
from hris_api.services import notifications, review_stats
from hris_api.services.identity import Actor, subject_id, target_for_employee
from hris_api.services.policies import (
    ensure, may_create_review, may_delete_review, may_update_review, may_view_review,
)

log = logging.getLogger(__name__)

MAX_PERIOD = 20


def get_review(review_id: int) -> PerformanceReview:
    review = db.session.get(PerformanceReview, review_id)
    if not review:
        raise NotFound("Performance review not found")
    return review


def get_employee(employee_id) -> Employee:
    emp = db.session.get(Employee, employee_id) if employee_id is not None else None
    if not emp:
        raise NotFound("Employee not found")
    return emp


def _clean(data: dict, partial=False) -> dict:
    errors, out = {}, {}

    if "period" in data or not partial:
        period = (str(data.get("period") or "")).strip()
        if not period:
            errors["period"] = ["The period field is required."]
        elif len(period) > MAX_PERIOD:
            errors["period"] = [f"The period may not be greater than {MAX_PERIOD} characters."]
        out["period"] = period

    if "total_star" in data or not partial:
        raw = data.get("total_star")
        star = raw if isinstance(raw, int) and not isinstance(raw, bool) else None
        if star is None and isinstance(raw, str) and raw.strip().isdigit():
            star = int(raw)
        if star is None or not 1 <= star <= 10:
            errors["total_star"] = ["The total star must be an integer between 1 and 10."]
        out["total_star"] = star

    if "review_description" in data or not partial:
        text = (str(data.get("review_description") or "")).strip()
        if not text:
            errors["review_description"] = ["The review description field is required."]
        out["review_description"] = text

    if errors:
        raise ValidationFailed(errors)
    return out


def create_review(actor: Actor, data: dict) -> PerformanceReview:
    if data.get("employee_id") in (None, ""):
        raise ValidationFailed({"employee_id": ["The employee id field is required."]})
    try:
        emp = get_employee(int(data["employee_id"]))
    except (TypeError, ValueError):
        raise ValidationFailed({"employee_id": ["The employee id must be an integer."]})
    fields = _clean(data)
    ensure(may_create_review(actor, target_for_employee(emp)), "create review")

    review = PerformanceReview(employee_id=emp.id, reviewer_id=actor.user_id, **fields)
    db.session.add(review)
    notifications.notify(
        emp.user_id, notifications.PERFORMANCE_REVIEW,
        f"A performance review for period {review.period} has been added.",
    )
    db.session.commit()
    log.info("review created id=%s employee=%s by=%s", review.id, emp.id, actor.user_id)
    return review


def update_review(actor: Actor, review: PerformanceReview, data: dict) -> PerformanceReview:
    ensure(may_update_review(actor, target_for_employee(review.employee), review.reviewer_id), "update review")
    for k, v in _clean(data, partial=True).items():
        setattr(review, k, v)
    db.session.commit()
    log.info("review updated id=%s by=%s", review.id, actor.user_id)
    return review


def delete_review(actor: Actor, review: PerformanceReview):
    ensure(may_delete_review(actor, review.reviewer_id), "delete review")
    db.session.delete(review)
    db.session.commit()
    log.info("review deleted id=%s by=%s", review.id, actor.user_id)


def ensure_can_view(actor: Actor, review: PerformanceReview):
    ensure(may_view_review(actor, target_for_employee(review.employee), review.reviewer_id), "view review")


def _base_query():
    return (
        PerformanceReview.query
        .join(Employee, Employee.id == PerformanceReview.employee_id)
        .join(User, User.id == Employee.user_id)
        .outerjoin(Department, Department.id == Employee.department_id)
    )


def review_query(actor: Actor, args):
    qry = _base_query()
    if actor.is_admin_hr:
        reviewer_id = int_arg(args, "reviewer_id")
        if reviewer_id is not None:
            qry = qry.filter(PerformanceReview.reviewer_id == reviewer_id)
    elif actor.is_manager:
        qry = qry.filter(PerformanceReview.reviewer_id == actor.user_id)
    else:
        qry = qry.filter(PerformanceReview.employee_id == subject_id(actor))

    s = text_q(args)
    if s:
        qry = qry.filter(search_filter(
            s, User.name, Employee.employee_code, PerformanceReview.period,
            PerformanceReview.review_description,
        ))
    emp_id = int_arg(args, "employee_id")
    if emp_id is not None:
        qry = qry.filter(PerformanceReview.employee_id == emp_id)

    period = (args.get("period") or "").strip()
    if period:
        qry = qry.filter(PerformanceReview.period.ilike(f"%{period}%"))
    year = (args.get("year") or "").strip()
    if year.isdigit() and len(year) == 4:
        qry = qry.filter(or_(PerformanceReview.period.like(f"{year}%"), PerformanceReview.period.like(f"%{year}")))

    period_type = (args.get("period_type") or "").strip().lower()
    if period_type == "monthly":
        qry = qry.filter(PerformanceReview.period.like("____-__"))
    elif period_type == "quarterly":
        qry = qry.filter(PerformanceReview.period.like("%Q%"))

    dept = (args.get("department") or "").strip()
    if dept:
        qry = qry.filter(Department.name.ilike(f"%{dept}%"))

    lo, hi = float_arg(args, "min_rating"), float_arg(args, "max_rating")
    if lo is not None:
        qry = qry.filter(PerformanceReview.total_star >= lo)
    if hi is not None:
        qry = qry.filter(PerformanceReview.total_star <= hi)

    d_from, d_to = parse_date(args.get("date_from")), parse_date(args.get("date_to"))
    if d_from:
        qry = qry.filter(db.func.date(PerformanceReview.created_at) >= d_from)
    if d_to:
        qry = qry.filter(db.func.date(PerformanceReview.created_at) <= d_to)
    return qry


SORTABLE = {
    "created_at": PerformanceReview.created_at,
    "period": PerformanceReview.period,
    "total_star": PerformanceReview.total_star,
    "employee_name": User.name,
}


def own_review_query(actor: Actor, period=None):
    qry = PerformanceReview.query.filter(PerformanceReview.employee_id == subject_id(actor))
    clause = apply_period(PerformanceReview.period, period)
    # unrecognised period shapes are ignored
    if clause is not None:
        qry = qry.filter(clause)
    return qry


def overview_employee(actor: Actor, employee_id: int) -> Employee:
    """
    Employee to show on the per-employee page. Employees always get their own
    page; a Manager only sees employees it has reviewed before.
    """
    if not (actor.is_admin_hr or actor.is_manager):
        return get_employee(subject_id(actor))
    emp = get_employee(employee_id)
    if actor.is_manager:
        reviewed = (
            db.session.query(PerformanceReview.id)
            .filter_by(employee_id=emp.id, reviewer_id=actor.user_id)
            .first()
        )
        if not reviewed:
            raise Forbidden("You have not reviewed this employee")
    return emp


def employee_summary(emp: Employee, year: int | None = None) -> dict:
    year = year or date.today().year
    reviews = (
        PerformanceReview.query
        .filter_by(employee_id=emp.id)
        .order_by(PerformanceReview.created_at.desc(), PerformanceReview.id.desc())
        .all()
    )
    ratings = [r.total_star for r in reviews]
    return {
        "statistics": review_stats.employee_statistics(ratings),
        "trend": review_stats.performance_trend(ratings),
        "chart": {"year": year, "months": review_stats.monthly_chart(reviews, year)},
    }
