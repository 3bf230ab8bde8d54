# hris_api/blueprints/performance_reviews.py
from datetime import date

from flask import Blueprint, request

from hris_api.common.auth import roles_required
from hris_api.common.http import ok
from hris_api.common.paging import int_arg, page_size, paginate, sort_param
from hris_api.common.periods import apply_period
from hris_api.models.performance import PerformanceReview
from hris_api.models.user import Role, User
from hris_api.services import review_service as svc
from hris_api.services.identity import resolve_actor

bp = Blueprint("performance_reviews", __name__, url_prefix="/api/performance-reviews")

ALL_ROLES = (Role.ADMIN_HR, Role.MANAGER, Role.EMPLOYEE)
REVIEWER_ROLES = (Role.ADMIN_HR, Role.MANAGER)


def _row(r: PerformanceReview):
    emp = r.employee
    return {
        "id": r.id,
        "employee_name": emp.name if emp else None,
        "employee_code": emp.employee_code if emp else None,
        "reviewer_name": r.reviewer.name if r.reviewer else None,
        "period": r.period,
        "total_star": r.total_star,
        "review_description": r.review_description,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }


def _detail(r: PerformanceReview):
    return {
        **_row(r),
        "employee_id": r.employee_id,
        "reviewer_id": r.reviewer_id,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }


@bp.get("")
@roles_required(*ALL_ROLES)
def list_reviews(current_user: User):
    qry = svc.review_query(resolve_actor(current_user), request.args)
    qry = qry.order_by(sort_param(svc.SORTABLE, "created_at"), PerformanceReview.id.desc())
    page, size = page_size()
    items, meta = paginate(qry, page, size)
    filters = {
        k: request.args.get(k)
        for k in ("search", "employee_id", "reviewer_id", "period", "year", "period_type",
                  "department", "min_rating", "max_rating", "date_from", "date_to")
    }
    return ok([_row(r) for r in items], **meta, filters=filters)


@bp.get("/me")
@roles_required(*ALL_ROLES)
def my_reviews(current_user: User):
    qry = svc.own_review_query(resolve_actor(current_user), request.args.get("period"))
    qry = qry.order_by(PerformanceReview.created_at.desc(), PerformanceReview.id.desc())
    page, size = page_size(max_size=50)
    items, meta = paginate(qry, page, size)
    return ok([_detail(r) for r in items], **meta)


@bp.get("/employee/<int:employee_id>")
@roles_required(*ALL_ROLES)
def by_employee(current_user: User, employee_id: int):
    emp = svc.overview_employee(resolve_actor(current_user), employee_id)
    year = int_arg(request.args, "year") or date.today().year
    summary = svc.employee_summary(emp, year)

    qry = PerformanceReview.query.filter_by(employee_id=emp.id)
    clause = apply_period(PerformanceReview.period, request.args.get("period"))
    if clause is not None:
        qry = qry.filter(clause)
    qry = qry.order_by(PerformanceReview.created_at.desc(), PerformanceReview.id.desc())
    page, size = page_size()
    items, meta = paginate(qry, page, size)

    data = {
        "employee": {
            "id": emp.id,
            "name": emp.name,
            "employee_code": emp.employee_code,
            "position": emp.position,
            "department": emp.department.name if emp.department else None,
        },
        **summary,
        "reviews": [_detail(r) for r in items],
    }
    return ok(data, **meta)


@bp.get("/<int:review_id>")
@roles_required(*ALL_ROLES)
def show(current_user: User, review_id: int):
    review = svc.get_review(review_id)
    svc.ensure_can_view(resolve_actor(current_user), review)
    return ok(_detail(review))


@bp.post("")
@roles_required(*REVIEWER_ROLES)
def create(current_user: User):
    data = request.get_json(silent=True, force=True) or {}
    review = svc.create_review(resolve_actor(current_user), data)
    return ok(_detail(review), 201, message="Performance review created")


@bp.put("/<int:review_id>")
@roles_required(*REVIEWER_ROLES)
def update(current_user: User, review_id: int):
    data = request.get_json(silent=True, force=True) or {}
    review = svc.update_review(resolve_actor(current_user), svc.get_review(review_id), data)
    return ok(_detail(review), message="Performance review updated")


@bp.delete("/<int:review_id>")
@roles_required(*REVIEWER_ROLES)
def delete(current_user: User, review_id: int):
    svc.delete_review(resolve_actor(current_user), svc.get_review(review_id))
    return ok({"id": review_id}, message="Performance review deleted")
