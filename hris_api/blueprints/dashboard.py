# hris_api/blueprints/dashboard.py
import calendar
from datetime import date, datetime

from flask import Blueprint
from sqlalchemy import func

from hris_api.common.auth import roles_required
from hris_api.common.http import ok
from hris_api.extensions import db
from hris_api.models.attendance import Attendance
from hris_api.models.employee import Employee
from hris_api.models.leave import LeaveRequest, LeaveStatus
from hris_api.models.master import Department
from hris_api.models.performance import PerformanceReview
from hris_api.models.user import Role, User
from hris_api.services.identity import resolve_actor, subject_id

bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")

TREND_PERIODS = 6


def _month_range(today: date):
    return date(today.year, today.month, 1), date(today.year, today.month, calendar.monthrange(today.year, today.month)[1])


def _hours(v):
    return round(float(v or 0), 2)


@bp.get("/employee")
@roles_required(Role.EMPLOYEE, Role.MANAGER, Role.ADMIN_HR)
def employee_dashboard(current_user: User):
    actor = resolve_actor(current_user)
    sid = subject_id(actor)
    today = date.today()
    lo, hi = _month_range(today)

    rows = (
        Attendance.query
        .filter(Attendance.employee_id == sid, Attendance.date >= lo, Attendance.date <= hi)
        .order_by(Attendance.date.asc())
        .all()
    )
    by_day = {r.date: r for r in rows}
    chart = []
    for day in range(1, today.day + 1):
        d = date(today.year, today.month, day)
        r = by_day.get(d)
        chart.append({"date": d.isoformat(), "work_hour": _hours(r.work_hour) if r else 0.0})

    emp = current_user.employee
    dept = emp.department if emp else None
    return ok({
        "department": dept.name if dept else None,
        "manager": {"id": dept.manager.id, "name": dept.manager.name} if dept and dept.manager else None,
        "month": f"{today:%Y-%m}",
        "days_present": sum(1 for r in rows if r.check_in_time),
        "total_work_hours": _hours(sum(float(r.work_hour or 0) for r in rows)),
        "daily_chart": chart,
    })


@bp.get("/manager")
@roles_required(Role.MANAGER, Role.ADMIN_HR)
def manager_dashboard(current_user: User):
    actor = resolve_actor(current_user)
    today = date.today()
    lo, hi = _month_range(today)
    team = (
        Employee.query
        .filter(Employee.department_id.in_(sorted(actor.managed_department_ids)))
        .all()
    )
    team_ids = [e.id for e in team]

    att = (
        db.session.query(Attendance.employee_id, func.count(Attendance.id), func.sum(Attendance.work_hour))
        .filter(Attendance.employee_id.in_(team_ids), Attendance.date >= lo, Attendance.date <= hi)
        .group_by(Attendance.employee_id)
        .all()
    )
    per_emp = {eid: (cnt, total) for eid, cnt, total in att}
    records = sum(cnt for cnt, _ in per_emp.values())
    hours = sum(float(total or 0) for _, total in per_emp.values())

    reviews = PerformanceReview.query.filter(PerformanceReview.employee_id.in_(team_ids))
    avg_rating = reviews.with_entities(func.avg(PerformanceReview.total_star)).scalar()
    this_month = reviews.filter(
        PerformanceReview.created_at >= datetime.combine(lo, datetime.min.time())
    ).count()

    trend_rows = (
        db.session.query(
            PerformanceReview.period,
            func.avg(PerformanceReview.total_star),
            func.max(PerformanceReview.created_at).label("latest"),
        )
        .filter(PerformanceReview.employee_id.in_(team_ids))
        .group_by(PerformanceReview.period)
        .order_by(func.max(PerformanceReview.created_at).desc())
        .limit(TREND_PERIODS)
        .all()
    )

    return ok({
        "departments": [
            d.name for d in Department.query.filter(Department.id.in_(sorted(actor.managed_department_ids)))
        ],
        "team_size": len(team),
        "month": f"{today:%Y-%m}",
        "attendance_records": records,
        "average_work_hours": _hours(hours / records) if records else 0.0,
        "hours_per_employee": [
            {"employee_id": e.id, "name": e.name, "work_hours": _hours(per_emp.get(e.id, (0, 0))[1])}
            for e in team
        ],
        "average_team_rating": round(float(avg_rating), 1) if avg_rating is not None else 0,
        "reviews_this_month": this_month,
        "rating_trend": [
            {"period": p, "average_rating": round(float(a), 1)} for p, a, _ in reversed(trend_rows)
        ],
    })


@bp.get("/admin")
@roles_required(Role.ADMIN_HR)
def admin_dashboard(current_user: User):
    by_dept = (
        db.session.query(Department.name, func.count(Employee.id))
        .outerjoin(Employee, Employee.department_id == Department.id)
        .group_by(Department.id, Department.name)
        .order_by(Department.name.asc())
        .all()
    )
    by_status = (
        db.session.query(Employee.employment_status, func.count(Employee.id))
        .group_by(Employee.employment_status)
        .all()
    )
    return ok({
        "total_employees": Employee.query.count(),
        "headcount_by_department": [{"department": n, "count": c} for n, c in by_dept],
        "headcount_by_status": {s.value: c for s, c in by_status},
        "pending_leave_requests": LeaveRequest.query.filter_by(status=LeaveStatus.PENDING).count(),
        "checked_in_today": Attendance.query.filter(
            Attendance.date == date.today(), Attendance.check_in_time.isnot(None)
        ).count(),
    })
