# hris_api/seed.py
"""Demo data for local development (``flask seed-demo``). Safe to run twice."""
from __future__ import annotations

import logging
from datetime import date, time, timedelta

from hris_api.extensions import db
from hris_api.models.attendance import Attendance
from hris_api.models.employee import Employee, EmploymentStatus
from hris_api.models.leave import LeaveRequest, LeaveStatus
from hris_api.models.master import Department
from hris_api.models.performance import PerformanceReview
from hris_api.models.salary_slip import SalarySlip
from hris_api.models.user import Role, User
from hris_api.services import notifications
from hris_api.services.attendance_service import compute_work_hour
from hris_api.services.employee_service import next_employee_code
from hris_api.services.salary_service import build_slip_amounts

log = logging.getLogger(__name__)

DEMO_PASSWORD = "password"

# department -> (manager email, manager name, description)
DEPARTMENTS = {
    "Human Resources": ("admin@hris.local", "Admin HR", "People operations and recruitment"),
    "IT": ("it.manager@hris.local", "Rina Saputra", "Information technology and development"),
    "Marketing": ("marketing.manager@hris.local", "Yossy Pratama", "Marketing and promotion"),
    "Finance": ("finance.manager@hris.local", "Dina Lestari", "Finance and accounting"),
    "Operations": ("operations.manager@hris.local", "Ahmad Fauzi", "Operations and logistics"),
}

# (email, name, department, position, status)
EMPLOYEES = [
    ("budi@hris.local", "Budi Santoso", "IT", "Backend Developer", EmploymentStatus.PERMANENT),
    ("sari@hris.local", "Sari Wulandari", "IT", "QA Engineer", EmploymentStatus.CONTRACT),
    ("andi@hris.local", "Andi Wijaya", "Marketing", "Content Creator", EmploymentStatus.PERMANENT),
    ("maya@hris.local", "Maya Putri", "Marketing", "Social Media Specialist", EmploymentStatus.INTERN),
    ("joko@hris.local", "Joko Susilo", "Finance", "Accountant", EmploymentStatus.PERMANENT),
    ("lina@hris.local", "Lina Marlina", "Finance", "Auditor", EmploymentStatus.CONTRACT),
    ("rudi@hris.local", "Rudi Hartono", "Operations", "Logistics Staff", EmploymentStatus.PERMANENT),
    ("dewi@hris.local", "Dewi Anggraini", "Operations", "Office Administrator", EmploymentStatus.PERMANENT),
]


def _ensure_user(email, name, role):
    u = User.query.filter_by(email=email).first()
    if u:
        return u, False
    u = User(email=email, name=name, role=role, status_active=True)
    u.set_password(DEMO_PASSWORD)
    db.session.add(u)
    db.session.flush()
    return u, True


def _ensure_profile(user, dept, position, status=EmploymentStatus.PERMANENT):
    if user.employee:
        return user.employee
    emp = Employee(
        user_id=user.id,
        department_id=dept.id,
        employee_code=next_employee_code(),
        position=position,
        join_date=date.today() - timedelta(days=365),
        employment_status=status,
    )
    db.session.add(emp)
    db.session.flush()
    return emp


def _weekdays_back(n, today):
    d, out = today - timedelta(days=1), []
    while len(out) < n:
        if d.weekday() < 5:
            out.append(d)
        d -= timedelta(days=1)
    return out


def _seed_history(emp, reviewer, admin, today):
    for i, d in enumerate(_weekdays_back(5, today)):
        if Attendance.query.filter_by(employee_id=emp.id, date=d).first():
            continue
        cin, cout = time(8, 30 + i * 5), time(17, i * 10)
        db.session.add(Attendance(
            employee_id=emp.id, date=d, check_in_time=cin, check_out_time=cout,
            work_hour=compute_work_hour(cin, cout),
        ))

    if not LeaveRequest.query.filter_by(employee_id=emp.id).first():
        start = today + timedelta(days=14)
        db.session.add(LeaveRequest(
            employee_id=emp.id, start_date=start, end_date=start + timedelta(days=2),
            total_days=3, reason="Family event", status=LeaveStatus.PENDING,
        ))

    last_month = (today.replace(day=1) - timedelta(days=1)).strftime("%Y-%m")
    if not PerformanceReview.query.filter_by(employee_id=emp.id, period=last_month).first():
        db.session.add(PerformanceReview(
            employee_id=emp.id, reviewer_id=reviewer.id, period=last_month,
            total_star=7 + emp.id % 3, review_description="Consistent delivery and good collaboration.",
        ))
        notifications.notify(emp.user_id, notifications.PERFORMANCE_REVIEW,
                             f"A performance review for period {last_month} has been added.")

    if not SalarySlip.query.filter_by(employee_id=emp.id, period_month=last_month).first():
        amounts = build_slip_amounts(8_000_000 + emp.id * 250_000, 1_000_000, 350_000)
        db.session.add(SalarySlip(
            employee_id=emp.id, created_by=admin.id, period_month=last_month,
            remarks="Monthly salary", **amounts,
        ))
        notifications.notify(emp.user_id, notifications.SALARY_SLIP,
                             f"Your salary slip for {last_month} is available.")


def seed_demo(today: date | None = None) -> dict:
    today = today or date.today()
    counts = {"users": 0, "departments": 0, "employees": 0}

    managers = {}
    for dept_name, (email, name, _desc) in DEPARTMENTS.items():
        role = Role.ADMIN_HR if email.startswith("admin@") else Role.MANAGER
        u, created = _ensure_user(email, name, role)
        counts["users"] += int(created)
        managers[dept_name] = u

    depts = {}
    for dept_name, (_email, _name, desc) in DEPARTMENTS.items():
        d = Department.query.filter_by(name=dept_name).first()
        if not d:
            d = Department(name=dept_name, description=desc)
            db.session.add(d)
            counts["departments"] += 1
        # the department row is the only source of the manager mapping
        d.manager_id = managers[dept_name].id
        depts[dept_name] = d
    db.session.flush()

    admin = managers["Human Resources"]
    _ensure_profile(admin, depts["Human Resources"], "HR Manager")
    for dept_name, u in managers.items():
        if u is not admin:
            _ensure_profile(u, depts[dept_name], f"{dept_name} Manager")

    for email, name, dept_name, position, status in EMPLOYEES:
        u, created = _ensure_user(email, name, Role.EMPLOYEE)
        counts["users"] += int(created)
        had_profile = u.employee is not None
        emp = _ensure_profile(u, depts[dept_name], position, status)
        counts["employees"] += int(not had_profile)
        _seed_history(emp, managers[dept_name], admin, today)

    db.session.commit()
    log.info("demo data seeded: %s", counts)
    return counts
