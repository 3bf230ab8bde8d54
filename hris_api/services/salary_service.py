# hris_api/services/salary_service.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from hris_api.common.errors import Conflict, NotFound, ValidationFailed
from hris_api.common.paging import int_arg
from hris_api.common.periods import SLIP_PERIOD_RE, YEAR_RE
from hris_api.extensions import db
from hris_api.models.employee import Employee
from hris_api.models.salary_slip import SalarySlip
from hris_api.services import notifications
from hris_api.services.identity import Actor, subject_id, target_for_employee
from hris_api.services.policies import ensure, may_view_employee

log = logging.getLogger(__name__)

AMOUNT_FIELDS = ("basic_salary", "allowance", "deduction")
MAX_PERIOD = 20
CENT = Decimal("0.01")


def _amount(value, field, errors):
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        errors[field] = [f"The {field.replace('_', ' ')} must be a number."]
        return None
    if not amount.is_finite() or amount < 0:
        errors[field] = [f"The {field.replace('_', ' ')} must be at least 0."]
        return None
    return amount.quantize(CENT)


def build_slip_amounts(basic_salary, allowance=0, deduction=0) -> dict:
    """
    Validated amounts plus the derived total. ``total_salary`` is never an
    input; it is always basic + allowance - deduction.
    """
    errors = {}
    if basic_salary is None or basic_salary == "":
        errors["basic_salary"] = ["The basic salary field is required."]
        basic = None
    else:
        basic = _amount(basic_salary, "basic_salary", errors)
    allow = _amount(allowance, "allowance", errors)
    deduct = _amount(deduction, "deduction", errors)
    if errors:
        raise ValidationFailed(errors)
    return {
        "basic_salary": basic,
        "allowance": allow,
        "deduction": deduct,
        "total_salary": basic + allow - deduct,
    }


def get_slip(slip_id: int) -> SalarySlip:
    slip = db.session.get(SalarySlip, slip_id)
    if not slip:
        raise NotFound("Salary slip not found")
    return slip


def _clean_period(value) -> str:
    period = (str(value or "")).strip()
    if not period:
        raise ValidationFailed({"period_month": ["The period month field is required."]})
    if len(period) > MAX_PERIOD:
        raise ValidationFailed({"period_month": [f"The period month may not be greater than {MAX_PERIOD} characters."]})
    return period


def _ensure_unique_period(employee_id, period, exclude_id=None):
    qry = SalarySlip.query.filter_by(employee_id=employee_id, period_month=period)
    if exclude_id is not None:
        qry = qry.filter(SalarySlip.id != exclude_id)
    if qry.first():
        raise Conflict("A salary slip for this employee and period already exists")


def create_slip(actor: Actor, data: dict) -> SalarySlip:
    try:
        emp_id = int(data.get("employee_id"))
    except (TypeError, ValueError):
        raise ValidationFailed({"employee_id": ["The employee id field is required."]})
    emp = db.session.get(Employee, emp_id)
    if not emp:
        raise NotFound("Employee not found")

    period = _clean_period(data.get("period_month"))
    amounts = build_slip_amounts(data.get("basic_salary"), data.get("allowance"), data.get("deduction"))
    _ensure_unique_period(emp.id, period)

    slip = SalarySlip(
        employee_id=emp.id,
        created_by=actor.user_id,
        period_month=period,
        remarks=data.get("remarks"),
        **amounts,
    )
    db.session.add(slip)
    notifications.notify(
        emp.user_id, notifications.SALARY_SLIP,
        f"Your salary slip for {period} is available.",
    )
    # the unique constraint still guards a concurrent insert -> 409
    db.session.commit()
    log.info("salary slip created id=%s employee=%s period=%s", slip.id, emp.id, period)
    return slip


def update_slip(actor: Actor, slip: SalarySlip, data: dict) -> SalarySlip:
    if "period_month" in data:
        period = _clean_period(data.get("period_month"))
        _ensure_unique_period(slip.employee_id, period, exclude_id=slip.id)
        slip.period_month = period

    if any(f in data for f in AMOUNT_FIELDS):
        amounts = build_slip_amounts(
            data.get("basic_salary", slip.basic_salary),
            data.get("allowance", slip.allowance),
            data.get("deduction", slip.deduction),
        )
        for k, v in amounts.items():
            setattr(slip, k, v)

    if "remarks" in data:
        slip.remarks = data.get("remarks")
    db.session.commit()
    log.info("salary slip updated id=%s by=%s", slip.id, actor.user_id)
    return slip


def delete_slip(actor: Actor, slip: SalarySlip):
    db.session.delete(slip)
    db.session.commit()
    log.info("salary slip deleted id=%s by=%s", slip.id, actor.user_id)


def ensure_can_view(actor: Actor, slip: SalarySlip):
    ensure(may_view_employee(actor, target_for_employee(slip.employee)), "view salary slip")


def own_slip_query(actor: Actor, period=None):
    qry = SalarySlip.query.filter(SalarySlip.employee_id == subject_id(actor))
    period = (period or "").strip()
    if not period:
        return qry
    if YEAR_RE.match(period):
        return qry.filter(SalarySlip.period_month.like(f"{period}%"))
    if SLIP_PERIOD_RE.match(period):
        return qry.filter(SalarySlip.period_month == period)
    raise ValidationFailed({"period": ["Use YYYY, YYYY-MM or YYYY-Qn."]})


def slip_query(args):
    qry = SalarySlip.query
    emp_id = int_arg(args, "employee_id")
    if emp_id is not None:
        qry = qry.filter(SalarySlip.employee_id == emp_id)
    period = (args.get("period") or args.get("period_month") or "").strip()
    if period:
        qry = qry.filter(SalarySlip.period_month.ilike(f"%{period}%"))
    return qry
