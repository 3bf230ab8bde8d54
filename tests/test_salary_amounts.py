from decimal import Decimal

import pytest

from hris_api.common.errors import ValidationFailed
from hris_api.services.salary_service import build_slip_amounts


@pytest.mark.parametrize("basic,allowance,deduction,total", [
    (5_000_000, 750_000, 250_000, Decimal("5500000.00")),
    ("4500000.50", "0", "100.25", Decimal("4499900.25")),
    (1000, None, None, Decimal("1000.00")),
])
def test_total_is_basic_plus_allowance_minus_deduction(basic, allowance, deduction, total):
    amounts = build_slip_amounts(basic, allowance, deduction)
    assert amounts["total_salary"] == total
    assert amounts["total_salary"] == amounts["basic_salary"] + amounts["allowance"] - amounts["deduction"]


def test_basic_is_required():
    with pytest.raises(ValidationFailed) as exc:
        build_slip_amounts(None)
    assert "basic_salary" in exc.value.payload


def test_negative_and_non_numeric_amounts_rejected():
    with pytest.raises(ValidationFailed) as exc:
        build_slip_amounts(-1, "abc", 5)
    assert set(exc.value.payload) == {"basic_salary", "allowance"}
