# hris_api/common/periods.py
"""Date and period-label helpers shared by the list endpoints."""
from __future__ import annotations

import calendar
import re
from datetime import date, datetime

from sqlalchemy import and_

YEAR_RE = re.compile(r"^\d{4}$")
MONTH_RE = re.compile(r"^(\d{4})-(\d{2})$")
# "2025-10", "2025/3", "2025-Q4", "Q4-2025"
EXACT_PERIOD_RE = re.compile(r"^(\d{4}[-/](Q[1-4]|[0-1]?\d)|Q[1-4]-\d{4})$")
# salary slips accept the stricter set: YYYY-MM or YYYY-Qn
SLIP_PERIOD_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2]|Q[1-4])$")


def parse_date(s):
    if s is None or s == "":
        return None
    if isinstance(s, datetime):
        return s.date()
    if isinstance(s, date):
        return s
    for fmt in ("%Y-%m-%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(str(s).strip(), fmt).date()
        except ValueError:
            pass
    return None


def month_bounds(value: str | None):
    """'2025-12' -> (date(2025, 12, 1), date(2025, 12, 31)); None when malformed."""
    m = MONTH_RE.match((value or "").strip())
    if not m:
        return None
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        return None
    return date(year, month, 1), date(year, month, calendar.monthrange(year, month)[1])


def overlaps(start_col, end_col, lo, hi):
    """Rows whose [start, end] range intersects [lo, hi]."""
    return and_(start_col <= hi, end_col >= lo)


def period_filter(value: str | None):
    """
    Classify a period query value.
      '2025'                       -> ("prefix", "2025")
      '2025-10', '2025-Q4', 'Q4-2025' -> ("exact", value)
      anything else                -> None
    """
    value = (value or "").strip()
    if not value:
        return None
    if YEAR_RE.match(value):
        return "prefix", value
    if EXACT_PERIOD_RE.match(value):
        return "exact", value
    return None


def apply_period(col, value):
    kind = period_filter(value)
    if kind is None:
        return None
    mode, token = kind
    return col.like(f"{token}%") if mode == "prefix" else col == token
