# hris_api/services/review_stats.py
"""Aggregates over performance-review ratings. Pure functions, no session access."""
from __future__ import annotations

import calendar
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Sequence

from hris_api.common.periods import MONTH_RE

BANDS = (
    (9, "Outstanding"),
    (8, "Excellent"),
    (7, "Very Good"),
    (6, "Good"),
    (5, "Satisfactory"),
)
NO_REVIEWS = "No Reviews Yet"


def _round1(value) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def performance_level(average) -> str:
    for threshold, label in BANDS:
        if average >= threshold:
            return label
    return "Needs Improvement"


def employee_statistics(ratings: Sequence[int]) -> dict:
    ratings = list(ratings)
    if not ratings:
        return {
            "total_reviews": 0,
            "average_rating": 0,
            "highest_rating": None,
            "lowest_rating": None,
            "performance_level": NO_REVIEWS,
        }
    average = _round1(sum(ratings) / len(ratings))
    return {
        "total_reviews": len(ratings),
        "average_rating": average,
        "highest_rating": max(ratings),
        "lowest_rating": min(ratings),
        "performance_level": performance_level(average),
    }


def _month_of(period, created_at, year):
    m = MONTH_RE.match(period or "")
    if m:
        return int(m.group(2)) if int(m.group(1)) == year else None
    if created_at is not None and created_at.year == year:
        return created_at.month
    return None


def monthly_chart(reviews: Iterable, year: int) -> list[dict]:
    """
    Twelve entries for ``year``. ``reviews`` yields objects with ``period``,
    ``total_star`` and ``created_at``; a review lands in the month named by a
    YYYY-MM period, otherwise in the month it was written.
    """
    buckets = {m: [] for m in range(1, 13)}
    for r in reviews:
        month = _month_of(r.period, r.created_at, year)
        if month and 1 <= month <= 12:
            buckets[month].append(r.total_star)
    return [
        {
            "month": m,
            "label": calendar.month_abbr[m],
            "average_rating": _round1(sum(v) / len(v)) if v else None,
            "review_count": len(v),
        }
        for m, v in buckets.items()
    ]


def performance_trend(ratings_newest_first: Sequence[int], window: int = 3) -> str:
    recent = list(ratings_newest_first)[:window]
    if len(recent) < 2:
        return "stable"
    latest, rest = recent[0], recent[1:]
    baseline = sum(rest) / len(rest)
    if latest > baseline + 1:
        return "improving"
    if latest < baseline - 1:
        return "declining"
    return "stable"
