# hris_api/common/paging.py
from math import ceil

from flask import request
from sqlalchemy import asc, desc, or_

DEFAULT_PAGE = 1
DEFAULT_SIZE = 10
MAX_SIZE = 100


def page_size(max_size=MAX_SIZE, default=DEFAULT_SIZE):
    # ?page & ?per_page (``size`` kept as alias)
    try:
        page = max(int(request.args.get("page", DEFAULT_PAGE)), 1)
    except (TypeError, ValueError):
        page = DEFAULT_PAGE
    raw = request.args.get("per_page", request.args.get("size", default))
    try:
        size = max(1, min(int(raw), max_size))
    except (TypeError, ValueError):
        size = default
    return page, size


def sort_param(allowed: dict[str, object], default_key: str, default_order: str = "desc"):
    """
    allowed: {"name": Model.name, "created_at": Model.created_at, ...}
    ?sort_by=name&sort_order=asc  => order_by clause.
    Unknown keys fall back to ``default_key``.
    """
    key = (request.args.get("sort_by") or "").strip()
    col = allowed.get(key)
    if col is None:
        col = allowed[default_key]
    order = (request.args.get("sort_order") or default_order).strip().lower()
    return asc(col) if order == "asc" else desc(col)


def paginate(qry, page, size):
    total = qry.order_by(None).count()
    items = qry.offset((page - 1) * size).limit(size).all()
    meta = {
        "page": page,
        "per_page": size,
        "total": total,
        "last_page": max(1, ceil(total / size)),
    }
    return items, meta


def text_q(args=None):
    args = request.args if args is None else args
    q = args.get("search") or args.get("q") or ""
    return q.strip() or None


def search_filter(text, *cols):
    like = f"%{text}%"
    return or_(*[c.ilike(like) for c in cols])


def int_arg(args, name):
    try:
        return int(args[name])
    except (KeyError, TypeError, ValueError):
        return None


def float_arg(args, name):
    try:
        return float(args[name])
    except (KeyError, TypeError, ValueError):
        return None
