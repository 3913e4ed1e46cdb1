# ems_api/common/paging.py
import math

from flask import current_app, request
from sqlalchemy import or_

from ems_api.common.errors import MalformedIdentifier

DEFAULT_PAGE = 1
DEFAULT_SIZE = 10
MAX_SIZE = 100


def page_limit():
    """
    ?page (default 1) and ?limit (alias ?size), clamped to [1, MAX_PAGE_SIZE].
    Garbage values fall back to defaults.
    """
    default_size = current_app.config.get("DEFAULT_PAGE_SIZE", DEFAULT_SIZE)
    max_size = current_app.config.get("MAX_PAGE_SIZE", MAX_SIZE)
    try:
        page = max(int(request.args.get("page", DEFAULT_PAGE)), 1)
    except (TypeError, ValueError):
        page = DEFAULT_PAGE
    raw = request.args.get("limit", request.args.get("size"))
    try:
        limit = int(raw) if raw is not None else default_size
        limit = max(1, min(limit, max_size))
    except (TypeError, ValueError):
        limit = default_size
    return page, limit


def text_q():
    q = request.args.get("search", request.args.get("q", ""))
    return (q or "").strip() or None


def apply_search(query, text, *cols):
    if not text:
        return query
    like = f"%{text}%"
    return query.filter(or_(*[c.ilike(like) for c in cols]))


def paginate(query, page, limit):
    """Return (items, pagination block) for an already filtered/sorted query."""
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalRecords": total,
        "pageSize": limit,
    }


def parse_id(value, field_name="id"):
    """
    Identifiers are positive integers. Anything else -> MalformedIdentifier.
    None / "" pass through as None so optional references stay optional.
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise MalformedIdentifier(f"Invalid {field_name} format")
    try:
        out = int(str(value).strip())
    except (TypeError, ValueError):
        raise MalformedIdentifier(f"Invalid {field_name} format")
    if out <= 0:
        raise MalformedIdentifier(f"Invalid {field_name} format")
    return out
