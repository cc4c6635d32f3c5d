from __future__ import annotations

from typing import Tuple

from flask import request, abort

MAX_LIMIT = 100


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


def parse_sort(column, name: str = "name", default: str = "name"):
    """Single-column sort: `name` ascending, `-name` descending."""
    sort = request.args.get("sort", default)
    desc = sort.startswith("-")
    key = sort[1:] if desc else sort
    if key != name:
        abort(400, description=f"Unsupported sort field. Allowed: {name}")
    return (column.desc() if desc else column.asc(),)
