from __future__ import annotations

import math
from typing import Any, Mapping

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session


def apply_sort(stmt: Select, sort_by: str, sort_order: str, allowed: Mapping[str, Any], default: str, tie_breaker: Any) -> Select:
    """Unknown fields fall back to `default`; unknown orders fall back to descending."""
    column = allowed.get(sort_by, allowed[default])
    ordered = column.asc() if sort_order.lower() == "asc" else column.desc()
    return stmt.order_by(ordered, tie_breaker.asc())


def paginate(db: Session, stmt: Select, page: int, limit: int) -> dict[str, Any]:
    """
    Run `stmt` for one page and count the full result.

    The count query wraps the same filtered statement, so visibility scoping
    applies to both.
    """

    total = db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery())) or 0
    rows = list(db.scalars(stmt.offset((page - 1) * limit).limit(limit)).all())
    return {
        "count": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "current_page": page,
        "data": rows,
    }
