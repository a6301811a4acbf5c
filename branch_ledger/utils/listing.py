from __future__ import annotations
import math
from typing import Any, Callable, Dict, List, Tuple
from sqlalchemy import select, func
from sqlalchemy.orm import Session


def count_rows(session: Session, stmt) -> int:
    # order_by is irrelevant for counting and some backends reject it in subqueries
    return session.execute(select(func.count()).select_from(stmt.order_by(None).subquery())).scalar_one()


def paginate(session: Session, stmt, page: int, limit: int) -> Tuple[list, int]:
    """Run ``stmt`` for one 1-indexed page. Returns (rows, total)."""
    total = count_rows(session, stmt)
    rows = session.execute(stmt.offset((page - 1) * limit).limit(limit)).scalars().all()
    return list(rows), total


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


def build_page_payload(rows: List[Any], total: int, page: int, limit: int,
                       serializer: Callable[[Any], Dict[str, Any]] | None = None) -> Dict[str, Any]:
    data = [serializer(r) for r in rows] if serializer else rows
    return {
        'data': data,
        'total': total,
        'page': page,
        'limit': limit,
        'total_pages': total_pages(total, limit),
    }

__all__ = ['count_rows', 'paginate', 'total_pages', 'build_page_payload']
