from __future__ import annotations
from datetime import datetime, timezone
from typing import Tuple
from branch_ledger.errors import ValidationError


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def month_bounds(month: int, year: int) -> Tuple[datetime, datetime]:
    """Half-open ``[first instant of month, first instant of next month)`` in UTC."""
    if not 1 <= month <= 12:
        raise ValidationError('month must be between 1 and 12')
    if year < 1:
        raise ValidationError('year invalid')
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    if month == 12:
        end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    else:
        end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    return start, end


__all__ = ['utcnow', 'month_bounds']
