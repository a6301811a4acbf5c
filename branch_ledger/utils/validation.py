"""Reusable validation helpers for ledger inputs.

Every helper raises ``ValidationError`` (400) with a short ``<field> invalid``
style message, so routes and engines share one error vocabulary.
"""
from __future__ import annotations
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Optional
from branch_ledger.errors import ValidationError

CENT = Decimal('0.01')


def to_decimal(value: Any, field_name: str = 'amount') -> Decimal:
    if isinstance(value, bool) or value is None:
        raise ValidationError(f'{field_name} invalid')
    try:
        # str() keeps floats like 0.1 from dragging binary noise along
        dec = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field_name} invalid')
    if not dec.is_finite():
        raise ValidationError(f'{field_name} invalid')
    return dec.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(value: Any, field_name: str = 'amount') -> Decimal:
    """Money amount strictly greater than zero, rounded to cents."""
    dec = to_decimal(value, field_name)
    if dec <= 0:
        raise ValidationError(f'{field_name} must be greater than zero')
    return dec


def parse_date(value: Any, field_name: str = 'date') -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        raise ValidationError(f'{field_name} invalid')
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValidationError(f'{field_name} invalid')


def parse_datetime(value: Any, field_name: str = 'date') -> datetime:
    """ISO-8601 date or datetime, normalized to UTC; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value:
        try:
            dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
        except ValueError:
            raise ValidationError(f'{field_name} invalid')
    else:
        raise ValidationError(f'{field_name} invalid')
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def optional_text(value: Any, field_name: str, max_len: Optional[int] = None) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f'{field_name} invalid')
    if max_len is not None and len(value) > max_len:
        raise ValidationError(f'{field_name} too long')
    return value


def require_text(value: Any, field_name: str, max_len: Optional[int] = None) -> str:
    text = optional_text(value, field_name, max_len)
    if not text or not text.strip():
        raise ValidationError(f'{field_name} required')
    return text


def validate_status(new_status: str, allowed: Iterable[str], field_name: str = 'status') -> str:
    """Validate that new_status is inside allowed.

    Returns the status (to enable inline usage) or raises ValidationError.
    """
    if new_status not in allowed:
        raise ValidationError(f"{field_name} invalid")
    return new_status

__all__ = [
    'to_decimal', 'parse_amount', 'parse_date', 'parse_datetime',
    'optional_text', 'require_text', 'validate_status',
]
