"""Explicit input structs for ledger operations.

Routes build these from request JSON/query args via ``from_json`` / ``from_args``;
tests, scripts and originating modules construct them directly. Either way the
fields are checked and normalized in ``__post_init__`` (amounts to cents,
dates, trimmed codes), and failures raise ``ValidationError``.

Update structs distinguish "omitted" from "set to null": fields default to
``UNSET`` and ``changes()`` returns only what the caller actually sent.
"""
from __future__ import annotations
import dataclasses
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Dict, Mapping, Optional

from branch_ledger.config.pagination import normalize_page
from branch_ledger.errors import ValidationError
from branch_ledger.models.financial_transaction import FinancialTransaction
from branch_ledger.models.wallet import BalanceAdjustment
from branch_ledger.utils.validation import (
    parse_amount, to_decimal, parse_date, parse_datetime, optional_text, require_text, validate_status,
)


class _Unset:
    def __repr__(self):
        return 'UNSET'

    def __bool__(self):
        return False


UNSET: Any = _Unset()


def _body(data: Any) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValidationError('JSON object body required')
    return data


def _branch(value: Any) -> Optional[str]:
    if value in (None, ''):
        return None
    return str(value)


def _required_branch(value: Any) -> str:
    branch_id = _branch(value)
    if branch_id is None:
        raise ValidationError('branch_id invalid')
    return branch_id


def _tx_type(value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError('type invalid')
    return validate_status(value.upper(), FinancialTransaction.ALL_TYPES, 'type')


def _normalize(obj, checks: Dict[str, Callable[[Any], Any]], skip_unset: bool = False) -> None:
    for name, check in checks.items():
        value = getattr(obj, name)
        if skip_unset and value is UNSET:
            continue
        # frozen dataclass
        object.__setattr__(obj, name, check(value))


# Shared field checks -----------------------------------------------------------

_RECORD_FIELDS: Dict[str, Callable[[Any], Any]] = {
    'description': lambda v: require_text(v, 'description', 255),
    'amount': parse_amount,
    'due_date': lambda v: parse_date(v, 'due_date'),
    'origin_type': lambda v: optional_text(v, 'origin_type', 32),
    'origin_id': _branch,
    'document_number': lambda v: optional_text(v, 'document_number', 64),
    'notes': lambda v: optional_text(v, 'notes'),
}

_TRANSACTION_FIELDS: Dict[str, Callable[[Any], Any]] = {
    'type': _tx_type,
    'amount': parse_amount,
    'description': lambda v: require_text(v, 'description', 255),
    'transaction_date': lambda v: parse_datetime(v, 'transaction_date'),
    'origin_type': lambda v: optional_text(v, 'origin_type', 32),
    'origin_id': _branch,
    'document_number': lambda v: optional_text(v, 'document_number', 64),
    'notes': lambda v: optional_text(v, 'notes'),
}


class _PartialUpdate:
    def changes(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in dataclasses.fields(self)
            if getattr(self, f.name) is not UNSET
        }

    @classmethod
    def from_json(cls, data: Any):
        data = _body(data)
        return cls(**{f.name: data[f.name] for f in dataclasses.fields(cls) if f.name in data})


# Payables / receivables -----------------------------------------------------

@dataclass(frozen=True)
class SettlementCreate:
    description: str
    amount: Decimal
    due_date: date
    branch_id: Optional[str] = None
    origin_type: Optional[str] = None
    origin_id: Optional[str] = None
    document_number: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        _normalize(self, dict(_RECORD_FIELDS, branch_id=_branch))

    @classmethod
    def from_json(cls, data: Any) -> 'SettlementCreate':
        data = _body(data)
        return cls(
            description=data.get('description'),
            amount=data.get('amount'),
            due_date=data.get('due_date'),
            branch_id=data.get('branch_id'),
            origin_type=data.get('origin_type'),
            origin_id=data.get('origin_id'),
            document_number=data.get('document_number'),
            notes=data.get('notes'),
        )


@dataclass(frozen=True)
class SettlementUpdate(_PartialUpdate):
    description: Any = UNSET
    amount: Any = UNSET
    due_date: Any = UNSET
    branch_id: Any = UNSET
    origin_type: Any = UNSET
    origin_id: Any = UNSET
    document_number: Any = UNSET
    notes: Any = UNSET

    def __post_init__(self):
        _normalize(self, dict(_RECORD_FIELDS, branch_id=_required_branch), skip_unset=True)


@dataclass(frozen=True)
class SettleRequest:
    """Pay/receive request. ``date`` defaults to now, ``notes`` override the record's notes."""
    date: Optional[datetime] = None
    notes: Optional[str] = None

    def __post_init__(self):
        _normalize(self, {
            'date': lambda v: parse_datetime(v, 'date') if v else None,
            'notes': lambda v: optional_text(v, 'notes'),
        })

    @classmethod
    def from_json(cls, data: Any) -> 'SettleRequest':
        data = _body(data)
        # payment_date / receipt_date are accepted as aliases of date
        raw = data.get('date') or data.get('payment_date') or data.get('receipt_date')
        return cls(date=raw or None, notes=data.get('notes'))


@dataclass(frozen=True)
class SummaryQuery:
    branch_id: Optional[str] = None
    status: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    page: int = 1
    limit: int = 15

    @classmethod
    def from_args(cls, args: Mapping[str, Any], statuses=None, page_key: str = 'page') -> 'SummaryQuery':
        try:
            page, limit = normalize_page(args.get(page_key), args.get('limit'))
        except ValueError as e:
            raise ValidationError(str(e))
        status = args.get('status') or None
        if status is not None and statuses is not None:
            status = validate_status(status.upper(), statuses)
        start = args.get('start_date')
        end = args.get('end_date')
        return cls(
            branch_id=_branch(args.get('branch_id')),
            status=status,
            start_date=parse_date(start, 'start_date') if start else None,
            end_date=parse_date(end, 'end_date') if end else None,
            page=page,
            limit=limit,
        )


# Financial transactions ------------------------------------------------------

@dataclass(frozen=True)
class TransactionCreate:
    type: str
    amount: Decimal
    description: str
    transaction_date: datetime
    branch_id: Optional[str] = None
    origin_type: Optional[str] = None
    origin_id: Optional[str] = None
    document_number: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        _normalize(self, dict(_TRANSACTION_FIELDS, branch_id=_branch))

    @classmethod
    def from_json(cls, data: Any) -> 'TransactionCreate':
        data = _body(data)
        return cls(
            type=data.get('type'),
            amount=data.get('amount'),
            description=data.get('description'),
            transaction_date=data.get('transaction_date'),
            branch_id=data.get('branch_id'),
            origin_type=data.get('origin_type'),
            origin_id=data.get('origin_id'),
            document_number=data.get('document_number'),
            notes=data.get('notes'),
        )


@dataclass(frozen=True)
class TransactionUpdate(_PartialUpdate):
    type: Any = UNSET
    amount: Any = UNSET
    description: Any = UNSET
    transaction_date: Any = UNSET
    branch_id: Any = UNSET
    origin_type: Any = UNSET
    origin_id: Any = UNSET
    document_number: Any = UNSET
    notes: Any = UNSET

    def __post_init__(self):
        _normalize(self, dict(_TRANSACTION_FIELDS, branch_id=_required_branch), skip_unset=True)


# Wallet ------------------------------------------------------------------------

def _adjustment_type(value: Any) -> str:
    adj_type = value or BalanceAdjustment.TYPE_MANUAL
    if not isinstance(adj_type, str):
        raise ValidationError('adjustment_type invalid')
    return validate_status(adj_type.upper(), BalanceAdjustment.ALL_TYPES, 'adjustment_type')


@dataclass(frozen=True)
class BalanceAdjust:
    new_balance: Decimal
    adjustment_type: str = BalanceAdjustment.TYPE_MANUAL
    reason: Optional[str] = None

    def __post_init__(self):
        # negative baselines are allowed (overdrawn branches)
        _normalize(self, {
            'new_balance': lambda v: to_decimal(v, 'new_balance'),
            'adjustment_type': _adjustment_type,
            'reason': lambda v: optional_text(v, 'reason'),
        })

    @classmethod
    def from_json(cls, data: Any) -> 'BalanceAdjust':
        data = _body(data)
        return cls(
            new_balance=data.get('new_balance'),
            adjustment_type=data.get('adjustment_type'),
            reason=data.get('reason'),
        )


__all__ = [
    'UNSET', 'SettlementCreate', 'SettlementUpdate', 'SettleRequest', 'SummaryQuery',
    'TransactionCreate', 'TransactionUpdate', 'BalanceAdjust',
]
