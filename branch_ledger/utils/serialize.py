from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional


def money(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def settlement_json(rec) -> Dict[str, Any]:
    """Payable/receivable row. The settlement date key follows the model (payment_date / receipt_date)."""
    return {
        'id': rec.id,
        'description': rec.description,
        'amount': money(rec.amount),
        'due_date': iso(rec.due_date),
        'status': rec.status,
        rec.SETTLEMENT_DATE_FIELD: iso(rec.settlement_date),
        'origin_type': rec.origin_type,
        'origin_id': rec.origin_id,
        'document_number': rec.document_number,
        'notes': rec.notes,
        'company_id': rec.company_id,
        'branch_id': rec.branch_id,
        'financial_transaction_id': rec.financial_transaction_id,
        'created_by': rec.created_by,
        'created_at': iso(rec.created_at),
        'updated_at': iso(rec.updated_at),
        'deleted_at': iso(rec.deleted_at),
    }


def transaction_json(tx) -> Dict[str, Any]:
    return {
        'id': tx.id,
        'type': tx.type,
        'amount': money(tx.amount),
        'description': tx.description,
        'transaction_date': iso(tx.transaction_date),
        'origin_type': tx.origin_type,
        'origin_id': tx.origin_id,
        'document_number': tx.document_number,
        'notes': tx.notes,
        'company_id': tx.company_id,
        'branch_id': tx.branch_id,
        'created_by': tx.created_by,
        'created_at': iso(tx.created_at),
        'updated_at': iso(tx.updated_at),
    }


def adjustment_json(adj) -> Dict[str, Any]:
    return {
        'id': adj.id,
        'branch_balance_id': adj.branch_balance_id,
        'previous_balance': money(adj.previous_balance),
        'new_balance': money(adj.new_balance),
        'adjustment_type': adj.adjustment_type,
        'reason': adj.reason,
        'created_by': adj.created_by,
        'created_at': iso(adj.created_at),
    }

__all__ = ['money', 'iso', 'settlement_json', 'transaction_json', 'adjustment_json']
