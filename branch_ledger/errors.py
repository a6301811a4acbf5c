"""Ledger error taxonomy.

Every error carries a stable ``kind`` (used by API clients to branch on the
failure), an HTTP ``status`` for the web layer and a human readable
``detail`` phrased in domain terms.
"""
from __future__ import annotations


class LedgerError(Exception):
    kind = 'LedgerError'
    status = 500
    title = 'Ledger Error'

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(LedgerError):
    kind = 'NotFound'
    status = 404
    title = 'Not Found'


class InvalidState(LedgerError):
    kind = 'InvalidState'
    status = 409
    title = 'Invalid State'


class Conflict(LedgerError):
    kind = 'Conflict'
    status = 409
    title = 'Conflict'


class Forbidden(LedgerError):
    kind = 'Forbidden'
    status = 403
    title = 'Forbidden'


class ValidationError(LedgerError):
    kind = 'ValidationError'
    status = 400
    title = 'Bad Request'


class ReconciliationError(LedgerError):
    """Settlement committed but the branch balance was not moved."""
    kind = 'ReconciliationError'
    status = 500
    title = 'Reconciliation Required'

    def __init__(self, detail: str, *, entity_id: str | None = None, branch_id: str | None = None):
        super().__init__(detail)
        self.entity_id = entity_id
        self.branch_id = branch_id


__all__ = [
    'LedgerError', 'NotFound', 'InvalidState', 'Conflict', 'Forbidden',
    'ValidationError', 'ReconciliationError',
]
