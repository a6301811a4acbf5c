from __future__ import annotations
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from branch_ledger.config.pagination import DEFAULT_LIMIT
from branch_ledger.config.settings import CompanyContext
from branch_ledger.decorators.audit import audited
from branch_ledger.decorators.branch import branch_scoped
from branch_ledger.errors import Conflict, NotFound
from branch_ledger.models.financial_transaction import FinancialTransaction
from branch_ledger.models.settlement import AccountPayable, AccountReceivable
from branch_ledger.services.audit import AuditSink
from branch_ledger.services.inputs import TransactionCreate, TransactionUpdate
from branch_ledger.services.lookups import require_company, require_branch, require_origin
from branch_ledger.services.policy import Actor, assert_record_access, assert_branch_write
from branch_ledger.utils.filters import apply_filters
from branch_ledger.utils.listing import paginate, build_page_payload
from branch_ledger.utils.serialize import transaction_json
from branch_ledger.utils.validation import parse_date

logger = logging.getLogger(__name__)


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


class FinancialTransactionLedger:
    """Realized cash movements (INCOME / EXPENSE).

    Recording a transaction never moves the branch balance; only settlement does.
    """
    audit_prefix = 'FT'
    entity_name = 'FinancialTransaction'

    def __init__(self, session: Session, company: CompanyContext, audit: Optional[AuditSink] = None):
        self.session = session
        self.company = company
        self.audit = audit or AuditSink(session)

    def serialize(self, tx: FinancialTransaction) -> Dict[str, Any]:
        return transaction_json(tx)

    def snapshot(self, transaction_id: str) -> Optional[Dict[str, Any]]:
        tx = self.session.get(FinancialTransaction, transaction_id, populate_existing=True)
        return transaction_json(tx) if tx else None

    def _load(self, transaction_id: str) -> FinancialTransaction:
        tx = self.session.execute(
            select(FinancialTransaction)
            .where(
                FinancialTransaction.id == transaction_id,
                FinancialTransaction.company_id == self.company.company_id,
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not tx:
            raise NotFound('financial transaction not found')
        return tx

    @branch_scoped
    @audited('{prefix}.CREATE')
    def create(self, actor: Actor, data: TransactionCreate) -> FinancialTransaction:
        assert_branch_write(actor)
        require_company(self.session, self.company)
        require_branch(self.session, self.company, data.branch_id)
        require_origin(self.session, self.company, data.branch_id, data.origin_type, data.origin_id)
        tx = FinancialTransaction(
            type=data.type,
            amount=data.amount,
            description=data.description,
            transaction_date=data.transaction_date,
            origin_type=data.origin_type,
            origin_id=data.origin_id,
            document_number=data.document_number,
            notes=data.notes,
            company_id=self.company.company_id,
            branch_id=data.branch_id,
            created_by=actor.id,
        )
        try:
            self.session.add(tx)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info('Financial transaction %s %s %s recorded for branch %s', tx.id, tx.type, tx.amount, tx.branch_id)
        return tx

    def record_settlement(self, actor: Actor, record, tx_type: str, when: datetime,
                          notes: Optional[str] = None) -> FinancialTransaction:
        """Write the transaction realizing a payable/receivable.

        Joins the caller's unit of work: the row is flushed, never committed here.
        """
        tx = FinancialTransaction(
            type=tx_type,
            amount=record.amount,
            description=record.description,
            transaction_date=when,
            origin_type=record.origin_type,
            origin_id=record.origin_id,
            document_number=record.document_number,
            notes=notes if notes is not None else record.notes,
            company_id=record.company_id,
            branch_id=record.branch_id,
            created_by=actor.id,
        )
        self.session.add(tx)
        self.session.flush()
        return tx

    def get(self, actor: Actor, transaction_id: str) -> FinancialTransaction:
        tx = self._load(transaction_id)
        assert_record_access(actor, tx)
        return tx

    @branch_scoped
    @audited('{prefix}.UPDATE', by_id='transaction_id')
    def update(self, actor: Actor, transaction_id: str, data: TransactionUpdate) -> FinancialTransaction:
        tx = self._load(transaction_id)
        assert_record_access(actor, tx)
        changes = data.changes()
        if changes.get('branch_id') == tx.branch_id:
            changes.pop('branch_id')
        if 'branch_id' in changes:
            require_branch(self.session, self.company, changes['branch_id'])
        if {'branch_id', 'origin_type', 'origin_id'} & changes.keys():
            require_origin(
                self.session, self.company,
                changes.get('branch_id', tx.branch_id),
                changes.get('origin_type', tx.origin_type),
                changes.get('origin_id', tx.origin_id),
            )
        try:
            for key, value in changes.items():
                setattr(tx, key, value)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return tx

    def _referenced_by(self, transaction_id: str) -> Optional[str]:
        # Soft-deleted payables/receivables still hold the reference
        for model, label in ((AccountPayable, 'payable'), (AccountReceivable, 'receivable')):
            count = self.session.execute(
                select(func.count()).select_from(model).where(model.financial_transaction_id == transaction_id)
            ).scalar_one()
            if count:
                return label
        return None

    @audited('{prefix}.DELETE', by_id='transaction_id')
    def remove(self, actor: Actor, transaction_id: str) -> None:
        tx = self._load(transaction_id)
        assert_record_access(actor, tx)
        linked = self._referenced_by(tx.id)
        if linked:
            logger.warning('Refused to delete financial transaction %s linked to a %s', tx.id, linked)
            raise Conflict(f'linked to a {linked}')
        try:
            self.session.delete(tx)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info('Financial transaction %s deleted by %s', transaction_id, actor.id)
        return None

    @branch_scoped
    def list(self, actor: Actor, branch_id: Optional[str] = None, type: Optional[str] = None,
             start_date: Any = None, end_date: Any = None, page: int = 1, limit: int = DEFAULT_LIMIT) -> Dict[str, Any]:
        stmt = select(FinancialTransaction).where(FinancialTransaction.company_id == self.company.company_id)
        specs = {
            'branch_id': {'op': lambda q, v: q.where(FinancialTransaction.branch_id == v)},
            'type': {
                'coerce': lambda v: v.upper(),
                'validate': lambda v: v in FinancialTransaction.ALL_TYPES,
                'op': lambda q, v: q.where(FinancialTransaction.type == v),
            },
            'start_date': {
                'coerce': lambda v: parse_date(v, 'start_date'),
                'op': lambda q, v: q.where(FinancialTransaction.transaction_date >= _day_start(v)),
            },
            # end_date is inclusive of the whole day
            'end_date': {
                'coerce': lambda v: parse_date(v, 'end_date'),
                'op': lambda q, v: q.where(FinancialTransaction.transaction_date < _day_start(v + timedelta(days=1))),
            },
        }
        stmt = apply_filters(stmt, specs, {
            'branch_id': branch_id, 'type': type, 'start_date': start_date, 'end_date': end_date,
        })
        stmt = stmt.order_by(FinancialTransaction.transaction_date.desc(), FinancialTransaction.id.asc())
        rows, total = paginate(self.session, stmt, page, limit)
        return build_page_payload(rows, total, page, limit, transaction_json)


__all__ = ['FinancialTransactionLedger']
