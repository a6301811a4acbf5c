"""State machine shared by the payable and receivable engines.

A record is created PENDING and leaves that state exactly once, either by
settlement (PAID / RECEIVED) or by cancellation. Settlement runs as one unit
of work:

1. reload the record (``populate_existing`` + ``FOR UPDATE``) and check the transition
2. write the realizing FinancialTransaction (flush only)
3. flip the status with a conditional UPDATE guarded on ``status = 'PENDING'``
4. apply the branch balance delta (when ``atomic_balance`` is on)
5. commit, or roll everything back on any error

With ``atomic_balance`` off, step 4 runs after the commit; a failure there is
surfaced as ``ReconciliationError`` and audited, never retried or undone.
"""
from __future__ import annotations
import logging
from decimal import Decimal
from typing import Any, Dict, Optional, Type
from sqlalchemy import select, update, func
from sqlalchemy.orm import Session

from branch_ledger.config.pagination import DEFAULT_LIMIT
from branch_ledger.config.settings import CompanyContext
from branch_ledger.decorators.audit import audited
from branch_ledger.decorators.branch import branch_scoped
from branch_ledger.errors import InvalidState, NotFound, ReconciliationError
from branch_ledger.models.settlement import SettlementRecordMixin
from branch_ledger.services.audit import AuditSink
from branch_ledger.services.inputs import SettlementCreate, SettlementUpdate, SettleRequest, SummaryQuery
from branch_ledger.services.lookups import require_company, require_branch
from branch_ledger.services.policy import Actor, assert_record_access, assert_branch_write
from branch_ledger.services.transactions import FinancialTransactionLedger
from branch_ledger.services.wallet import BranchBalanceStore
from branch_ledger.utils.dates import utcnow
from branch_ledger.utils.filters import apply_filters
from branch_ledger.utils.fsm import TransitionValidator
from branch_ledger.utils.listing import paginate, build_page_payload
from branch_ledger.utils.serialize import settlement_json, money
from branch_ledger.utils.sorting import apply_multi_sort
from branch_ledger.utils.validation import parse_date

logger = logging.getLogger(__name__)


class SettlementEngine:
    model: Type[SettlementRecordMixin]
    transaction_type: str
    balance_sign: int
    label: str            # 'account payable'
    verb: str             # 'pay'
    audit_prefix: str     # 'AP'
    entity_name: str
    fsm: TransitionValidator

    def __init__(
        self,
        session: Session,
        company: CompanyContext,
        transactions: FinancialTransactionLedger,
        wallet: BranchBalanceStore,
        audit: Optional[AuditSink] = None,
        atomic_balance: bool = True,
    ):
        self.session = session
        self.company = company
        self.transactions = transactions
        self.wallet = wallet
        self.audit = audit or AuditSink(session)
        self.atomic_balance = atomic_balance

    @classmethod
    def build_fsm(cls, model, label: str, verb: str) -> TransitionValidator:
        settled = model.STATUS_SETTLED
        settled_word = settled.lower()
        return TransitionValidator(
            {
                model.STATUS_PENDING: {settled, model.STATUS_CANCELLED},
                settled: set(),
                model.STATUS_CANCELLED: set(),
            },
            messages={
                (settled, settled): f'already {settled_word}',
                (model.STATUS_CANCELLED, settled): f'cancelled, cannot {verb}',
                (settled, model.STATUS_CANCELLED): f'cannot cancel a {settled_word} {label}',
                (model.STATUS_CANCELLED, model.STATUS_CANCELLED): f'{label} already cancelled',
            },
        )

    # -- helpers ---------------------------------------------------------------

    def serialize(self, record) -> Dict[str, Any]:
        return settlement_json(record)

    def snapshot(self, record_id: str) -> Optional[Dict[str, Any]]:
        rec = self.session.get(self.model, record_id, populate_existing=True)
        return settlement_json(rec) if rec else None

    def _load(self, record_id: str, lock: bool = False, include_deleted: bool = False):
        stmt = (
            select(self.model)
            .where(self.model.id == record_id, self.model.company_id == self.company.company_id)
            .execution_options(populate_existing=True)
        )
        if not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        if lock:
            stmt = stmt.with_for_update()
        rec = self.session.execute(stmt).scalar_one_or_none()
        if not rec:
            raise NotFound(f'{self.label} not found')
        return rec

    def _check_transition(self, rec, target: str) -> None:
        """Reject illegal transitions; soft-deleted records still report their terminal state."""
        try:
            self.fsm.assert_can_transition(rec.status, target)
        except InvalidState as e:
            logger.warning('Rejected %s %s -> %s for %s: %s', self.label, rec.status, target, rec.id, e.detail)
            raise
        if rec.deleted_at is not None:
            raise NotFound(f'{self.label} not found')

    def _compare_and_swap(self, record_id: str, **values) -> None:
        """Apply ``values`` only while the row is still PENDING and not deleted."""
        res = self.session.execute(
            update(self.model)
            .where(
                self.model.id == record_id,
                self.model.status == self.model.STATUS_PENDING,
                self.model.deleted_at.is_(None),
            )
            .values(updated_at=func.now(), **values)
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            logger.warning('Stale claim on %s %s', self.label, record_id)
            raise InvalidState(f'{self.label} is no longer pending')

    def _base_query(self, branch_id: Optional[str], start_date, end_date):
        stmt = select(self.model).where(
            self.model.company_id == self.company.company_id,
            self.model.deleted_at.is_(None),
        )
        specs = {
            'branch_id': {'op': lambda q, v: q.where(self.model.branch_id == v)},
            'start_date': {
                'coerce': lambda v: parse_date(v, 'start_date'),
                'op': lambda q, v: q.where(self.model.due_date >= v),
            },
            'end_date': {
                'coerce': lambda v: parse_date(v, 'end_date'),
                'op': lambda q, v: q.where(self.model.due_date <= v),
            },
        }
        return apply_filters(stmt, specs, {'branch_id': branch_id, 'start_date': start_date, 'end_date': end_date})

    # -- operations ------------------------------------------------------------

    @branch_scoped
    @audited('{prefix}.CREATE')
    def create(self, actor: Actor, data: SettlementCreate):
        assert_branch_write(actor)
        require_company(self.session, self.company)
        require_branch(self.session, self.company, data.branch_id)
        rec = self.model(
            description=data.description,
            amount=data.amount,
            due_date=data.due_date,
            status=self.model.STATUS_PENDING,
            origin_type=data.origin_type,
            origin_id=data.origin_id,
            document_number=data.document_number,
            notes=data.notes,
            company_id=self.company.company_id,
            branch_id=data.branch_id,
            created_by=actor.id,
            created_at=utcnow(),
        )
        try:
            self.session.add(rec)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info('%s %s created for branch %s (%s)', self.label, rec.id, rec.branch_id, rec.amount)
        return rec

    def get(self, actor: Actor, record_id: str):
        rec = self._load(record_id)
        assert_record_access(actor, rec)
        return rec

    @branch_scoped
    def list(self, actor: Actor, branch_id: Optional[str] = None, status: Optional[str] = None,
             start_date: Any = None, end_date: Any = None, sort: Optional[str] = None,
             page: int = 1, limit: int = DEFAULT_LIMIT) -> Dict[str, Any]:
        stmt = self._base_query(branch_id, start_date, end_date)
        stmt = apply_filters(stmt, {
            'status': {
                'coerce': lambda v: v.upper(),
                'validate': lambda v: v in self.model.ALL_STATUSES,
                'op': lambda q, v: q.where(self.model.status == v),
            },
        }, {'status': status})
        allowed = {
            'due_date': self.model.due_date,
            'amount': self.model.amount,
            'status': self.model.status,
            'created_at': self.model.created_at,
        }
        stmt = apply_multi_sort(stmt, sort, allowed, self.model.id, default=[self.model.due_date.asc()])
        rows, total = paginate(self.session, stmt, page, limit)
        return build_page_payload(rows, total, page, limit, settlement_json)

    @branch_scoped
    @audited('{prefix}.UPDATE', by_id='record_id')
    def update(self, actor: Actor, record_id: str, data: SettlementUpdate):
        try:
            rec = self._load(record_id, lock=True)
            assert_record_access(actor, rec)
            if rec.status != self.model.STATUS_PENDING:
                logger.warning('Rejected edit of %s %s %s', rec.status.lower(), self.label, rec.id)
                raise InvalidState(f'cannot update a {rec.status.lower()} {self.label}')
            changes = data.changes()
            if changes.get('branch_id') == rec.branch_id:
                changes.pop('branch_id')
            if 'branch_id' in changes:
                require_branch(self.session, self.company, changes['branch_id'])
            if changes:
                self._compare_and_swap(rec.id, **changes)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return self._load(rec.id)

    def settle(self, actor: Actor, record_id: str, request: Optional[SettleRequest] = None):
        request = request or SettleRequest()
        try:
            rec = self._load(record_id, lock=True, include_deleted=True)
            assert_record_access(actor, rec)
            self._check_transition(rec, self.model.STATUS_SETTLED)
            when = request.date or utcnow()
            delta = Decimal(rec.amount) * self.balance_sign
            tx = self.transactions.record_settlement(actor, rec, self.transaction_type, when, request.notes)
            self._compare_and_swap(
                rec.id,
                status=self.model.STATUS_SETTLED,
                financial_transaction_id=tx.id,
                **{self.model.SETTLEMENT_DATE_FIELD: when},
            )
            if self.atomic_balance:
                self.wallet.apply_delta(rec.branch_id, delta, commit=False)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        rec = self._load(rec.id)
        logger.info('%s %s settled as %s by %s (transaction %s, delta %s)',
                    self.label, rec.id, rec.status, actor.id, tx.id, delta)
        if not self.atomic_balance:
            self._apply_delta_after_commit(actor, rec, delta)
        return rec

    def _apply_delta_after_commit(self, actor: Actor, rec, delta: Decimal) -> None:
        try:
            self.wallet.apply_delta(rec.branch_id, delta)
        except Exception as exc:
            logger.error('Settled %s %s but balance delta %s on branch %s failed: %s',
                         self.label, rec.id, delta, rec.branch_id, exc)
            self.audit.record(
                actor,
                'WALLET.DELTA.FAILED',
                entity=self.entity_name,
                entity_id=rec.id,
                branch_id=rec.branch_id,
                after=settlement_json(rec),
                meta={'delta': str(delta), 'error': str(exc)},
            )
            raise ReconciliationError(
                f'{self.label} {rec.id} settled but branch balance was not updated',
                entity_id=rec.id,
                branch_id=rec.branch_id,
            ) from exc

    @audited('{prefix}.CANCEL', by_id='record_id')
    def cancel(self, actor: Actor, record_id: str):
        try:
            rec = self._load(record_id, lock=True, include_deleted=True)
            assert_record_access(actor, rec)
            self._check_transition(rec, self.model.STATUS_CANCELLED)
            self._compare_and_swap(rec.id, status=self.model.STATUS_CANCELLED)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info('%s %s cancelled by %s', self.label, rec.id, actor.id)
        return self._load(rec.id)

    @audited('{prefix}.DELETE', by_id='record_id')
    def remove(self, actor: Actor, record_id: str):
        try:
            rec = self._load(record_id, lock=True)
            assert_record_access(actor, rec)
            if rec.status == self.model.STATUS_SETTLED:
                logger.warning('Rejected delete of %s %s %s', rec.status.lower(), self.label, rec.id)
                raise InvalidState(f'cannot delete a {rec.status.lower()} {self.label}')
            deleted_at = utcnow()
            res = self.session.execute(
                update(self.model)
                .where(
                    self.model.id == rec.id,
                    self.model.status.in_((self.model.STATUS_PENDING, self.model.STATUS_CANCELLED)),
                    self.model.deleted_at.is_(None),
                )
                .values(deleted_at=deleted_at, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise InvalidState(f'{self.label} changed while deleting')
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info('%s %s deleted by %s', self.label, rec.id, actor.id)
        return self.session.get(self.model, rec.id, populate_existing=True)

    @branch_scoped
    def summary(self, actor: Actor, query: SummaryQuery) -> Dict[str, Any]:
        """Paginated rows plus per-status totals; ``query.status`` narrows the rows only."""
        base = self._base_query(query.branch_id, query.start_date, query.end_date)
        sub = base.subquery()
        buckets = {s: {'amount': 0.0, 'count': 0} for s in self.model.ALL_STATUSES}
        grand_amount = Decimal('0')
        grand_count = 0
        for status, amount, count in self.session.execute(
            select(sub.c.status, func.coalesce(func.sum(sub.c.amount), 0), func.count()).group_by(sub.c.status)
        ):
            amount = Decimal(str(amount))
            buckets[status] = {'amount': money(amount), 'count': count}
            grand_amount += amount
            grand_count += count
        totals = {status.lower(): bucket for status, bucket in buckets.items()}
        totals['total'] = {'amount': money(grand_amount), 'count': grand_count}

        rows_stmt = base
        if query.status:
            rows_stmt = rows_stmt.where(self.model.status == query.status)
        rows_stmt = rows_stmt.order_by(self.model.due_date.asc(), self.model.id.asc())
        rows, total = paginate(self.session, rows_stmt, query.page, query.limit)
        payload = build_page_payload(rows, total, query.page, query.limit, settlement_json)
        payload['totals'] = totals
        return payload


__all__ = ['SettlementEngine']
