from __future__ import annotations
import logging
from decimal import Decimal
from typing import Any, Dict, Optional
from sqlalchemy import select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from branch_ledger.config.pagination import HISTORY_LIMIT
from branch_ledger.config.settings import CompanyContext
from branch_ledger.decorators.audit import audited
from branch_ledger.decorators.branch import branch_scoped
from branch_ledger.errors import Conflict
from branch_ledger.models.organization import Branch
from branch_ledger.models.wallet import BranchBalance, BalanceAdjustment
from branch_ledger.services.audit import AuditSink
from branch_ledger.services.lookups import require_branch
from branch_ledger.services.policy import Actor, require_admin
from branch_ledger.services.inputs import BalanceAdjust
from branch_ledger.utils.dates import utcnow
from branch_ledger.utils.listing import paginate, build_page_payload
from branch_ledger.utils.serialize import adjustment_json, money, iso
from branch_ledger.utils.validation import parse_amount

logger = logging.getLogger(__name__)

ZERO = Decimal('0.00')
RECENT_ADJUSTMENTS = 10


class BranchBalanceStore:
    """Running cash balance per branch.

    Settlements move the balance through ``apply_delta`` only; administrators
    re-baseline it through ``adjust_balance``, which leaves an adjustment trail.
    """
    audit_prefix = 'WALLET'
    entity_name = 'BranchBalance'

    def __init__(self, session: Session, company: CompanyContext, audit: Optional[AuditSink] = None):
        self.session = session
        self.company = company
        self.audit = audit or AuditSink(session)

    def serialize(self, adjustment: BalanceAdjustment) -> Dict[str, Any]:
        return adjustment_json(adjustment)

    def _row(self, branch_id: str, lock: bool = False) -> Optional[BranchBalance]:
        stmt = (
            select(BranchBalance)
            .where(BranchBalance.branch_id == branch_id)
            .execution_options(populate_existing=True)
        )
        if lock:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).scalar_one_or_none()

    def current(self, branch_id: str) -> Decimal:
        row = self._row(branch_id)
        if row is None or row.balance is None:
            return ZERO
        return Decimal(row.balance)

    def company_total(self) -> Decimal:
        total = self.session.execute(
            select(func.coalesce(func.sum(BranchBalance.balance), 0))
            .join(Branch, Branch.id == BranchBalance.branch_id)
            .where(Branch.company_id == self.company.company_id, Branch.deleted_at.is_(None))
        ).scalar_one()
        return Decimal(str(total)).quantize(Decimal('0.01'))

    @branch_scoped
    def get_balance(self, actor: Actor, branch_id: Optional[str] = None) -> Decimal:
        require_branch(self.session, self.company, branch_id)
        return self.current(branch_id)

    @branch_scoped
    def balance_detail(self, actor: Actor, branch_id: Optional[str] = None) -> Dict[str, Any]:
        branch = require_branch(self.session, self.company, branch_id)
        row = self._row(branch_id)
        recent = []
        if row is not None:
            recent = self.session.execute(
                select(BalanceAdjustment)
                .where(BalanceAdjustment.branch_balance_id == row.id)
                .order_by(BalanceAdjustment.created_at.desc(), BalanceAdjustment.id.desc())
                .limit(RECENT_ADJUSTMENTS)
            ).scalars().all()
        return {
            'id': row.id if row else None,
            'branch_id': branch.id,
            'branch_name': branch.name,
            'balance': money(row.balance if row else ZERO),
            'updated_at': iso(row.updated_at) if row else None,
            'recent_adjustments': [adjustment_json(a) for a in recent],
        }

    def _increment(self, branch_id: str, delta: Decimal):
        return self.session.execute(
            update(BranchBalance)
            .where(BranchBalance.branch_id == branch_id)
            .values(balance=BranchBalance.balance + delta, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )

    def _insert_row(self, branch_id: str, balance: Decimal) -> bool:
        """Insert the branch's balance row inside a savepoint.

        Returns False when another transaction created it first; the caller's
        outer transaction is left intact.
        """
        try:
            with self.session.begin_nested():
                self.session.add(BranchBalance(branch_id=branch_id, balance=balance))
                self.session.flush()
        except IntegrityError:
            logger.info('Balance row for branch %s created concurrently; retrying', branch_id)
            return False
        return True

    def apply_delta(self, branch_id: str, signed_amount: Decimal, commit: bool = True) -> None:
        """Add ``signed_amount`` to the branch balance with an SQL-side increment.

        Creates the row (balance = delta) on first use. With ``commit=False`` the
        change joins the caller's transaction.
        """
        delta = Decimal(signed_amount)
        try:
            if self._increment(branch_id, delta).rowcount == 0:
                if not self._insert_row(branch_id, delta):
                    if self._increment(branch_id, delta).rowcount != 1:
                        raise Conflict(f'balance row for branch {branch_id} changed while updating')
            if commit:
                self.session.commit()
        except Exception:
            if commit:
                self.session.rollback()
            raise
        logger.debug('Balance delta %s applied to branch %s', delta, branch_id)

    @audited('{prefix}.ADJUST')
    def adjust_balance(self, actor: Actor, branch_id: str, data: BalanceAdjust) -> BalanceAdjustment:
        require_admin(actor)
        require_branch(self.session, self.company, branch_id)
        try:
            row = self._row(branch_id, lock=True)
            if row is None:
                self._insert_row(branch_id, ZERO)
                row = self._row(branch_id, lock=True)
            previous = Decimal(row.balance) if row.balance is not None else ZERO
            row.balance = data.new_balance
            adjustment = BalanceAdjustment(
                branch_balance_id=row.id,
                previous_balance=previous,
                new_balance=data.new_balance,
                adjustment_type=data.adjustment_type,
                reason=data.reason,
                created_by=actor.id,
                created_at=utcnow(),
            )
            self.session.add(adjustment)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info('Branch %s balance adjusted %s -> %s (%s) by %s',
                    branch_id, previous, data.new_balance, data.adjustment_type, actor.id)
        return adjustment

    @branch_scoped
    def history(self, actor: Actor, branch_id: Optional[str] = None, page: int = 1, limit: int = HISTORY_LIMIT) -> Dict[str, Any]:
        require_branch(self.session, self.company, branch_id)
        stmt = (
            select(BalanceAdjustment)
            .join(BranchBalance, BranchBalance.id == BalanceAdjustment.branch_balance_id)
            .where(BranchBalance.branch_id == branch_id)
            .order_by(BalanceAdjustment.created_at.desc(), BalanceAdjustment.id.desc())
        )
        rows, total = paginate(self.session, stmt, page, limit)
        return build_page_payload(rows, total, page, limit, adjustment_json)

    @branch_scoped
    def check_sufficient_balance(self, actor: Actor, branch_id: Optional[str] = None, amount: Any = None) -> Dict[str, Any]:
        """Advisory only; settlement does not enforce it."""
        required = parse_amount(amount)
        require_branch(self.session, self.company, branch_id)
        balance = self.current(branch_id)
        return {
            'sufficient': balance >= required,
            'current_balance': money(balance),
            'required_amount': money(required),
        }


__all__ = ['BranchBalanceStore']
