from __future__ import annotations
import dataclasses
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import select, func
from sqlalchemy.orm import Session

from branch_ledger.config.settings import CompanyContext
from branch_ledger.decorators.branch import branch_scoped
from branch_ledger.errors import ValidationError
from branch_ledger.models.financial_transaction import FinancialTransaction
from branch_ledger.models.settlement import AccountPayable, AccountReceivable
from branch_ledger.services.inputs import SummaryQuery
from branch_ledger.services.lookups import require_branch
from branch_ledger.services.payables import PayableEngine
from branch_ledger.services.policy import Actor
from branch_ledger.services.receivables import ReceivableEngine
from branch_ledger.services.wallet import BranchBalanceStore
from branch_ledger.utils.dates import month_bounds, utcnow
from branch_ledger.utils.serialize import money, iso


def _as_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'{field_name} invalid')
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field_name} invalid')


class WalletSummaryProjector:
    """Read model for dashboards: balance, period flows and pending pools.

    Pending payables/receivables are bound to the period by due date.
    """

    def __init__(self, session: Session, company: CompanyContext, wallet: BranchBalanceStore,
                 payables: PayableEngine, receivables: ReceivableEngine):
        self.session = session
        self.company = company
        self.wallet = wallet
        self.payables = payables
        self.receivables = receivables

    def _flow(self, tx_type: str, branch_id: Optional[str], start, end) -> Decimal:
        stmt = select(func.coalesce(func.sum(FinancialTransaction.amount), 0)).where(
            FinancialTransaction.company_id == self.company.company_id,
            FinancialTransaction.type == tx_type,
            FinancialTransaction.transaction_date >= start,
            FinancialTransaction.transaction_date < end,
        )
        if branch_id:
            stmt = stmt.where(FinancialTransaction.branch_id == branch_id)
        return Decimal(str(self.session.execute(stmt).scalar_one()))

    def _scoped(self, model, branch_id: Optional[str]):
        stmt = select(model).where(model.company_id == self.company.company_id, model.deleted_at.is_(None))
        if branch_id:
            stmt = stmt.where(model.branch_id == branch_id)
        return stmt

    def _pending_total(self, model, branch_id: Optional[str], start_date, end_date) -> Decimal:
        sub = self._scoped(model, branch_id).where(
            model.status == model.STATUS_PENDING,
            model.due_date >= start_date,
            model.due_date < end_date,
        ).subquery()
        total = self.session.execute(select(func.coalesce(func.sum(sub.c.amount), 0))).scalar_one()
        return Decimal(str(total))

    def _movements(self, model, kind: str, branch_id: Optional[str], start, end) -> List[Dict[str, Any]]:
        settled_at = getattr(model, model.SETTLEMENT_DATE_FIELD)
        pending = self._scoped(model, branch_id).where(
            model.status == model.STATUS_PENDING,
            model.due_date >= start.date(),
            model.due_date < end.date(),
        )
        settled = self._scoped(model, branch_id).where(
            model.status == model.STATUS_SETTLED,
            settled_at >= start,
            settled_at < end,
        )
        rows = list(self.session.execute(pending).scalars()) + list(self.session.execute(settled).scalars())
        return [
            {
                'id': r.id,
                'type': kind,
                'description': r.description,
                'amount': money(r.amount),
                'status': r.status,
                'due_date': iso(r.due_date),
                'payment_date': iso(r.settlement_date),
                'origin_type': r.origin_type,
                'document_number': r.document_number,
            }
            for r in rows
        ]

    @branch_scoped
    def wallet_summary(self, actor: Actor, branch_id: Optional[str] = None,
                       month: Any = None, year: Any = None) -> Dict[str, Any]:
        now = utcnow()
        month = _as_int(month, 'month') if month is not None else now.month
        year = _as_int(year, 'year') if year is not None else now.year
        start, end = month_bounds(month, year)

        if branch_id:
            branch = require_branch(self.session, self.company, branch_id)
            branch_name = branch.name
            current = self.wallet.current(branch_id)
        else:
            # company-wide aggregate (administrators)
            branch_name = None
            current = self.wallet.company_total()

        income = self._flow(FinancialTransaction.TYPE_INCOME, branch_id, start, end)
        expense = self._flow(FinancialTransaction.TYPE_EXPENSE, branch_id, start, end)
        pending_payables = self._pending_total(AccountPayable, branch_id, start.date(), end.date())
        pending_receivables = self._pending_total(AccountReceivable, branch_id, start.date(), end.date())

        movements = (
            self._movements(AccountPayable, 'payable', branch_id, start, end)
            + self._movements(AccountReceivable, 'receivable', branch_id, start, end)
        )
        movements.sort(key=lambda m: (m['status'] != 'PENDING', m['due_date'] or '', m['id']))

        return {
            'branch_id': branch_id,
            'branch_name': branch_name,
            'reference_month': month,
            'reference_year': year,
            'current_balance': money(current),
            'total_income': money(income),
            'total_expense': money(expense),
            'period_profit': money(income - expense),
            'pending_payables': money(pending_payables),
            'pending_receivables': money(pending_receivables),
            'projected_balance': money(current + pending_receivables - pending_payables),
            'movements': movements,
        }

    @branch_scoped
    def accounts_summary(self, actor: Actor, query: SummaryQuery, payable_page: int = 1,
                         receivable_page: int = 1) -> Dict[str, Any]:
        """Payable and receivable summaries side by side.

        ``net_balance`` is the grand total receivable minus the grand total payable
        (all statuses, within the date range).
        """
        ap = self.payables.summary(actor, dataclasses.replace(query, page=payable_page))
        ar = self.receivables.summary(actor, dataclasses.replace(query, page=receivable_page))
        total_payable = Decimal(str(ap['totals']['total']['amount']))
        total_receivable = Decimal(str(ar['totals']['total']['amount']))
        return {
            'summary': {
                'payables': ap.pop('totals'),
                'receivables': ar.pop('totals'),
                'total_payable': money(total_payable),
                'total_receivable': money(total_receivable),
                'net_balance': money(total_receivable - total_payable),
            },
            'payables': ap,
            'receivables': ar,
        }


__all__ = ['WalletSummaryProjector']
