from __future__ import annotations
from dataclasses import dataclass
from flask import current_app
from flask_jwt_extended import get_jwt
from sqlalchemy.orm import Session

from branch_ledger import get_db
from branch_ledger.config.settings import CompanyContext, FLAG_ATOMIC_BALANCE
from branch_ledger.services.audit import AuditSink
from branch_ledger.services.payables import PayableEngine
from branch_ledger.services.receivables import ReceivableEngine
from branch_ledger.services.summary import WalletSummaryProjector
from branch_ledger.services.transactions import FinancialTransactionLedger
from branch_ledger.services.wallet import BranchBalanceStore


@dataclass
class Ledger:
    company: CompanyContext
    audit: AuditSink
    wallet: BranchBalanceStore
    transactions: FinancialTransactionLedger
    payables: PayableEngine
    receivables: ReceivableEngine
    summary: WalletSummaryProjector


def build_ledger(session: Session, company: CompanyContext, atomic_balance: bool = True) -> Ledger:
    """Wire the ledger components around one session. Usable without Flask."""
    audit = AuditSink(session)
    wallet = BranchBalanceStore(session, company, audit)
    transactions = FinancialTransactionLedger(session, company, audit)
    payables = PayableEngine(session, company, transactions, wallet, audit, atomic_balance)
    receivables = ReceivableEngine(session, company, transactions, wallet, audit, atomic_balance)
    summary = WalletSummaryProjector(session, company, wallet, payables, receivables)
    return Ledger(company, audit, wallet, transactions, payables, receivables, summary)


def current_ledger() -> Ledger:
    """Ledger for the current request (JWT already verified)."""
    cfg = current_app.config
    company = CompanyContext.resolve(cfg, get_jwt())
    return build_ledger(get_db(), company, bool(cfg.get(FLAG_ATOMIC_BALANCE, True)))


__all__ = ['Ledger', 'build_ledger', 'current_ledger']
