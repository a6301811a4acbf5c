import logging
from datetime import date
from decimal import Decimal
from sqlalchemy import select
from branch_ledger.models.audit import AuditLog
from branch_ledger.services.inputs import SettlementCreate, SettlementUpdate
from tests.test_utils_seed import ensure_branch
from tests.test_lifecycle_helpers import admin_actor, branch_actor


def _logs(session, entity_id):
    return session.execute(
        select(AuditLog).where(AuditLog.entity_id == entity_id).order_by(AuditLog.id)
    ).scalars().all()


def _payable(ledger, actor, branch):
    return ledger.payables.create(actor, SettlementCreate(
        description='Tools', amount=Decimal('80'), due_date=date(2024, 2, 1), branch_id=branch.id))


def test_lifecycle_is_audited(ledger, session):
    branch = ensure_branch()
    clerk = branch_actor(branch.id, user_id='clerk-9')
    rec = _payable(ledger, clerk, branch)
    ledger.payables.update(clerk, rec.id, SettlementUpdate(amount=Decimal('95')))
    ledger.payables.pay(clerk, rec.id)

    logs = _logs(session, rec.id)
    assert [l.action for l in logs] == ['AP.CREATE', 'AP.UPDATE', 'AP.PAY']
    assert all(l.actor_user_id == 'clerk-9' and l.branch_id == branch.id for l in logs)
    assert all(l.entity == 'AccountPayable' for l in logs)
    create, update, pay = logs
    assert create.before is None
    assert update.before['amount'] == 80
    assert update.after['amount'] == 95
    assert pay.before['status'] == 'PENDING'
    assert pay.after['status'] == 'PAID'
    assert pay.after['financial_transaction_id']


def test_rejected_operations_are_not_audited(ledger, session):
    branch = ensure_branch()
    admin = admin_actor()
    rec = _payable(ledger, admin, branch)
    ledger.payables.cancel(admin, rec.id)
    try:
        ledger.payables.pay(admin, rec.id)
    except Exception:
        pass
    assert [l.action for l in _logs(session, rec.id)] == ['AP.CREATE', 'AP.CANCEL']


def test_audit_failure_does_not_block_settlement(ledger, session, monkeypatch, caplog):
    branch = ensure_branch()
    admin = admin_actor()
    rec = _payable(ledger, admin, branch)

    class BrokenAuditLog:
        def __init__(self, **kwargs):
            raise RuntimeError('audit store down')

    monkeypatch.setattr('branch_ledger.services.audit.AuditLog', BrokenAuditLog)
    with caplog.at_level(logging.ERROR, logger='branch_ledger.services.audit'):
        paid = ledger.payables.pay(admin, rec.id)
    assert paid.status == 'PAID'
    assert ledger.wallet.get_balance(admin, branch.id) == Decimal('-80')
    assert any('Audit write failed' in r.getMessage() for r in caplog.records)
    monkeypatch.undo()
    assert [l.action for l in _logs(session, rec.id)] == ['AP.CREATE']
