from __future__ import annotations
from typing import Optional

from branch_ledger.decorators.audit import audited
from branch_ledger.models.financial_transaction import FinancialTransaction
from branch_ledger.models.settlement import AccountReceivable
from branch_ledger.services.inputs import SettleRequest
from branch_ledger.services.policy import Actor
from branch_ledger.services.settlement import SettlementEngine


class ReceivableEngine(SettlementEngine):
    """Money due to the company. Receiving writes an INCOME and raises the branch balance."""
    model = AccountReceivable
    transaction_type = FinancialTransaction.TYPE_INCOME
    balance_sign = 1
    label = 'account receivable'
    verb = 'receive'
    audit_prefix = 'AR'
    entity_name = 'AccountReceivable'
    fsm = SettlementEngine.build_fsm(AccountReceivable, 'account receivable', 'receive')

    @audited('{prefix}.RECEIVE', by_id='record_id')
    def receive(self, actor: Actor, record_id: str, request: Optional[SettleRequest] = None) -> AccountReceivable:
        return self.settle(actor, record_id, request)


__all__ = ['ReceivableEngine']
