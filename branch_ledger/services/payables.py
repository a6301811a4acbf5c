from __future__ import annotations
from typing import Optional

from branch_ledger.decorators.audit import audited
from branch_ledger.models.financial_transaction import FinancialTransaction
from branch_ledger.models.settlement import AccountPayable
from branch_ledger.services.inputs import SettleRequest
from branch_ledger.services.policy import Actor
from branch_ledger.services.settlement import SettlementEngine


class PayableEngine(SettlementEngine):
    """Money owed by the company. Paying writes an EXPENSE and lowers the branch balance."""
    model = AccountPayable
    transaction_type = FinancialTransaction.TYPE_EXPENSE
    balance_sign = -1
    label = 'account payable'
    verb = 'pay'
    audit_prefix = 'AP'
    entity_name = 'AccountPayable'
    fsm = SettlementEngine.build_fsm(AccountPayable, 'account payable', 'pay')

    @audited('{prefix}.PAY', by_id='record_id')
    def pay(self, actor: Actor, record_id: str, request: Optional[SettleRequest] = None) -> AccountPayable:
        return self.settle(actor, record_id, request)


__all__ = ['PayableEngine']
