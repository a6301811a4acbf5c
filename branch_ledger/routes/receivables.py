from branch_ledger.routes.settlements import make_settlement_blueprint

ar_bp = make_settlement_blueprint('receivables', 'receivables', 'receivables', 'AR', 'receive', 'AR.RECEIVE')
