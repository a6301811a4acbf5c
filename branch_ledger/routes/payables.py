from branch_ledger.routes.settlements import make_settlement_blueprint

ap_bp = make_settlement_blueprint('payables', 'payables', 'payables', 'AP', 'pay', 'AP.PAY')
