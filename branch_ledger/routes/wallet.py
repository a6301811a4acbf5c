from __future__ import annotations
from flask import Blueprint, request
from branch_ledger.config.pagination import HISTORY_LIMIT
from branch_ledger.decorators.auth import require_permissions
from branch_ledger.errors import ValidationError
from branch_ledger.routes.common import page_args, json_body
from branch_ledger.services.inputs import BalanceAdjust
from branch_ledger.services.policy import current_actor
from branch_ledger.services.registry import current_ledger
from branch_ledger.utils.serialize import adjustment_json

wallet_bp = Blueprint('wallet', __name__)


def _branch_arg(data=None):
    value = (data or {}).get('branch_id') or request.args.get('branch_id')
    return str(value) if value else None


@wallet_bp.get('/wallet/balance')
@require_permissions('WALLET.READ')
def get_balance():
    return current_ledger().wallet.balance_detail(current_actor(), branch_id=_branch_arg())


@wallet_bp.get('/wallet/summary')
@require_permissions('WALLET.READ')
def get_summary():
    return current_ledger().summary.wallet_summary(
        current_actor(),
        branch_id=_branch_arg(),
        month=request.args.get('month'),
        year=request.args.get('year'),
    )


@wallet_bp.post('/wallet/adjust')
@require_permissions('WALLET.ADJUST')
def adjust_balance():
    body = json_body()
    data = BalanceAdjust.from_json(body)
    branch_id = _branch_arg(body if isinstance(body, dict) else None)
    if not branch_id:
        raise ValidationError('branch_id required')
    adjustment = current_ledger().wallet.adjust_balance(current_actor(), branch_id, data)
    return adjustment_json(adjustment), 201


@wallet_bp.get('/wallet/history')
@require_permissions('WALLET.HISTORY')
def get_history():
    page, limit = page_args(HISTORY_LIMIT)
    return current_ledger().wallet.history(current_actor(), branch_id=_branch_arg(), page=page, limit=limit)


@wallet_bp.get('/wallet/check-balance')
@require_permissions('WALLET.READ')
def check_balance():
    return current_ledger().wallet.check_sufficient_balance(
        current_actor(), branch_id=_branch_arg(), amount=request.args.get('amount'),
    )
