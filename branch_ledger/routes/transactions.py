from __future__ import annotations
from flask import Blueprint, request
from branch_ledger.decorators.auth import require_permissions
from branch_ledger.routes.common import page_args, json_body
from branch_ledger.services.inputs import TransactionCreate, TransactionUpdate
from branch_ledger.services.policy import current_actor
from branch_ledger.services.registry import current_ledger
from branch_ledger.utils.serialize import transaction_json

ft_bp = Blueprint('transactions', __name__)


@ft_bp.get('/transactions')
@require_permissions('FT.READ')
def list_transactions():
    page, limit = page_args()
    args = request.args
    return current_ledger().transactions.list(
        current_actor(),
        branch_id=args.get('branch_id') or None,
        type=args.get('type') or None,
        start_date=args.get('start_date') or None,
        end_date=args.get('end_date') or None,
        page=page,
        limit=limit,
    )


@ft_bp.post('/transactions')
@require_permissions('FT.CREATE')
def create_transaction():
    data = TransactionCreate.from_json(json_body())
    tx = current_ledger().transactions.create(current_actor(), data)
    return transaction_json(tx), 201


@ft_bp.get('/transactions/<transaction_id>')
@require_permissions('FT.READ')
def get_transaction(transaction_id: str):
    return transaction_json(current_ledger().transactions.get(current_actor(), transaction_id))


@ft_bp.patch('/transactions/<transaction_id>')
@require_permissions('FT.UPDATE')
def update_transaction(transaction_id: str):
    data = TransactionUpdate.from_json(json_body())
    tx = current_ledger().transactions.update(current_actor(), transaction_id, data)
    return transaction_json(tx)


@ft_bp.delete('/transactions/<transaction_id>')
@require_permissions('FT.DELETE')
def delete_transaction(transaction_id: str):
    current_ledger().transactions.remove(current_actor(), transaction_id)
    return '', 204
