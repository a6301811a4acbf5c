from __future__ import annotations
from flask import Blueprint, request
from branch_ledger.config.pagination import normalize_page
from branch_ledger.decorators.auth import require_permissions
from branch_ledger.errors import ValidationError
from branch_ledger.models.settlement import AccountPayable, AccountReceivable
from branch_ledger.services.inputs import SummaryQuery
from branch_ledger.services.policy import current_actor
from branch_ledger.services.registry import current_ledger

accounts_bp = Blueprint('accounts', __name__)

ANY_STATUS = set(AccountPayable.ALL_STATUSES) | set(AccountReceivable.ALL_STATUSES)


@accounts_bp.get('/accounts/summary')
@require_permissions('AP.READ', 'AR.READ')
def accounts_summary():
    args = request.args
    query = SummaryQuery.from_args(args, ANY_STATUS)
    try:
        payable_page, _ = normalize_page(args.get('payable_page'), args.get('limit'))
        receivable_page, _ = normalize_page(args.get('receivable_page'), args.get('limit'))
    except ValueError as e:
        raise ValidationError(str(e))
    return current_ledger().summary.accounts_summary(
        current_actor(), query, payable_page=payable_page, receivable_page=receivable_page,
    )
