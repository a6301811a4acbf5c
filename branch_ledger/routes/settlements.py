"""Blueprint factory for the mirrored payable/receivable HTTP surface."""
from __future__ import annotations
from flask import Blueprint, request
from branch_ledger.decorators.auth import require_permissions
from branch_ledger.routes.common import page_args, json_body
from branch_ledger.services.inputs import SettlementCreate, SettlementUpdate, SettleRequest, SummaryQuery
from branch_ledger.services.policy import current_actor
from branch_ledger.services.registry import current_ledger
from branch_ledger.utils.serialize import settlement_json


def make_settlement_blueprint(name: str, path: str, engine_attr: str, perm: str, verb: str, settle_perm: str) -> Blueprint:
    bp = Blueprint(name, __name__)

    def engine():
        return getattr(current_ledger(), engine_attr)

    @bp.get(f'/{path}', endpoint='list')
    @require_permissions(f'{perm}.READ')
    def list_records():
        page, limit = page_args()
        args = request.args
        return engine().list(
            current_actor(),
            branch_id=args.get('branch_id') or None,
            status=args.get('status') or None,
            start_date=args.get('start_date') or None,
            end_date=args.get('end_date') or None,
            sort=args.get('sort') or None,
            page=page,
            limit=limit,
        )

    @bp.post(f'/{path}', endpoint='create')
    @require_permissions(f'{perm}.CREATE')
    def create_record():
        data = SettlementCreate.from_json(json_body())
        rec = engine().create(current_actor(), data)
        return settlement_json(rec), 201

    @bp.get(f'/{path}/summary', endpoint='summary')
    @require_permissions(f'{perm}.READ')
    def record_summary():
        eng = engine()
        query = SummaryQuery.from_args(request.args, eng.model.ALL_STATUSES)
        return eng.summary(current_actor(), query)

    @bp.get(f'/{path}/<record_id>', endpoint='get')
    @require_permissions(f'{perm}.READ')
    def get_record(record_id: str):
        return settlement_json(engine().get(current_actor(), record_id))

    @bp.patch(f'/{path}/<record_id>', endpoint='update')
    @require_permissions(f'{perm}.UPDATE')
    def update_record(record_id: str):
        data = SettlementUpdate.from_json(json_body())
        return settlement_json(engine().update(current_actor(), record_id, data))

    @bp.delete(f'/{path}/<record_id>', endpoint='delete')
    @require_permissions(f'{perm}.DELETE')
    def delete_record(record_id: str):
        return settlement_json(engine().remove(current_actor(), record_id))

    @bp.post(f'/{path}/<record_id>/{verb}', endpoint=verb)
    @require_permissions(settle_perm)
    def settle_record(record_id: str):
        data = SettleRequest.from_json(json_body())
        eng = engine()
        rec = getattr(eng, verb)(current_actor(), record_id, data)
        return settlement_json(rec)

    @bp.post(f'/{path}/<record_id>/cancel', endpoint='cancel')
    @require_permissions(f'{perm}.CANCEL')
    def cancel_record(record_id: str):
        return settlement_json(engine().cancel(current_actor(), record_id))

    return bp
