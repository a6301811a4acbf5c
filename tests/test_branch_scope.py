from datetime import date
from decimal import Decimal
import pytest
from branch_ledger.errors import Forbidden
from branch_ledger.services.inputs import SettlementCreate, SettlementUpdate, SummaryQuery
from tests.test_utils_seed import ensure_branch
from tests.test_lifecycle_helpers import (
    admin_actor, branch_actor, admin_headers, branch_headers, jwt_headers, assert_error, create_resource_and_assert,
)


def _create(ledger, actor, branch_id, amount='100'):
    return ledger.payables.create(actor, SettlementCreate(
        description='Supplies', amount=Decimal(amount), due_date=date(2024, 9, 1), branch_id=branch_id))


def test_create_and_update_are_redirected_to_own_branch(ledger):
    b1, b2 = ensure_branch('B1'), ensure_branch('B2')
    clerk = branch_actor(b1.id)
    rec = _create(ledger, clerk, b2.id)
    assert rec.branch_id == b1.id
    rec = ledger.payables.update(clerk, rec.id, SettlementUpdate(branch_id=b2.id, description='Moved?'))
    assert rec.branch_id == b1.id
    assert rec.description == 'Moved?'


def test_foreign_records_are_forbidden(ledger):
    b1, b2 = ensure_branch(), ensure_branch()
    clerk = branch_actor(b1.id)
    foreign = _create(ledger, admin_actor(), b2.id)
    for op in (
        lambda: ledger.payables.get(clerk, foreign.id),
        lambda: ledger.payables.pay(clerk, foreign.id),
        lambda: ledger.payables.cancel(clerk, foreign.id),
        lambda: ledger.payables.remove(clerk, foreign.id),
        lambda: ledger.payables.update(clerk, foreign.id, SettlementUpdate(description='x')),
    ):
        with pytest.raises(Forbidden):
            op()
    assert ledger.payables.get(admin_actor(), foreign.id).status == 'PENDING'


def test_listing_and_summary_confined_to_own_branch(ledger):
    b1, b2 = ensure_branch(), ensure_branch()
    clerk = branch_actor(b1.id)
    _create(ledger, admin_actor(), b1.id, '10')
    _create(ledger, admin_actor(), b2.id, '20')
    page = ledger.payables.list(clerk, branch_id=b2.id)
    assert page['total'] >= 1
    assert {r['branch_id'] for r in page['data']} == {b1.id}
    summary = ledger.payables.summary(clerk, SummaryQuery(branch_id=b2.id))
    assert summary['totals']['total'] == {'amount': 10, 'count': 1}


def test_branchless_user_cannot_write_or_open_records(ledger):
    branch = ensure_branch()
    nobody = branch_actor(None)
    with pytest.raises(Forbidden):
        _create(ledger, nobody, branch.id)
    rec = _create(ledger, admin_actor(), branch.id)
    with pytest.raises(Forbidden):
        ledger.payables.get(nobody, rec.id)


def test_admin_reaches_any_branch(ledger):
    b1, b2 = ensure_branch(), ensure_branch()
    rec = _create(ledger, admin_actor(), b2.id)
    assert rec.branch_id == b2.id
    page = ledger.payables.list(admin_actor(), branch_id=b1.id)
    assert page['total'] == 0


def test_http_branch_forcing(client):
    b1, b2 = ensure_branch(), ensure_branch()
    clerk = branch_headers(b1.id)
    body = create_resource_and_assert(client, '/finance/receivables', {
        'description': 'Walk-in', 'amount': 30, 'due_date': '2024-09-01', 'branch_id': b2.id}, clerk)
    assert body['branch_id'] == b1.id

    foreign = create_resource_and_assert(client, '/finance/receivables', {
        'description': 'Other', 'amount': 30, 'due_date': '2024-09-01', 'branch_id': b2.id}, admin_headers())
    assert_error(client.get(f"/finance/receivables/{foreign['id']}", headers=clerk), 403, 'Forbidden', 'Branch access denied')
    assert_error(client.post(f"/finance/receivables/{foreign['id']}/receive", headers=clerk, json={}), 403, 'Forbidden')

    tx = client.post('/finance/transactions', headers=clerk, json={
        'type': 'EXPENSE', 'amount': 5, 'description': 'Coffee', 'transaction_date': '2024-09-02',
        'branch_id': b2.id}).get_json()
    assert tx['branch_id'] == b1.id

    listing = client.get(f'/finance/transactions?branch_id={b2.id}', headers=clerk).get_json()
    assert {t['branch_id'] for t in listing['data']} == {b1.id}


def test_http_missing_permission(client):
    branch = ensure_branch()
    read_only = jwt_headers('viewer', ['AP.READ'], branch_id=branch.id)
    resp = client.post('/finance/payables', headers=read_only, json={
        'description': 'x', 'amount': 1, 'due_date': '2024-01-01', 'branch_id': branch.id})
    assert_error(resp, 403, 'Forbidden', 'Missing permission: AP.CREATE')
    assert client.get(f'/finance/payables?branch_id={branch.id}', headers=read_only).status_code == 200
    assert client.get('/finance/payables').status_code == 401
