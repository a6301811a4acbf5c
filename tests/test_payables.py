from tests.test_utils_seed import ensure_branch
from tests.test_lifecycle_helpers import admin_headers, assert_transition, assert_error, create_resource_and_assert


def _create(client, headers, branch_id, amount=1200, due='2024-04-10', description='Parts'):
    return create_resource_and_assert(client, '/finance/payables', {
        'description': description, 'amount': amount, 'due_date': due, 'branch_id': branch_id,
    }, headers, expected_initial_status='PENDING')


def test_cancelled_payable_scenario(client):
    branch = ensure_branch('B1')
    headers = admin_headers()
    ap = _create(client, headers, branch.id)
    assert_transition(client, f"/finance/payables/{ap['id']}/cancel", headers, 200, expected_body_value='CANCELLED')

    resp = client.patch(f"/finance/payables/{ap['id']}", headers=headers, json={'description': 'Edited'})
    assert_error(resp, 409, 'InvalidState')

    resp = client.delete(f"/finance/payables/{ap['id']}", headers=headers)
    assert resp.status_code == 200, resp.get_json()
    assert resp.get_json()['deleted_at'] is not None

    resp = client.post(f"/finance/payables/{ap['id']}/pay", headers=headers, json={})
    assert_error(resp, 409, 'InvalidState', 'cancelled')

    # Soft-deleted rows disappear from reads
    assert_error(client.get(f"/finance/payables/{ap['id']}", headers=headers), 404, 'NotFound')


def test_pay_moves_balance_down_and_locks_record(client):
    branch = ensure_branch()
    headers = admin_headers()
    ap = _create(client, headers, branch.id, amount=300)
    resp = assert_transition(client, f"/finance/payables/{ap['id']}/pay", headers, 200, expected_body_value='PAID')
    body = resp.get_json()
    assert body['payment_date'] is not None
    tx = client.get(f"/finance/transactions/{body['financial_transaction_id']}", headers=headers).get_json()
    assert tx['type'] == 'EXPENSE'
    # No sufficiency check: the balance may go negative
    bal = client.get(f'/finance/wallet/balance?branch_id={branch.id}', headers=headers).get_json()
    assert bal['balance'] == -300

    assert_error(client.post(f"/finance/payables/{ap['id']}/pay", headers=headers, json={}), 409, 'InvalidState', 'already paid')
    assert_error(client.patch(f"/finance/payables/{ap['id']}", headers=headers, json={'amount': 1}), 409, 'InvalidState')
    assert_error(client.post(f"/finance/payables/{ap['id']}/cancel", headers=headers), 409, 'InvalidState',
                 'cannot cancel a paid account payable')
    assert_error(client.delete(f"/finance/payables/{ap['id']}", headers=headers), 409, 'InvalidState',
                 'cannot delete a paid account payable')


def test_cancel_twice_and_pending_remove(client):
    branch = ensure_branch()
    headers = admin_headers()
    ap = _create(client, headers, branch.id)
    assert_transition(client, f"/finance/payables/{ap['id']}/cancel", headers, 200)
    assert_error(client.post(f"/finance/payables/{ap['id']}/cancel", headers=headers), 409, 'InvalidState', 'already cancelled')

    pending = _create(client, headers, branch.id)
    resp = client.delete(f"/finance/payables/{pending['id']}", headers=headers)
    assert resp.status_code == 200
    assert_error(client.post(f"/finance/payables/{pending['id']}/pay", headers=headers, json={}), 404, 'NotFound')


def test_list_filters_and_sort(client):
    branch = ensure_branch()
    headers = admin_headers()
    _create(client, headers, branch.id, amount=50, due='2024-05-03', description='C')
    _create(client, headers, branch.id, amount=10, due='2024-05-01', description='A')
    last = _create(client, headers, branch.id, amount=30, due='2024-06-20', description='B')
    assert_transition(client, f"/finance/payables/{last['id']}/cancel", headers, 200)

    body = client.get(f'/finance/payables?branch_id={branch.id}', headers=headers).get_json()
    assert [r['description'] for r in body['data']] == ['A', 'C', 'B']
    assert body['total'] == 3

    body = client.get(f'/finance/payables?branch_id={branch.id}&sort=-amount', headers=headers).get_json()
    assert [r['amount'] for r in body['data']] == [50, 30, 10]

    body = client.get(f'/finance/payables?branch_id={branch.id}&status=cancelled', headers=headers).get_json()
    assert [r['description'] for r in body['data']] == ['B']

    body = client.get(f'/finance/payables?branch_id={branch.id}&start_date=2024-05-02&end_date=2024-05-31', headers=headers).get_json()
    assert [r['description'] for r in body['data']] == ['C']

    assert_error(client.get(f'/finance/payables?branch_id={branch.id}&sort=bogus', headers=headers), 400, 'ValidationError')
    assert_error(client.get(f'/finance/payables?branch_id={branch.id}&status=LOST', headers=headers), 400, 'ValidationError')


def test_summary_totals_ignore_status_filter(client):
    branch = ensure_branch()
    headers = admin_headers()
    _create(client, headers, branch.id, amount=100, due='2024-07-01')
    paid = _create(client, headers, branch.id, amount=200, due='2024-07-02')
    cancelled = _create(client, headers, branch.id, amount=50, due='2024-07-03')
    assert_transition(client, f"/finance/payables/{paid['id']}/pay", headers, 200)
    assert_transition(client, f"/finance/payables/{cancelled['id']}/cancel", headers, 200)

    resp = client.get(f'/finance/payables/summary?branch_id={branch.id}&status=PENDING', headers=headers)
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['total'] == 1
    assert body['data'][0]['amount'] == 100
    totals = body['totals']
    assert totals['pending'] == {'amount': 100, 'count': 1}
    assert totals['paid'] == {'amount': 200, 'count': 1}
    assert totals['cancelled'] == {'amount': 50, 'count': 1}
    assert totals['total'] == {'amount': 350, 'count': 3}

    # end_date is inclusive
    body = client.get(f'/finance/payables/summary?branch_id={branch.id}&end_date=2024-07-02', headers=headers).get_json()
    assert body['totals']['total']['count'] == 2


def test_accounts_summary_net_balance(client):
    branch = ensure_branch()
    headers = admin_headers()
    _create(client, headers, branch.id, amount=900, due='2024-08-01')
    for amount in (1000, 350):
        create_resource_and_assert(client, '/finance/receivables', {
            'description': 'Invoice', 'amount': amount, 'due_date': '2024-08-05', 'branch_id': branch.id,
        }, headers)
    resp = client.get(f'/finance/accounts/summary?branch_id={branch.id}&limit=1&receivable_page=2', headers=headers)
    assert resp.status_code == 200, resp.get_json()
    body = resp.get_json()
    assert body['summary']['total_payable'] == 900
    assert body['summary']['total_receivable'] == 1350
    assert body['summary']['net_balance'] == 450
    assert body['payables']['page'] == 1
    assert body['receivables']['page'] == 2
    assert body['receivables']['total_pages'] == 2
    assert len(body['receivables']['data']) == 1
