from tests.test_utils_seed import ensure_branch
from tests.test_lifecycle_helpers import admin_headers, assert_error


def test_unknown_path_returns_error_json(client):
    resp = client.get('/non-existent-path')
    # Flask default 404 should be wrapped by error handler
    assert resp.status_code == 404
    body = resp.get_json()
    assert 'error' in body
    assert body['error']['status'] == 404
    assert 'detail' in body['error']


def test_ledger_error_shape(client):
    resp = client.get('/finance/payables/does-not-exist', headers=admin_headers())
    err = assert_error(resp, 404, 'NotFound', 'account payable not found')
    assert err['status'] == 404
    assert err['title'] == 'Not Found'


def test_validation_error_shape(client):
    branch = ensure_branch()
    resp = client.post('/finance/payables', headers=admin_headers(), json={
        'description': 'x', 'amount': -5, 'due_date': '2024-01-01', 'branch_id': branch.id})
    err = assert_error(resp, 400, 'ValidationError', 'amount')
    assert err['title'] == 'Bad Request'
    assert_error(client.post('/finance/payables', headers=admin_headers(), json=['not', 'an', 'object']),
                 400, 'ValidationError')


def test_internal_error_shape(client, monkeypatch):
    import branch_ledger.routes.transactions as tx_routes

    def boom():
        raise RuntimeError('explode')

    monkeypatch.setattr(tx_routes, 'current_ledger', boom)
    resp = client.get('/finance/transactions', headers=admin_headers())
    assert resp.status_code == 500
    body = resp.get_json()
    assert body['error']['status'] == 500
    assert body['error']['title'] == 'Internal Server Error'
    assert 'explode' not in body['error']['detail']


def test_healthz(client):
    assert client.get('/healthz').get_json() == {'status': 'ok'}
