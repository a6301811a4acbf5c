from branch_ledger.config.settings import CompanyContext, load_settings, FLAG_ATOMIC_BALANCE
from branch_ledger.services.policy import actor_from_claims


def test_atomic_balance_flag_from_env(monkeypatch):
    monkeypatch.delenv(FLAG_ATOMIC_BALANCE, raising=False)
    assert load_settings()[FLAG_ATOMIC_BALANCE] is True
    monkeypatch.setenv(FLAG_ATOMIC_BALANCE, 'false')
    assert load_settings()[FLAG_ATOMIC_BALANCE] is False
    monkeypatch.setenv(FLAG_ATOMIC_BALANCE, 'ON')
    assert load_settings()[FLAG_ATOMIC_BALANCE] is True


def test_company_context_prefers_claim():
    cfg = {'DEFAULT_COMPANY_ID': 'fallback'}
    assert CompanyContext.resolve(cfg, {'company_id': 'acme'}).company_id == 'acme'
    assert CompanyContext.resolve(cfg, {}).company_id == 'fallback'
    assert CompanyContext.resolve(cfg).company_id == 'fallback'


def test_actor_from_claims():
    actor = actor_from_claims(7, {'role': 'Admin', 'branch_id': '', 'perms': ['AP.READ']})
    assert actor.id == '7'
    assert actor.is_admin
    assert actor.branch_id is None
    assert actor.perms == frozenset({'AP.READ'})
    clerk = actor_from_claims('u1', {'role': 'Cashier', 'branch_id': 'b1'}, admin_role='root')
    assert not clerk.is_admin
    assert clerk.branch_id == 'b1'
