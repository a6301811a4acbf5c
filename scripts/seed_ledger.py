#!/usr/bin/env python
"""Idempotent seed script for a development ledger.

Creates the company, its branches and an INITIAL_BALANCE adjustment for every
branch that has no balance yet. Role presets (the ``perms`` a token issuer should
hand out per role) can be validated and listed alongside.

Usage:
    python scripts/seed_ledger.py                                  # default company, one branch
    python scripts/seed_ledger.py --branch Downtown --branch Harbor --opening-balance 1500
    python scripts/seed_ledger.py --dry-run --show-balances        # run logic then rollback
    python scripts/seed_ledger.py --validate --show-roles          # check role presets, print role -> permissions
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from decimal import Decimal
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('.'))

from branch_ledger import create_app, get_db  # type: ignore
from branch_ledger.constants.permissions import ROLE_PRESETS, expand_role, validate_role_presets
from branch_ledger.models.base import Base
from branch_ledger.models.organization import Company, Branch
from branch_ledger.models.wallet import BranchBalance, BalanceAdjustment
from branch_ledger.utils.dates import utcnow
from branch_ledger.utils.validation import to_decimal

SEED_ACTOR = 'seed-script'


def ensure_company(session, company_id: str, name: str) -> bool:
    if session.get(Company, company_id):
        return False
    session.add(Company(id=company_id, name=name))
    session.flush()
    return True


def ensure_branches(session, company_id: str, names):
    existing = {
        b.name: b for b in session.execute(
            select(Branch).where(Branch.company_id == company_id, Branch.deleted_at.is_(None))
        ).scalars().all()
    }
    created = 0
    for name in names:
        if name not in existing:
            branch = Branch(company_id=company_id, name=name)
            session.add(branch)
            existing[name] = branch
            created += 1
    session.flush()
    return [existing[n] for n in names], created


def ensure_opening_balances(session, branches, amount: Decimal) -> int:
    created = 0
    for branch in branches:
        row = session.execute(select(BranchBalance).where(BranchBalance.branch_id == branch.id)).scalar_one_or_none()
        if row is not None:
            continue
        row = BranchBalance(branch_id=branch.id, balance=amount)
        session.add(row)
        session.flush()
        session.add(BalanceAdjustment(
            branch_balance_id=row.id,
            previous_balance=Decimal('0.00'),
            new_balance=amount,
            adjustment_type=BalanceAdjustment.TYPE_INITIAL,
            reason='seed',
            created_by=SEED_ACTOR,
            created_at=utcnow(),
        ))
        created += 1
    return created


def print_balances(session, company_id: str):
    rows = session.execute(
        select(Branch.name, BranchBalance.balance)
        .join(BranchBalance, BranchBalance.branch_id == Branch.id, isouter=True)
        .where(Branch.company_id == company_id, Branch.deleted_at.is_(None))
        .order_by(Branch.name)
    ).all()
    if not rows:
        print('[INFO] No branches present.')
        return
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Branch'.ljust(name_w)} | Balance")
    print('-' * (name_w + 20))
    for name, balance in rows:
        print(f"{name.ljust(name_w)} | {balance if balance is not None else '-'}")


def summarize_roles():
    return [(role, len(expand_role(role)), sorted(expand_role(role))[:8]) for role in ROLE_PRESETS]


def print_role_summary():
    rows = summarize_roles()
    name_w = max(len(r[0]) for r in rows)
    print(f"{'Role'.ljust(name_w)} | Count | Sample (up to 8)")
    print('-' * (name_w + 40))
    for name, cnt, sample in rows:
        print(f"{name.ljust(name_w)} | {str(cnt).rjust(5)} | {', '.join(sample)}")


def parse_args():
    p = argparse.ArgumentParser(
        description='Seed company, branches and opening balances',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_ledger.py\n  dry run: seed_ledger.py --dry-run\n  two branches: seed_ledger.py --branch North --branch South\n  check roles: seed_ledger.py --validate --show-roles\n""")
    )
    p.add_argument('--company-id', default=None, help='Company id (defaults to DEFAULT_COMPANY_ID)')
    p.add_argument('--company-name', default='Default Company')
    p.add_argument('--branch', action='append', dest='branches', metavar='NAME', help='Branch name (repeatable)')
    p.add_argument('--opening-balance', default='0', help='Initial balance for branches without one')
    p.add_argument('--show-balances', action='store_true', help='Print branch balances after seeding')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    p.add_argument('--show-roles', action='store_true', help='Print role preset permission counts')
    p.add_argument('--validate', action='store_true', help='Validate role preset codes; exits non-zero on problems')
    return p.parse_args()


def main():
    args = parse_args()
    app = create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM branch_balances LIMIT 1'))
        except Exception:
            # Bootstrap only; real environments run `alembic upgrade head`
            session.rollback()
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

    with app.app_context():
        session = get_db()
        company_id = args.company_id or app.config['DEFAULT_COMPANY_ID']
        amount = to_decimal(args.opening_balance, 'opening_balance')
        try:
            created_c = ensure_company(session, company_id, args.company_name)
            branches, created_b = ensure_branches(session, company_id, args.branches or ['Main'])
            created_a = ensure_opening_balances(session, branches, amount)
            if args.validate:
                problems = validate_role_presets()
                if problems:
                    print('\n[VALIDATION] FAIL:')
                    for p in problems:
                        print(' -', p)
                    session.rollback()
                    sys.exit(2)
                print('[VALIDATION] OK: All role preset codes valid.')
            if args.dry_run:
                session.rollback()
                print(f"[DRY-RUN] (rolled back) Company would create: {int(created_c)}, "
                      f"Branches: {created_b}, Opening balances: {created_a}")
            else:
                session.commit()
                print(f"[DONE] Company created: {int(created_c)}, Branches created: {created_b}, "
                      f"Opening balances created: {created_a}")
            if args.show_balances:
                print('\nBranch Balances:')
                print_balances(session, company_id)
            if args.show_roles:
                print('\nRole Permission Summary:')
                print_role_summary()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


if __name__ == '__main__':
    main()
