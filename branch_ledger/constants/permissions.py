"""Central enum-like definitions to avoid typos in permission/service strings.
Extend cautiously; never rename codes silently. Tokens issued by the identity
service carry these codes in the ``perms`` claim.
"""
from __future__ import annotations
import difflib
from typing import List, Dict

SERVICE_ACTIONS = {
    'AP': ['READ', 'CREATE', 'UPDATE', 'PAY', 'CANCEL', 'DELETE'],
    'AR': ['READ', 'CREATE', 'UPDATE', 'RECEIVE', 'CANCEL', 'DELETE'],
    'FT': ['READ', 'CREATE', 'UPDATE', 'DELETE'],
    'WALLET': ['READ', 'ADJUST', 'HISTORY'],
}


def build_all_permission_codes() -> List[str]:
    codes: List[str] = []
    for svc, actions in SERVICE_ACTIONS.items():
        for act in actions:
            codes.append(f"{svc}.{act}")
    return codes

ALL_PERMISSION_CODES = build_all_permission_codes()

ROLE_PRESETS: Dict[str, List[str]] = {
    'Cashier': ['AP.READ', 'AP.PAY', 'AR.READ', 'AR.RECEIVE', 'FT.READ', 'WALLET.READ'],
    'Accounting': [
        'AP.READ', 'AP.CREATE', 'AP.UPDATE', 'AP.PAY', 'AP.CANCEL', 'AP.DELETE',
        'AR.READ', 'AR.CREATE', 'AR.UPDATE', 'AR.RECEIVE', 'AR.CANCEL', 'AR.DELETE',
        'FT.READ', 'FT.CREATE', 'FT.UPDATE', 'FT.DELETE',
        'WALLET.READ', 'WALLET.HISTORY',
    ],
    # admin role bypasses permission checks entirely (see decorators.auth)
    'admin': ['*'],
}


def expand_role(role: str) -> List[str]:
    """Permission codes a preset grants; ``'*'`` expands to every known code."""
    codes = ROLE_PRESETS.get(role, [])
    if '*' in codes:
        return list(ALL_PERMISSION_CODES)
    return list(codes)


def validate_role_presets() -> List[str]:
    """Problems found in ROLE_PRESETS, as printable lines; empty when consistent."""
    problems: List[str] = []
    for role, codes in ROLE_PRESETS.items():
        for code in codes:
            if code == '*':
                continue
            if '.' not in code:
                problems.append(f"Role '{role}': invalid format (missing '.'): {code}")
                continue
            svc, action = code.split('.', 1)
            if svc not in SERVICE_ACTIONS:
                problems.append(f"Role '{role}': unknown service '{svc}' in code: {code}")
            elif action not in SERVICE_ACTIONS[svc]:
                suggestion = difflib.get_close_matches(action, SERVICE_ACTIONS[svc], n=1)
                hint = f" (did you mean {suggestion[0]})" if suggestion else ''
                problems.append(f"Role '{role}': unknown action '{action}' for service '{svc}'{hint}")
    return problems
