from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Mapping, Optional, Set
from flask import current_app
from flask_jwt_extended import get_jwt, get_jwt_identity
from branch_ledger.errors import Forbidden

DEFAULT_ADMIN_ROLE = 'admin'


@dataclass(frozen=True)
class Actor:
    """Caller identity as supplied by the identity service (JWT claims)."""
    id: str
    role: str = ''
    branch_id: Optional[str] = None
    perms: FrozenSet[str] = field(default_factory=frozenset)
    admin_role: str = DEFAULT_ADMIN_ROLE

    @property
    def is_admin(self) -> bool:
        return (self.role or '').lower() == self.admin_role.lower()


def actor_from_claims(identity: Any, claims: Mapping[str, Any], admin_role: str = DEFAULT_ADMIN_ROLE) -> Actor:
    branch_id = claims.get('branch_id')
    return Actor(
        id=str(identity),
        role=str(claims.get('role') or ''),
        branch_id=str(branch_id) if branch_id not in (None, '') else None,
        perms=frozenset(claims.get('perms') or []),
        admin_role=admin_role,
    )


def current_actor() -> Actor:
    """Actor of the current request; the JWT must already be verified."""
    return actor_from_claims(
        get_jwt_identity(),
        get_jwt(),
        current_app.config.get('LEDGER_ADMIN_ROLE', DEFAULT_ADMIN_ROLE),
    )


def current_permissions() -> Set[str]:
    claims = get_jwt()
    return set(claims.get('perms', []))


def scope_branch(actor: Actor, branch_id: Optional[str]) -> Optional[str]:
    """Effective branch for a payload/filter value.

    Non-admins with an assigned branch are always pinned to it, whatever they sent.
    Admins and branchless non-admins keep the supplied value (possibly None).
    """
    if actor.is_admin or not actor.branch_id:
        return branch_id
    return actor.branch_id


def assert_record_access(actor: Actor, record) -> None:
    """Post-fetch check for by-id operations."""
    if actor.is_admin:
        return
    if not actor.branch_id or record.branch_id != actor.branch_id:
        raise Forbidden('Branch access denied')


def assert_branch_write(actor: Actor) -> None:
    if not actor.is_admin and not actor.branch_id:
        raise Forbidden('No branch assigned to user')


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise Forbidden('Administrator privilege required')


__all__ = [
    'Actor', 'actor_from_claims', 'current_actor', 'current_permissions',
    'scope_branch', 'assert_record_access', 'assert_branch_write', 'require_admin',
]
