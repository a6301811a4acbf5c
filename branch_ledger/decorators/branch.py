"""Branch forcing for engine methods.

Engine methods take ``(self, actor, ...)``. For a non-admin actor with an
assigned branch, ``branch_id`` is rewritten to the actor's branch before the
method runs, both as a keyword/positional argument and as a field on any
dataclass payload. Absent values are filled in as well, so list filters and
summaries are confined to the own branch.

Usage:
    @branch_scoped
    def create(self, actor, data: SettlementCreate): ...
"""
from __future__ import annotations
import dataclasses
import inspect
from functools import wraps

from branch_ledger.services.policy import scope_branch


def _rewrite(value, actor):
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        names = {f.name for f in dataclasses.fields(value)}
        if 'branch_id' in names:
            return dataclasses.replace(value, branch_id=scope_branch(actor, getattr(value, 'branch_id')))
    return value


def branch_scoped(fn):
    sig = inspect.signature(fn)
    takes_branch = 'branch_id' in sig.parameters

    @wraps(fn)
    def wrapper(self, actor, *args, **kwargs):
        if actor.is_admin or not actor.branch_id:
            return fn(self, actor, *args, **kwargs)
        bound = sig.bind(self, actor, *args, **kwargs)
        for name, value in list(bound.arguments.items()):
            if name in ('self', 'actor'):
                continue
            bound.arguments[name] = _rewrite(value, actor)
        if takes_branch:
            bound.arguments['branch_id'] = actor.branch_id
        return fn(*bound.args, **bound.kwargs)
    return wrapper

__all__ = ['branch_scoped']
