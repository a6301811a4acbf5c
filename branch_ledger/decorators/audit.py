"""Audit decorator for engine operations.

Usage:

@audited('{prefix}.PAY', by_id='record_id')
def pay(self, actor, record_id, request): ...

Parameters:
  action: audit action code. ``{prefix}`` is replaced with the engine's ``audit_prefix`` (AP, AR, FT, WALLET).
  entity: entity label; defaults to the engine's ``entity_name``.
  by_id: name of the argument holding the id of an existing record. When given, a
         ``before`` snapshot is taken through ``self.snapshot(id)`` prior to the call.

The decorated method's return value (a model instance or None) is serialized with
``self.serialize`` into the ``after`` snapshot. Only successful calls are recorded;
the write itself goes through ``self.audit`` (an AuditSink) and is best-effort.
"""
from __future__ import annotations
import inspect
import logging
from functools import wraps
from typing import Optional

logger = logging.getLogger(__name__)


def audited(action: str, *, entity: Optional[str] = None, by_id: Optional[str] = None):
    def outer(fn):
        sig = inspect.signature(fn)

        @wraps(fn)
        def wrapper(self, actor, *args, **kwargs):
            bound = sig.bind(self, actor, *args, **kwargs)
            entity_id = bound.arguments.get(by_id) if by_id else None
            before = None
            if entity_id is not None:
                try:
                    before = self.snapshot(entity_id)
                except Exception:
                    logger.exception('Audit snapshot failed for %s', entity_id)
                    before = None
            rv = fn(self, actor, *args, **kwargs)
            after = self.serialize(rv) if rv is not None else None
            if entity_id is None and rv is not None:
                entity_id = getattr(rv, 'id', None)
            branch_id = getattr(rv, 'branch_id', None) or (before or {}).get('branch_id') or bound.arguments.get('branch_id')
            self.audit.record(
                actor,
                action.format(prefix=getattr(self, 'audit_prefix', '')),
                entity=entity or getattr(self, 'entity_name', None),
                entity_id=entity_id,
                branch_id=branch_id,
                before=before,
                after=after,
            )
            return rv
        return wrapper
    return outer

__all__ = ['audited']
