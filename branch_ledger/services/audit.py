from __future__ import annotations
import logging
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from branch_ledger.models.audit import AuditLog

logger = logging.getLogger(__name__)


class AuditSink:
    """Best-effort audit trail.

    Runs after the financial commit. A failing write is rolled back, logged and
    swallowed: an audit outage must never block or undo money movement.
    """

    def __init__(self, session: Session):
        self.session = session

    def record(
        self,
        actor,
        action: str,
        *,
        entity: Optional[str] = None,
        entity_id: Optional[str] = None,
        branch_id: Optional[str] = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        try:
            log = AuditLog(
                actor_user_id=getattr(actor, 'id', None),
                actor_role=getattr(actor, 'role', None),
                branch_id=branch_id,
                action=action,
                entity=entity,
                entity_id=str(entity_id) if entity_id is not None else None,
                before=before,
                after=after,
                meta=dict(meta or {}),
            )
            self.session.add(log)
            self.session.commit()
            return log
        except Exception:
            logger.exception('Audit write failed for %s %s', action, entity_id)
            try:
                self.session.rollback()
            except Exception:
                logger.exception('Rollback after audit failure failed')
            return None


__all__ = ['AuditSink']
