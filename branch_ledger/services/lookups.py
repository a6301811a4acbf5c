from __future__ import annotations
from typing import Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from branch_ledger.config.settings import CompanyContext
from branch_ledger.errors import NotFound, ValidationError
from branch_ledger.models.organization import Company, Branch, MaintenanceOrder

# Origin types whose referenced entity is checked on transaction creation.
ORIGIN_MAINTENANCE = 'MAINTENANCE'


def require_company(session: Session, company: CompanyContext) -> Company:
    row = session.execute(
        select(Company).where(Company.id == company.company_id, Company.deleted_at.is_(None))
    ).scalar_one_or_none()
    if not row:
        raise NotFound('company not found')
    return row


def require_branch(session: Session, company: CompanyContext, branch_id: Optional[str]) -> Branch:
    if not branch_id:
        raise ValidationError('branch_id required')
    row = session.execute(
        select(Branch).where(
            Branch.id == branch_id,
            Branch.company_id == company.company_id,
            Branch.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if not row:
        raise NotFound('branch not found')
    return row


def require_origin(session: Session, company: CompanyContext, branch_id: str,
                   origin_type: Optional[str], origin_id: Optional[str]) -> None:
    """Check origins the ledger knows about; other origin types are trusted as-is."""
    if not origin_type or not origin_id:
        return
    if origin_type.upper() != ORIGIN_MAINTENANCE:
        return
    row = session.execute(
        select(MaintenanceOrder.id).where(
            MaintenanceOrder.id == origin_id,
            MaintenanceOrder.company_id == company.company_id,
            MaintenanceOrder.branch_id == branch_id,
            MaintenanceOrder.deleted_at.is_(None),
        )
    ).scalar_one_or_none()
    if not row:
        raise NotFound('origin not found')

__all__ = ['ORIGIN_MAINTENANCE', 'require_company', 'require_branch', 'require_origin']
