from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, declared_attr
from sqlalchemy import String, Text, Numeric, Date, ForeignKey, DateTime, func

from .base import Base, new_id


class SettlementRecordMixin:
    """Columns shared by payables and receivables.

    Lifecycle: PENDING -> settled (terminal) | PENDING -> CANCELLED (terminal).
    ``financial_transaction_id`` and the settlement date are written once, at settlement.
    """
    STATUS_PENDING = 'PENDING'
    STATUS_CANCELLED = 'CANCELLED'

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default='PENDING', index=True)
    origin_type: Mapped[Optional[str]] = mapped_column(String(32))
    origin_id: Mapped[Optional[str]] = mapped_column(String(36))
    document_number: Mapped[Optional[str]] = mapped_column(String(64))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[Optional[str]] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    @declared_attr
    def company_id(cls) -> Mapped[str]:
        return mapped_column(ForeignKey('companies.id'), nullable=False, index=True)

    @declared_attr
    def branch_id(cls) -> Mapped[str]:
        return mapped_column(ForeignKey('branches.id'), nullable=False, index=True)

    @declared_attr
    def financial_transaction_id(cls) -> Mapped[Optional[str]]:
        return mapped_column(ForeignKey('financial_transactions.id'), index=True)

    @property
    def settlement_date(self) -> Optional[datetime]:
        return getattr(self, self.SETTLEMENT_DATE_FIELD)


class AccountPayable(SettlementRecordMixin, Base):
    __tablename__ = 'accounts_payable'
    STATUS_PAID = 'PAID'
    STATUS_SETTLED = STATUS_PAID
    ALL_STATUSES = ('PENDING', STATUS_PAID, 'CANCELLED')
    SETTLEMENT_DATE_FIELD = 'payment_date'
    payment_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)


class AccountReceivable(SettlementRecordMixin, Base):
    __tablename__ = 'accounts_receivable'
    STATUS_RECEIVED = 'RECEIVED'
    STATUS_SETTLED = STATUS_RECEIVED
    ALL_STATUSES = ('PENDING', STATUS_RECEIVED, 'CANCELLED')
    SETTLEMENT_DATE_FIELD = 'receipt_date'
    receipt_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)

__all__ = ['SettlementRecordMixin', 'AccountPayable', 'AccountReceivable']
