from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Numeric, ForeignKey, DateTime, func

from .base import Base, new_id


class FinancialTransaction(Base):
    __tablename__ = 'financial_transactions'
    # Realized cash movement; no lifecycle, deletion refused once a settlement links to it
    TYPE_INCOME = 'INCOME'
    TYPE_EXPENSE = 'EXPENSE'
    ALL_TYPES = (TYPE_INCOME, TYPE_EXPENSE)
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    type: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    origin_type: Mapped[Optional[str]] = mapped_column(String(32))
    origin_id: Mapped[Optional[str]] = mapped_column(String(36))
    document_number: Mapped[Optional[str]] = mapped_column(String(64))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    company_id: Mapped[str] = mapped_column(ForeignKey('companies.id'), nullable=False, index=True)
    branch_id: Mapped[str] = mapped_column(ForeignKey('branches.id'), nullable=False, index=True)
    created_by: Mapped[Optional[str]] = mapped_column(String(36))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

__all__ = ["FinancialTransaction"]
