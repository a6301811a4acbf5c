from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Text, Numeric, ForeignKey, DateTime, func

from .base import Base, new_id


class BranchBalance(Base):
    __tablename__ = 'branch_balances'
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    branch_id: Mapped[str] = mapped_column(ForeignKey('branches.id'), unique=True, nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class BalanceAdjustment(Base):
    __tablename__ = 'balance_adjustments'
    # Append-only: rows are never updated or deleted
    TYPE_MANUAL = 'MANUAL_ADJUSTMENT'
    TYPE_INITIAL = 'INITIAL_BALANCE'
    TYPE_CORRECTION = 'CORRECTION'
    ALL_TYPES = (TYPE_MANUAL, TYPE_INITIAL, TYPE_CORRECTION)
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    branch_balance_id: Mapped[str] = mapped_column(ForeignKey('branch_balances.id'), nullable=False, index=True)
    previous_balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    new_balance: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    adjustment_type: Mapped[str] = mapped_column(String(32), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text)
    created_by: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)

__all__ = ['BranchBalance', 'BalanceAdjustment']
