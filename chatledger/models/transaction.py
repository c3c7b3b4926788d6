from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import BigInteger, DateTime, Enum as SqlEnum, Index, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from .base import Base, utcnow


def fold_item(item: str) -> str:
    """Lookup key under which items match regardless of case."""
    return item.casefold()


class TransactionKind(str, Enum):
    EXPENSE = "expense"
    INCOME = "income"


_kind_column = SqlEnum(
    TransactionKind,
    name="transactionkind",
    values_callable=lambda kinds: [kind.value for kind in kinds],
)


class PendingTransaction(Base):
    """Provisional entry awaiting a category; at most one per user per chat."""

    __tablename__ = "pending_transactions"
    __table_args__ = (UniqueConstraint("chat_id", "user_id", name="uq_pending_chat_user"),)

    chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    item: Mapped[str] = mapped_column(String(512), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    kind: Mapped[TransactionKind] = mapped_column(_kind_column, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)


class Transaction(Base):
    """Committed ledger entry."""

    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_chat_occurred", "chat_id", "occurred_at"),
        Index("ix_transactions_chat_item_key", "chat_id", "item_key"),
    )

    chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    user_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    item: Mapped[str] = mapped_column(String(512), nullable=False)
    # Case-folded copy of ``item``, kept in sync on assignment.
    item_key: Mapped[str] = mapped_column(String(1024), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    kind: Mapped[TransactionKind] = mapped_column(_kind_column, nullable=False)
    category: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @validates("item")
    def _sync_item_key(self, _key: str, value: str) -> str:
        self.item_key = fold_item(value)
        return value
