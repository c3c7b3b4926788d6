from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from ..models.transaction import TransactionKind


class ParsedEntry(BaseModel):
    """Transaction candidate recovered from a chat message."""

    model_config = ConfigDict(frozen=True)

    item: str = Field(min_length=1)
    amount: Decimal = Field(ge=0, description="Magnitude, quantized to cents.")
    kind: TransactionKind
    currency: Optional[str] = Field(default=None, min_length=3, max_length=3)

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount if self.kind == TransactionKind.EXPENSE else self.amount


class TransactionRead(BaseModel):
    """API response shape for ledger entries."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chat_id: int
    user_id: int
    user_name: str
    item: str
    amount: Decimal
    currency: str
    kind: TransactionKind
    category: Optional[str]
    occurred_at: datetime
    created_at: datetime
    updated_at: datetime
