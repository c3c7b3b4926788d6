from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class NetTransfer(BaseModel):
    """Suggested payment from a user who owes to a user who is owed."""

    debtor_id: int
    debtor_name: str
    creditor_id: int
    creditor_name: str
    amount: Decimal


class Settlement(BaseModel):
    """Monthly settlement of a chat's expenses."""

    start: datetime
    end: datetime
    total: Decimal = Decimal("0")
    currencies: list[str] = Field(default_factory=list)
    category_totals: dict[str, Decimal] = Field(default_factory=dict)
    user_totals: dict[int, Decimal] = Field(default_factory=dict)
    user_names: dict[int, str] = Field(default_factory=dict)
    split: Decimal = Decimal("0")
    balances: dict[int, Decimal] = Field(default_factory=dict)
    transfers: list[NetTransfer] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.user_totals
