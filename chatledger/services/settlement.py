"""Monthly settlement: totals, even split and suggested transfers.

Transfers are produced by greedy matching: every creditor, in the order they
first appear, is paid by debtors in the order they first appear until the
creditor is square. This settles every balance but does not try to minimise
the number of transfers.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import LedgerConfig
from ..models.base import utcnow
from ..models.chat import Chat
from ..models.transaction import TransactionKind
from ..schemas.settlement import NetTransfer, Settlement
from .categories import chat_timezone
from .ledger import list_transactions

CENTS = Decimal("0.01")
TOLERANCE = Decimal("0.005")
UNCATEGORISED = "Uncategorised"


def month_bounds(now: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """UTC bounds ``[start, end)`` of the calendar month containing ``now`` in ``tz``."""
    local = now.astimezone(tz)
    start = local.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def net_transfers(balances: dict[int, Decimal], names: dict[int, str]) -> list[NetTransfer]:
    creditors = [(user_id, owed) for user_id, owed in balances.items() if owed > TOLERANCE]
    debts = {user_id: -owes for user_id, owes in balances.items() if owes < -TOLERANCE}

    transfers: list[NetTransfer] = []
    for creditor_id, owed in creditors:
        remaining = owed
        for debtor_id, outstanding in debts.items():
            if remaining <= TOLERANCE:
                break
            if outstanding <= TOLERANCE:
                continue
            amount = min(remaining, outstanding).quantize(CENTS)
            transfers.append(
                NetTransfer(
                    debtor_id=debtor_id,
                    debtor_name=names.get(debtor_id, str(debtor_id)),
                    creditor_id=creditor_id,
                    creditor_name=names.get(creditor_id, str(creditor_id)),
                    amount=amount,
                )
            )
            remaining -= amount
            debts[debtor_id] = outstanding - amount
    return transfers


def _even_balances(user_totals: dict[int, Decimal], split: Decimal) -> dict[int, Decimal]:
    """Balances against a cent-rounded share, adjusted so they sum to zero.

    The cents lost to rounding the share are charged to debtors one cent at a
    time, in the order they first appear.
    """
    balances = {user_id: spent - split for user_id, spent in user_totals.items()}
    residual = sum(balances.values(), Decimal("0")).quantize(CENTS)
    debtors = [user_id for user_id, balance in balances.items() if balance < 0] or list(balances)
    idx = 0
    while residual:
        step = CENTS if residual > 0 else -CENTS
        user_id = debtors[idx % len(debtors)]
        balances[user_id] -= step
        residual -= step
        idx += 1
    return balances


def compute_settlement(transactions: Iterable[Any], start: datetime, end: datetime) -> Settlement:
    """Aggregate the expense entries of one period.

    ``transactions`` are ledger rows already restricted to the period; income
    rows are skipped.
    """
    total = Decimal("0")
    category_totals: dict[str, Decimal] = defaultdict(Decimal)
    user_totals: dict[int, Decimal] = defaultdict(Decimal)
    user_names: dict[int, str] = {}
    currencies: set[str] = set()

    for tx in transactions:
        if tx.kind != TransactionKind.EXPENSE:
            continue
        amount = Decimal(tx.amount)
        total += amount
        category_totals[tx.category or UNCATEGORISED] += amount
        user_totals[tx.user_id] += amount
        user_names.setdefault(tx.user_id, tx.user_name or str(tx.user_id))
        currencies.add(tx.currency)

    if not user_totals:
        return Settlement(start=start, end=end)

    split = (total / len(user_totals)).quantize(CENTS)
    balances = _even_balances(user_totals, split)
    return Settlement(
        start=start,
        end=end,
        total=total,
        currencies=sorted(currencies),
        category_totals=dict(category_totals),
        user_totals=dict(user_totals),
        user_names=user_names,
        split=split,
        balances=balances,
        transfers=net_transfers(balances, user_names),
    )


async def settle_chat(
    session: AsyncSession,
    chat: Chat,
    config: LedgerConfig,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Settlement:
    """Settlement for ``[start, end)``; defaults to the current month in the chat's timezone."""
    if start is None or end is None:
        month_start, month_end = month_bounds(now or utcnow(), chat_timezone(chat, config))
        start = start or month_start
        end = end or month_end
    start = start.astimezone(timezone.utc)
    end = end.astimezone(timezone.utc)
    expenses = await list_transactions(
        session,
        chat.telegram_id,
        kind=TransactionKind.EXPENSE,
        start=start,
        end=end,
    )
    return compute_settlement(expenses, start, end)
