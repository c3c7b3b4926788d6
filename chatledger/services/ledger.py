from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import LedgerConfig
from ..models.base import utcnow
from ..models.chat import Chat
from ..models.transaction import PendingTransaction, Transaction, TransactionKind
from .categories import resolve_currency
from .parser import parse_entry

logger = logging.getLogger(__name__)


class EditTargetNotFound(LookupError):
    """Raised when a reply-edit cannot find the transaction it refers to."""


async def commit_pending(session: AsyncSession, pending: PendingTransaction) -> Transaction:
    """Promote a pending entry into the ledger.

    The ledger row is added and the pending row deleted in one database
    commit, so a failure leaves the pending entry in place.
    """
    transaction = Transaction(
        chat_id=pending.chat_id,
        user_id=pending.user_id,
        user_name=pending.user_name,
        item=pending.item,
        amount=pending.amount,
        currency=pending.currency,
        kind=pending.kind,
        category=pending.category,
        occurred_at=pending.created_at or utcnow(),
    )
    session.add(transaction)
    await session.delete(pending)
    await session.commit()
    await session.refresh(transaction)
    logger.info(
        "Committed %s %s %s for user %s in chat %s",
        transaction.kind.value,
        transaction.amount,
        transaction.currency,
        transaction.user_id,
        transaction.chat_id,
    )
    return transaction


async def _find_edit_target(
    session: AsyncSession,
    *,
    chat_id: int,
    user_id: int,
    item: str,
    amount: Decimal,
    currency: Optional[str],
) -> Optional[Transaction]:
    conditions = [
        Transaction.chat_id == chat_id,
        Transaction.user_id == user_id,
        Transaction.item == item,
        Transaction.amount == amount,
    ]
    if currency is not None:
        conditions.append(Transaction.currency == currency)
    stmt = (
        select(Transaction)
        .where(*conditions)
        .order_by(Transaction.occurred_at.desc(), Transaction.created_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def edit_by_reply(
    session: AsyncSession,
    chat: Chat,
    user_id: int,
    original_text: str,
    new_text: str,
    config: LedgerConfig,
    *,
    mention: Optional[str] = None,
) -> Transaction:
    """Rewrite the ledger entry created by ``original_text`` with the values in ``new_text``.

    Both texts must follow the entry grammar. The entry is matched on item,
    amount and currency for this user in this chat; when several match, the
    most recent one is edited. When the original text names no currency and
    nothing matches the chat's current currency, the entry is matched on item
    and amount alone. Kind, category and timestamp are kept.
    """
    original = parse_entry(original_text, mention=mention)
    replacement = parse_entry(new_text, mention=mention)

    lookup = {
        "chat_id": chat.telegram_id,
        "user_id": user_id,
        "item": original.item,
        "amount": original.amount,
    }
    target = await _find_edit_target(
        session, currency=resolve_currency(original.currency, chat, config), **lookup
    )
    if target is None and original.currency is None:
        # The chat currency may have changed since the entry was recorded.
        target = await _find_edit_target(session, currency=None, **lookup)
    if target is None:
        raise EditTargetNotFound(
            f"No transaction matching {original.item} {original.amount} was found."
        )

    target.item = replacement.item
    target.amount = replacement.amount
    target.currency = resolve_currency(replacement.currency, chat, config)
    await session.commit()
    await session.refresh(target)
    logger.info("Edited transaction %s in chat %s", target.id, chat.telegram_id)
    return target


async def list_transactions(
    session: AsyncSession,
    chat_id: int,
    *,
    kind: Optional[TransactionKind] = None,
    user_id: Optional[int] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Sequence[Transaction]:
    """Ledger entries of a chat, newest first. ``start`` is inclusive, ``end`` exclusive."""
    stmt: Select[tuple[Transaction]] = (
        select(Transaction)
        .where(Transaction.chat_id == chat_id)
        .order_by(Transaction.occurred_at.desc(), Transaction.created_at.desc())
    )
    if kind:
        stmt = stmt.where(Transaction.kind == kind)
    if user_id is not None:
        stmt = stmt.where(Transaction.user_id == user_id)
    if start:
        stmt = stmt.where(Transaction.occurred_at >= start)
    if end:
        stmt = stmt.where(Transaction.occurred_at < end)
    if limit is not None:
        stmt = stmt.limit(limit)
    if offset:
        stmt = stmt.offset(offset)
    result = await session.execute(stmt)
    return result.scalars().all()
