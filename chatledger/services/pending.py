"""Per-(chat, user) lifecycle of entries waiting for a category.

An expense without a known category waits as a :class:`PendingTransaction`
until the user picks one from the offered list. Income, and expenses whose
item already has a category in the chat's history, go straight to the
ledger. A user has at most one pending entry per chat; a newer message
replaces the older entry (last write wins).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import LedgerConfig
from ..models.base import utcnow
from ..models.chat import Chat
from ..models.transaction import PendingTransaction, Transaction, TransactionKind
from ..schemas.transaction import ParsedEntry
from .categories import InvalidSelection, effective_categories, infer_category, resolve_currency
from .ledger import commit_pending

logger = logging.getLogger(__name__)


class NoPendingTransaction(LookupError):
    """Raised when a category is chosen but the user has nothing waiting."""


@dataclass(frozen=True)
class EntryOutcome:
    pending: Optional[PendingTransaction] = None
    transaction: Optional[Transaction] = None
    categories: list[str] = field(default_factory=list)
    replaced: Optional[str] = None

    @property
    def awaiting_category(self) -> bool:
        return self.transaction is None


async def get_pending(
    session: AsyncSession, chat_id: int, user_id: int
) -> Optional[PendingTransaction]:
    result = await session.execute(
        select(PendingTransaction).where(
            PendingTransaction.chat_id == chat_id,
            PendingTransaction.user_id == user_id,
        )
    )
    return result.scalars().first()


async def record_entry(
    session: AsyncSession,
    chat: Chat,
    user_id: int,
    user_name: str,
    entry: ParsedEntry,
    config: LedgerConfig,
) -> EntryOutcome:
    category: Optional[str] = None
    if entry.kind == TransactionKind.EXPENSE:
        category = await infer_category(session, chat.telegram_id, entry.item)

    pending = await get_pending(session, chat.telegram_id, user_id)
    replaced: Optional[str] = None
    if pending is None:
        pending = PendingTransaction(chat_id=chat.telegram_id, user_id=user_id)
        session.add(pending)
    else:
        replaced = pending.item
        logger.warning(
            "Overwriting pending entry %r for user %s in chat %s",
            pending.item,
            user_id,
            chat.telegram_id,
        )

    pending.user_name = user_name
    pending.item = entry.item
    pending.amount = entry.amount
    pending.currency = resolve_currency(entry.currency, chat, config)
    pending.kind = entry.kind
    pending.category = category
    pending.created_at = utcnow()

    if entry.kind == TransactionKind.INCOME or category is not None:
        await session.flush()
        transaction = await commit_pending(session, pending)
        return EntryOutcome(transaction=transaction, replaced=replaced)

    await session.commit()
    return EntryOutcome(
        pending=pending,
        categories=effective_categories(chat, config),
        replaced=replaced,
    )


async def select_category(
    session: AsyncSession,
    chat: Chat,
    user_id: int,
    category: str,
    config: LedgerConfig,
) -> Transaction:
    pending = await get_pending(session, chat.telegram_id, user_id)
    if pending is None:
        raise NoPendingTransaction("There is no entry waiting for a category.")
    if category not in effective_categories(chat, config):
        raise InvalidSelection(f"{category!r} is not one of this chat's categories.")
    pending.category = category
    return await commit_pending(session, pending)
