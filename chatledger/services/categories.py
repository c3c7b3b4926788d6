"""Category and currency resolution for a chat.

The effective category set is the configured defaults followed by the chat's
own additions. Currency falls back from the message, to the chat setting, to
the configured default.
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import LedgerConfig
from ..models.chat import Chat
from ..models.transaction import Transaction, fold_item

logger = logging.getLogger(__name__)

CATEGORY_TOKEN_PREFIX = "category_"
MAX_CALLBACK_DATA_BYTES = 64


class InvalidSelection(ValueError):
    """Raised when a category, currency or timezone is not among the offered choices."""


class InvalidCategoryName(ValueError):
    """Raised when a proposed custom category name cannot be used."""


def effective_categories(chat: Optional[Chat], config: LedgerConfig) -> list[str]:
    merged: list[str] = []
    custom = chat.custom_categories if chat is not None and chat.custom_categories else []
    for name in (*config.default_categories, *custom):
        if name not in merged:
            merged.append(name)
    return merged


def resolve_currency(explicit: Optional[str], chat: Optional[Chat], config: LedgerConfig) -> str:
    if explicit:
        return explicit.upper()
    if chat is not None and chat.default_currency:
        return chat.default_currency
    return config.default_currency


def chat_timezone(chat: Optional[Chat], config: LedgerConfig) -> tzinfo:
    name = (chat.timezone if chat is not None else None) or config.default_timezone
    try:
        return ZoneInfo(name)
    except ZoneInfoNotFoundError:
        logger.warning("Unknown timezone %s; falling back to UTC", name)
        return timezone.utc


async def infer_category(session: AsyncSession, chat_id: int, item: str) -> Optional[str]:
    """Category of the most recent ledger entry in the chat with the same item name."""
    stmt = (
        select(Transaction.category)
        .where(
            Transaction.chat_id == chat_id,
            Transaction.item_key == fold_item(item),
            Transaction.category.is_not(None),
        )
        .order_by(Transaction.occurred_at.desc(), Transaction.created_at.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def set_chat_currency(
    session: AsyncSession, chat: Chat, code: str, config: LedgerConfig
) -> Chat:
    normalised = code.strip().upper()
    if normalised not in config.supported_currencies:
        raise InvalidSelection(f"{code} is not a supported currency.")
    chat.default_currency = normalised
    await session.commit()
    logger.info("Chat %s currency set to %s", chat.telegram_id, normalised)
    return chat


async def set_chat_timezone(
    session: AsyncSession, chat: Chat, name: str, config: LedgerConfig
) -> Chat:
    if name not in config.supported_timezones:
        raise InvalidSelection(f"{name} is not a supported timezone.")
    chat.timezone = name
    await session.commit()
    logger.info("Chat %s timezone set to %s", chat.telegram_id, name)
    return chat


async def begin_category_capture(session: AsyncSession, chat: Chat) -> Chat:
    chat.awaiting_category_name = True
    await session.commit()
    return chat


def _validate_category_name(raw: str) -> str:
    name = " ".join(raw.split())
    if not name:
        raise InvalidCategoryName("Category name cannot be empty.")
    if len(f"{CATEGORY_TOKEN_PREFIX}{name}".encode("utf-8")) > MAX_CALLBACK_DATA_BYTES:
        raise InvalidCategoryName("Category name is too long.")
    return name


async def capture_category_name(
    session: AsyncSession, chat: Chat, raw: str, config: LedgerConfig
) -> tuple[str, bool]:
    """Consume ``raw`` as a new custom category and leave capture mode.

    Returns the cleaned name and whether it was appended. A name that is
    already in the effective set is accepted without being duplicated.
    Capture mode is cleared even when the name is rejected.
    """
    chat.awaiting_category_name = False
    try:
        name = _validate_category_name(raw)
    except InvalidCategoryName:
        await session.commit()
        raise

    added = name not in effective_categories(chat, config)
    if added:
        chat.custom_categories = [*(chat.custom_categories or []), name]
        logger.info("Chat %s added category %r", chat.telegram_id, name)
    await session.commit()
    return name, added
