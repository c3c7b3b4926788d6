from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.chat import Chat, ChatMembership
from ..models.user import User

logger = logging.getLogger(__name__)


async def get_chat(session: AsyncSession, telegram_chat_id: int) -> Optional[Chat]:
    result = await session.execute(select(Chat).where(Chat.telegram_id == telegram_chat_id))
    return result.scalars().first()


async def get_user_by_telegram_id(session: AsyncSession, telegram_id: int) -> Optional[User]:
    result = await session.execute(select(User).where(User.telegram_id == telegram_id))
    return result.scalars().first()


async def _ensure_chat(session: AsyncSession, telegram_chat_id: int) -> Chat:
    chat = await get_chat(session, telegram_chat_id)
    if chat is None:
        chat = Chat(telegram_id=telegram_chat_id, custom_categories=[], awaiting_category_name=False)
        session.add(chat)
        logger.info("Registered chat %s", telegram_chat_id)
    return chat


async def _ensure_user(session: AsyncSession, telegram_id: int, full_name: str | None) -> User:
    user = await get_user_by_telegram_id(session, telegram_id)
    if user is None:
        user = User(telegram_id=telegram_id, full_name=full_name)
        session.add(user)
    elif full_name and user.full_name != full_name:
        user.full_name = full_name
    return user


async def _ensure_membership(session: AsyncSession, chat_id: int, user_id: int) -> ChatMembership:
    result = await session.execute(
        select(ChatMembership).where(
            ChatMembership.chat_id == chat_id,
            ChatMembership.user_id == user_id,
        )
    )
    membership = result.scalars().first()
    if membership is None:
        membership = ChatMembership(chat_id=chat_id, user_id=user_id)
        session.add(membership)
    return membership


async def register_participant(
    session: AsyncSession,
    chat_id: int,
    user_id: int,
    full_name: str | None,
) -> Chat:
    """Make sure the chat, the user and their membership exist.

    Existing records keep their settings and custom categories; only the
    user's display name is refreshed.
    """
    chat = await _ensure_chat(session, chat_id)
    await _ensure_user(session, user_id, full_name)
    await _ensure_membership(session, chat_id, user_id)
    await session.commit()
    return chat

