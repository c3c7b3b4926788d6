from __future__ import annotations

from typing import Optional

from sqlalchemy import JSON, BigInteger, Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class Chat(Base):
    """A conversation the bot takes part in; settings and ledger are scoped to it."""

    __tablename__ = "chats"

    telegram_id: Mapped[int] = mapped_column(
        BigInteger, unique=True, nullable=False, index=True
    )
    default_currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    timezone: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    custom_categories: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    awaiting_category_name: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)


class ChatMembership(Base):
    """Existence record linking a user to a chat."""

    __tablename__ = "chat_memberships"
    __table_args__ = (UniqueConstraint("chat_id", "user_id", name="uq_chat_membership"),)

    chat_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
