from __future__ import annotations

from collections.abc import Sequence
from typing import Optional, Protocol

from telegram import Bot, InlineKeyboardButton, InlineKeyboardMarkup
from telegram.constants import ParseMode

from .helpers import chunk


class Transport(Protocol):
    """Outbound side of the chat: plain messages, button prompts, callback acks."""

    async def send_text(self, chat_id: int, text: str, *, rich: bool = False) -> None: ...

    async def send_choice(
        self,
        chat_id: int,
        prompt: str,
        options: Sequence[tuple[str, str]],
        *,
        columns: int = 2,
    ) -> None: ...

    async def acknowledge(self, callback_id: Optional[str], text: Optional[str] = None) -> None: ...


def build_keyboard(options: Sequence[tuple[str, str]], columns: int = 2) -> InlineKeyboardMarkup:
    buttons = [InlineKeyboardButton(label, callback_data=token) for label, token in options]
    return InlineKeyboardMarkup(chunk(buttons, columns))


class TelegramTransport:
    def __init__(self, bot: Bot) -> None:
        self.bot = bot

    async def send_text(self, chat_id: int, text: str, *, rich: bool = False) -> None:
        await self.bot.send_message(
            chat_id=chat_id,
            text=text,
            parse_mode=ParseMode.MARKDOWN if rich else None,
        )

    async def send_choice(
        self,
        chat_id: int,
        prompt: str,
        options: Sequence[tuple[str, str]],
        *,
        columns: int = 2,
    ) -> None:
        await self.bot.send_message(
            chat_id=chat_id,
            text=prompt,
            reply_markup=build_keyboard(options, columns),
        )

    async def acknowledge(self, callback_id: Optional[str], text: Optional[str] = None) -> None:
        if not callback_id:
            return
        await self.bot.answer_callback_query(callback_id, text=text)
