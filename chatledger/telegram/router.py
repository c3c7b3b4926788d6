"""Dispatch of validated chat events to the ledger services.

A text message is, in order of precedence: a command, the name of a new
category (while the chat is waiting for one), an edit when it replies to an
earlier entry, or a new entry. Callback events carry a ``tag_payload`` token
from one of the inline keyboards.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import LedgerConfig
from ..models.chat import Chat
from ..schemas.events import CallbackEvent, MessageEvent
from ..services.categories import (
    CATEGORY_TOKEN_PREFIX,
    InvalidCategoryName,
    InvalidSelection,
    begin_category_capture,
    capture_category_name,
    chat_timezone,
    effective_categories,
    resolve_currency,
    set_chat_currency,
    set_chat_timezone,
)
from ..services.chats import register_participant
from ..services.ledger import EditTargetNotFound, edit_by_reply
from ..services.parser import MentionMissing, ParseFailure, parse_entry, strip_mention
from ..services.pending import NoPendingTransaction, record_entry, select_category
from ..services.settlement import settle_chat
from . import messages
from .helpers import split_command
from .transport import Transport

logger = logging.getLogger(__name__)

SETTINGS_OPTIONS = [
    ("Currency", "settings_currency"),
    ("Timezone", "settings_timezone"),
    ("Add category", "settings_category"),
]


async def route_event(
    session: AsyncSession,
    event: MessageEvent | CallbackEvent,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    if isinstance(event, CallbackEvent):
        await handle_callback(session, event, transport, config)
    else:
        await handle_message(session, event, transport, config)


def _without_mention(text: str, mention: Optional[str]) -> str:
    try:
        return strip_mention(text, mention)
    except MentionMissing:
        return text.strip()


async def handle_message(
    session: AsyncSession,
    event: MessageEvent,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    sender = event.from_user
    chat = await register_participant(session, event.chat.id, sender.id, sender.first_name)
    text = event.text.strip()
    mention = None if event.is_private else config.bot_mention

    if text.startswith("/"):
        await _handle_command(session, chat, text, transport, config)
        return

    if chat.awaiting_category_name:
        await _capture_category(session, chat, _without_mention(text, mention), transport, config)
        return

    try:
        strip_mention(text, mention)
    except MentionMissing:
        return

    if event.reply_text:
        await _edit_entry(session, chat, event, transport, config, mention)
        return

    try:
        entry = parse_entry(text, mention=mention)
    except ParseFailure:
        await transport.send_text(chat.telegram_id, messages.FORMAT_HELP)
        return

    outcome = await record_entry(session, chat, sender.id, sender.display_name, entry, config)
    if outcome.transaction is not None:
        await transport.send_text(
            chat.telegram_id, messages.confirmation(outcome.transaction), rich=True
        )
        return
    await transport.send_choice(
        chat.telegram_id,
        messages.category_prompt(outcome.replaced),
        [(name, f"{CATEGORY_TOKEN_PREFIX}{name}") for name in outcome.categories],
        columns=2,
    )


async def _edit_entry(
    session: AsyncSession,
    chat: Chat,
    event: MessageEvent,
    transport: Transport,
    config: LedgerConfig,
    mention: Optional[str],
) -> None:
    try:
        transaction = await edit_by_reply(
            session,
            chat,
            event.from_user.id,
            event.reply_text or "",
            event.text,
            config,
            mention=mention,
        )
    except ParseFailure:
        await transport.send_text(chat.telegram_id, messages.FORMAT_HELP)
    except EditTargetNotFound:
        await transport.send_text(chat.telegram_id, messages.EDIT_NOT_FOUND)
    else:
        await transport.send_text(
            chat.telegram_id, messages.confirmation(transaction, edited=True), rich=True
        )


async def _capture_category(
    session: AsyncSession,
    chat: Chat,
    text: str,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    try:
        name, added = await capture_category_name(session, chat, text, config)
    except InvalidCategoryName as exc:
        await transport.send_text(chat.telegram_id, f"{exc} No category was added.")
        return
    if added:
        await transport.send_text(chat.telegram_id, f"Added category '{name}'.")
    else:
        await transport.send_text(chat.telegram_id, f"'{name}' is already a category.")


async def _handle_command(
    session: AsyncSession,
    chat: Chat,
    text: str,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    command, _args = split_command(text, config.bot_mention)
    if command == "start":
        await transport.send_text(chat.telegram_id, messages.WELCOME)
    elif command == "help":
        await transport.send_text(chat.telegram_id, messages.help_text(config.bot_mention), rich=True)
    elif command == "settings":
        await transport.send_choice(
            chat.telegram_id, messages.SETTINGS_PROMPT, SETTINGS_OPTIONS, columns=1
        )
    elif command == "categories":
        await transport.send_text(
            chat.telegram_id, messages.category_list(effective_categories(chat, config))
        )
    elif command in {"summary", "report"}:
        await _send_summary(session, chat, transport, config)


async def _send_summary(
    session: AsyncSession,
    chat: Chat,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    settlement = await settle_chat(session, chat, config)
    tz = chat_timezone(chat, config)
    local_start = settlement.start.astimezone(tz).date().isoformat()
    local_end = (settlement.end - timedelta(microseconds=1)).astimezone(tz).date().isoformat()
    text = messages.render_settlement(
        settlement, resolve_currency(None, chat, config), local_start, local_end
    )
    await transport.send_text(chat.telegram_id, text, rich=True)


async def handle_callback(
    session: AsyncSession,
    event: CallbackEvent,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    sender = event.from_user
    chat = await register_participant(session, event.chat_id, sender.id, sender.first_name)
    await transport.acknowledge(event.id)
    tag, payload = event.split()

    if tag == "category":
        await _choose_category(session, chat, sender.id, payload, transport, config)
    elif tag == "currency":
        await _choose_setting(session, chat, payload, transport, config, currency=True)
    elif tag == "timezone":
        await _choose_setting(session, chat, payload, transport, config, currency=False)
    elif tag == "settings":
        await _open_setting(session, chat, payload, transport, config)
    else:
        logger.debug("Ignoring callback %r in chat %s", event.data, chat.telegram_id)


async def _choose_category(
    session: AsyncSession,
    chat: Chat,
    user_id: int,
    category: str,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    try:
        transaction = await select_category(session, chat, user_id, category, config)
    except NoPendingTransaction:
        await transport.send_text(chat.telegram_id, messages.NO_PENDING)
    except InvalidSelection as exc:
        await transport.send_text(chat.telegram_id, f"{exc} Please pick one of the buttons.")
    else:
        await transport.send_text(chat.telegram_id, messages.confirmation(transaction), rich=True)


async def _choose_setting(
    session: AsyncSession,
    chat: Chat,
    value: str,
    transport: Transport,
    config: LedgerConfig,
    *,
    currency: bool,
) -> None:
    try:
        if currency:
            await set_chat_currency(session, chat, value, config)
        else:
            await set_chat_timezone(session, chat, value, config)
    except InvalidSelection as exc:
        await transport.send_text(chat.telegram_id, str(exc))
        return
    if currency:
        await transport.send_text(chat.telegram_id, f"Default currency set to {chat.default_currency}.")
    else:
        await transport.send_text(chat.telegram_id, f"Timezone set to {chat.timezone}.")


async def _open_setting(
    session: AsyncSession,
    chat: Chat,
    name: str,
    transport: Transport,
    config: LedgerConfig,
) -> None:
    if name == "currency":
        options = [(code, f"currency_{code}") for code in config.supported_currencies]
        await transport.send_choice(chat.telegram_id, messages.CURRENCY_PROMPT, options, columns=3)
    elif name == "timezone":
        options = [(zone, f"timezone_{zone}") for zone in config.supported_timezones]
        await transport.send_choice(chat.telegram_id, messages.TIMEZONE_PROMPT, options, columns=2)
    elif name == "category":
        await begin_category_capture(session, chat)
        await transport.send_text(chat.telegram_id, messages.NEW_CATEGORY_PROMPT)
