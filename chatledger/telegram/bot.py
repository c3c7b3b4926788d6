from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from telegram import BotCommand
from telegram.ext import AIORateLimiter, Application

from ..config import get_settings
from ..db import event_session
from ..schemas.events import parse_update
from .router import route_event
from .transport import TelegramTransport

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]

BOT_COMMANDS = [
    BotCommand("start", "Show welcome message"),
    BotCommand("help", "How to record expenses"),
    BotCommand("summary", "This month's settlement"),
    BotCommand("categories", "List categories"),
    BotCommand("settings", "Currency, timezone and categories"),
]

_application: Application | None = None
_lock = asyncio.Lock()


def _create_application(token: str) -> Application:
    return (
        Application.builder()
        .token(token)
        .updater(None)
        .rate_limiter(AIORateLimiter())
        .build()
    )


async def init_bot() -> None:
    """Initialise the Telegram bot and register the webhook."""
    settings = get_settings()
    if not settings.telegram_bot_token or not settings.telegram_webhook_secret:
        logger.info("Telegram bot or webhook secret not configured; skipping bot initialisation.")
        return

    webhook_url: str | None = None
    if settings.backend_base_url:
        base_url = str(settings.backend_base_url)
        webhook_url = base_url.rstrip("/") + f"/api/telegram/webhook/{settings.telegram_webhook_secret}"
    elif settings.telegram_register_webhook_on_start:
        logger.warning("BACKEND_BASE_URL is missing; skipping Telegram webhook registration.")

    async with _lock:
        global _application
        if _application is not None:
            return

        application = _create_application(settings.telegram_bot_token)
        try:
            await application.initialize()
            await application.start()
            try:
                await application.bot.set_my_commands(BOT_COMMANDS)
            except Exception:
                logger.exception("Failed to set Telegram command list.")
            if settings.telegram_register_webhook_on_start and webhook_url:
                await application.bot.set_webhook(
                    url=webhook_url,
                    drop_pending_updates=False,
                    allowed_updates=ALLOWED_UPDATES,
                )
                logger.info("Telegram webhook configured at %s", webhook_url)
        except Exception:
            logger.exception("Failed to initialise Telegram bot; bot disabled for this run.")
            with contextlib.suppress(Exception):
                await application.stop()
            with contextlib.suppress(Exception):
                await application.shutdown()
            return

        _application = application
        logger.info("Telegram bot initialised")


async def handle_update(payload: dict[str, Any]) -> None:
    """Process a Telegram update forwarded by FastAPI."""
    event = parse_update(payload)
    if event is None:
        return

    async with _lock:
        if _application is None:
            raise RuntimeError("Telegram bot is not initialised.")
        application = _application

    transport = TelegramTransport(application.bot)
    config = get_settings().ledger_config()
    try:
        async with event_session() as session:
            await route_event(session, event, transport, config)
    except Exception:
        logger.exception("Failed to handle update %s", payload.get("update_id"))
        raise


async def shutdown_bot() -> None:
    """Tear down the Telegram bot."""
    async with _lock:
        global _application
        if _application is None:
            return
        await _application.stop()
        await _application.shutdown()
        _application = None
