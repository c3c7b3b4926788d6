from __future__ import annotations

import unittest
from unittest.mock import AsyncMock

from sqlalchemy import select

from chatledger.config import DEFAULT_CATEGORIES, LedgerConfig
from chatledger.models import Transaction
from chatledger.schemas.events import parse_update
from chatledger.telegram import messages
from chatledger.telegram.router import SETTINGS_OPTIONS, route_event
from tests.helpers.db import DatabaseTestCase
from tests.test_events import callback_update, message_update

GROCERIES = DEFAULT_CATEGORIES[1]


class FakeTransport:
    def __init__(self) -> None:
        self.send_text = AsyncMock()
        self.send_choice = AsyncMock()
        self.acknowledge = AsyncMock()

    def last_text(self) -> str:
        return self.send_text.await_args.args[1]


class RouterTests(DatabaseTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.transport = FakeTransport()

    async def _send(self, payload: dict, config: LedgerConfig | None = None) -> None:
        await route_event(self.session, parse_update(payload), self.transport, config or self.config)

    async def _ledger(self) -> list[Transaction]:
        result = await self.session.execute(select(Transaction))
        return list(result.scalars().all())

    async def test_expense_then_category_choice(self) -> None:
        await self._send(message_update("Lunch 20"))

        self.transport.send_choice.assert_awaited_once()
        chat_id, prompt, options = self.transport.send_choice.await_args.args
        self.assertEqual(chat_id, 5)
        self.assertEqual(prompt, messages.CATEGORY_PROMPT)
        self.assertIn((GROCERIES, f"category_{GROCERIES}"), options)
        self.assertEqual(self.transport.send_choice.await_args.kwargs["columns"], 2)

        callback = callback_update(f"category_{GROCERIES}")
        callback["callback_query"]["message"]["chat"] = {"id": 5, "type": "private"}
        await self._send(callback)

        self.transport.acknowledge.assert_awaited_once_with("cb-1")
        self.assertIn("Added expense for *Alice*: Lunch - 20.00 SGD", self.transport.last_text())
        self.assertTrue(self.transport.send_text.await_args.kwargs["rich"])
        ledger = await self._ledger()
        self.assertEqual([(tx.item, tx.category) for tx in ledger], [("Lunch", GROCERIES)])

    async def test_income_is_confirmed_without_prompt(self) -> None:
        await self._send(message_update("Salary +2000 USD"))

        self.transport.send_choice.assert_not_awaited()
        self.assertIn("Added income for *Alice*: Salary - 2,000.00 USD", self.transport.last_text())

    async def test_bad_format_gets_help(self) -> None:
        await self._send(message_update("hello bot"))

        self.transport.send_text.assert_awaited_once_with(5, messages.FORMAT_HELP)
        self.assertEqual(await self._ledger(), [])

    async def test_group_messages_need_the_mention(self) -> None:
        config = LedgerConfig(bot_mention="@ledger_bot")

        await self._send(message_update("Lunch 20", chat_type="group"), config)
        self.transport.send_text.assert_not_awaited()
        self.transport.send_choice.assert_not_awaited()

        await self._send(message_update("@ledger_bot Lunch 20", chat_type="group"), config)
        self.transport.send_choice.assert_awaited_once()

    async def test_private_chats_do_not_need_the_mention(self) -> None:
        await self._send(message_update("Lunch 20"), LedgerConfig(bot_mention="@ledger_bot"))

        self.transport.send_choice.assert_awaited_once()

    async def test_category_choice_without_pending_entry(self) -> None:
        await self._send(callback_update(f"category_{GROCERIES}"))

        self.transport.send_text.assert_awaited_once_with(-100, messages.NO_PENDING)

    async def test_reply_edits_entry(self) -> None:
        await self._send(message_update("Taxi 12"))
        callback = callback_update(f"category_{DEFAULT_CATEGORIES[5]}")
        callback["callback_query"]["message"]["chat"] = {"id": 5, "type": "private"}
        await self._send(callback)

        await self._send(message_update("Taxi 15", reply_text="Taxi 12"))

        self.assertIn("Updated expense for *Alice*: Taxi - 15.00 SGD", self.transport.last_text())
        ledger = await self._ledger()
        self.assertEqual(len(ledger), 1)

    async def test_reply_to_unknown_entry(self) -> None:
        await self._send(message_update("Taxi 15", reply_text="Taxi 12"))

        self.transport.send_text.assert_awaited_once_with(5, messages.EDIT_NOT_FOUND)

    async def test_summary_command(self) -> None:
        await self._send(message_update("Salary +100"))
        await self._send(message_update("Lunch 20"))
        callback = callback_update(f"category_{GROCERIES}")
        callback["callback_query"]["message"]["chat"] = {"id": 5, "type": "private"}
        await self._send(callback)

        await self._send(message_update("/summary"))

        text = self.transport.last_text()
        self.assertIn("Total spent: 20.00 SGD", text)
        self.assertIn("100.0%", text)
        self.assertIn("Everyone is square.", text)

    async def test_summary_without_expenses(self) -> None:
        await self._send(message_update("/report"))

        self.assertIn("No expenses recorded", self.transport.last_text())

    async def test_help_and_start(self) -> None:
        await self._send(message_update("/start"))
        self.transport.send_text.assert_awaited_with(5, messages.WELCOME)

        await self._send(message_update("/help"), LedgerConfig(bot_mention="@ledger_bot"))
        self.assertIn("@ledger\\_bot", self.transport.last_text())

    async def test_command_for_another_bot_is_ignored(self) -> None:
        await self._send(message_update("/summary@other_bot"), LedgerConfig(bot_mention="@ledger_bot"))

        self.transport.send_text.assert_not_awaited()

    async def test_settings_menu_and_currency_change(self) -> None:
        await self._send(message_update("/settings"))
        self.transport.send_choice.assert_awaited_once_with(
            5, messages.SETTINGS_PROMPT, SETTINGS_OPTIONS, columns=1
        )

        await self._send(callback_update("settings_currency"))
        _, prompt, options = self.transport.send_choice.await_args.args
        self.assertEqual(prompt, messages.CURRENCY_PROMPT)
        self.assertIn(("USD", "currency_USD"), options)

        await self._send(callback_update("currency_USD"))
        self.assertEqual(self.transport.last_text(), "Default currency set to USD.")

        await self._send(callback_update("currency_XYZ"))
        self.assertIn("not a supported currency", self.transport.last_text())

    async def test_timezone_change(self) -> None:
        await self._send(callback_update("settings_timezone"))
        self.assertEqual(self.transport.send_choice.await_args.args[1], messages.TIMEZONE_PROMPT)

        await self._send(callback_update("timezone_Europe/London"))

        self.assertEqual(self.transport.last_text(), "Timezone set to Europe/London.")

    async def test_adding_a_category(self) -> None:
        await self._send(callback_update("settings_category"))
        self.assertEqual(self.transport.last_text(), messages.NEW_CATEGORY_PROMPT)

        payload = message_update("Pets", chat_type="group")
        await self._send(payload)
        self.assertEqual(self.transport.last_text(), "Added category 'Pets'.")

        await self._send(message_update("/categories", chat_type="group"))
        self.assertIn("- Pets", self.transport.last_text())

        await self._send(message_update("Pets 10", chat_type="group"))
        _, _, options = self.transport.send_choice.await_args.args
        self.assertEqual(options[-1], ("Pets", "category_Pets"))

    async def test_unknown_callback_is_only_acknowledged(self) -> None:
        await self._send(callback_update("bogus"))

        self.transport.acknowledge.assert_awaited_once_with("cb-1")
        self.transport.send_text.assert_not_awaited()
        self.transport.send_choice.assert_not_awaited()


if __name__ == "__main__":
    unittest.main()
