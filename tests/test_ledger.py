from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from chatledger.models import TransactionKind
from chatledger.services.ledger import EditTargetNotFound, edit_by_reply, list_transactions
from chatledger.services.parser import ParseFailure, parse_entry
from chatledger.services.pending import get_pending, record_entry, select_category
from tests.helpers.db import DatabaseTestCase


class CommitTests(DatabaseTestCase):
    async def test_commit_keeps_time_of_original_message(self) -> None:
        chat = await self.make_chat()
        await record_entry(self.session, chat, self.alice, "Alice", parse_entry("Lunch 20"), self.config)
        pending = await get_pending(self.session, self.chat_id, self.alice)
        received_at = pending.created_at

        transaction = await select_category(
            self.session, chat, self.alice, self.config.default_categories[0], self.config
        )

        self.assertEqual(transaction.occurred_at.replace(tzinfo=None), received_at.replace(tzinfo=None))
        self.assertEqual(transaction.user_name, "Alice")


class EditByReplyTests(DatabaseTestCase):
    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.chat = await self.make_chat()

    async def test_updates_matching_entry(self) -> None:
        original = await self.add_transaction(item="Taxi", amount="12", category="Commuting")

        edited = await edit_by_reply(self.session, self.chat, self.alice, "Taxi 12", "Cab 15 USD", self.config)

        self.assertEqual(edited.id, original.id)
        self.assertEqual(edited.item, "Cab")
        self.assertEqual(edited.amount, Decimal("15.00"))
        self.assertEqual(edited.currency, "USD")
        self.assertEqual(edited.category, "Commuting")
        self.assertEqual(edited.kind, TransactionKind.EXPENSE)

    async def test_edits_most_recent_of_identical_entries(self) -> None:
        now = datetime.now(timezone.utc)
        older = await self.add_transaction(item="Coffee", amount="4", occurred_at=now - timedelta(days=3))
        newer = await self.add_transaction(item="Coffee", amount="4", occurred_at=now)

        edited = await edit_by_reply(self.session, self.chat, self.alice, "Coffee 4", "Coffee 5", self.config)

        self.assertEqual(edited.id, newer.id)
        await self.session.refresh(older)
        self.assertEqual(older.amount, Decimal("4.00"))

    async def test_only_the_author_can_edit(self) -> None:
        await self.add_transaction(item="Taxi", amount="12", user_id=self.bob, user_name="Bob")

        with self.assertRaises(EditTargetNotFound):
            await edit_by_reply(self.session, self.chat, self.alice, "Taxi 12", "Taxi 15", self.config)

    async def test_currency_of_original_is_resolved_before_matching(self) -> None:
        await self.add_transaction(item="Taxi", amount="12", currency="SGD")

        with self.assertRaises(EditTargetNotFound):
            await edit_by_reply(self.session, self.chat, self.alice, "Taxi 12 USD", "Taxi 15", self.config)
        edited = await edit_by_reply(self.session, self.chat, self.alice, "Taxi 12 sgd", "Taxi 15", self.config)
        self.assertEqual(edited.amount, Decimal("15.00"))

    async def test_entry_is_found_after_chat_currency_changes(self) -> None:
        original = await self.add_transaction(item="Taxi", amount="12", currency="SGD")
        self.chat.default_currency = "USD"
        await self.session.commit()

        edited = await edit_by_reply(self.session, self.chat, self.alice, "Taxi 12", "Taxi 15 SGD", self.config)

        self.assertEqual(edited.id, original.id)
        self.assertEqual((edited.amount, edited.currency), (Decimal("15.00"), "SGD"))

    async def test_current_currency_match_wins_over_older_entry(self) -> None:
        now = datetime.now(timezone.utc)
        await self.add_transaction(item="Taxi", amount="12", currency="SGD", occurred_at=now)
        usd = await self.add_transaction(item="Taxi", amount="12", currency="USD", occurred_at=now - timedelta(days=1))
        self.chat.default_currency = "USD"
        await self.session.commit()

        edited = await edit_by_reply(self.session, self.chat, self.alice, "Taxi 12", "Taxi 13", self.config)

        self.assertEqual(edited.id, usd.id)

    async def test_unparseable_texts_are_rejected(self) -> None:
        await self.add_transaction(item="Taxi", amount="12")

        with self.assertRaises(ParseFailure):
            await edit_by_reply(self.session, self.chat, self.alice, "hello there", "Taxi 15", self.config)
        with self.assertRaises(ParseFailure):
            await edit_by_reply(self.session, self.chat, self.alice, "Taxi 12", "fifteen", self.config)


class ListTransactionsTests(DatabaseTestCase):
    async def test_filters_and_orders_newest_first(self) -> None:
        base = datetime(2024, 3, 10, tzinfo=timezone.utc)
        await self.add_transaction(item="A", amount="1", occurred_at=base - timedelta(days=20))
        await self.add_transaction(item="B", amount="2", occurred_at=base)
        await self.add_transaction(item="C", amount="3", occurred_at=base + timedelta(days=1), user_id=self.bob)
        await self.add_transaction(item="Pay", amount="100", occurred_at=base, kind=TransactionKind.INCOME)
        await self.add_transaction(item="Other chat", amount="5", occurred_at=base, chat_id=42)

        everything = await list_transactions(self.session, self.chat_id)
        self.assertEqual([tx.item for tx in everything][0], "C")
        self.assertEqual(len(everything), 4)

        expenses = await list_transactions(self.session, self.chat_id, kind=TransactionKind.EXPENSE)
        self.assertEqual({tx.item for tx in expenses}, {"A", "B", "C"})

        window = await list_transactions(
            self.session,
            self.chat_id,
            start=base,
            end=base + timedelta(days=1),
        )
        self.assertEqual({tx.item for tx in window}, {"B", "Pay"})

        bobs = await list_transactions(self.session, self.chat_id, user_id=self.bob)
        self.assertEqual([tx.item for tx in bobs], ["C"])

        page = await list_transactions(self.session, self.chat_id, limit=1, offset=1)
        self.assertEqual(len(page), 1)


if __name__ == "__main__":
    unittest.main()
