from __future__ import annotations

import unittest
from decimal import Decimal

from chatledger.models import TransactionKind
from chatledger.services.parser import MentionMissing, ParseFailure, parse_entry, strip_mention


class ParseEntryTests(unittest.TestCase):
    def test_expense_without_currency(self) -> None:
        entry = parse_entry("Lunch 20")

        self.assertEqual(entry.item, "Lunch")
        self.assertEqual(entry.amount, Decimal("20.00"))
        self.assertEqual(entry.kind, TransactionKind.EXPENSE)
        self.assertIsNone(entry.currency)

    def test_currency_is_upper_cased(self) -> None:
        entry = parse_entry("Taxi 12.50 sgd")

        self.assertEqual(entry.amount, Decimal("12.50"))
        self.assertEqual(entry.currency, "SGD")

    def test_currency_may_follow_amount_directly(self) -> None:
        self.assertEqual(parse_entry("Lunch 20USD").currency, "USD")

    def test_currency_is_any_three_word_characters(self) -> None:
        cases = {
            "Taxi 15 US1": ("Taxi", Decimal("15.00"), "US1"),
            "Lunch 20 123": ("Lunch", Decimal("20.00"), "123"),
            "Lunch 20 s_d": ("Lunch", Decimal("20.00"), "S_D"),
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                entry = parse_entry(text)
                self.assertEqual((entry.item, entry.amount, entry.currency), expected)

    def test_plus_sign_marks_income(self) -> None:
        entry = parse_entry("Salary +2000 USD")

        self.assertEqual(entry.kind, TransactionKind.INCOME)
        self.assertEqual(entry.amount, Decimal("2000.00"))
        self.assertEqual(entry.signed_amount, Decimal("2000.00"))

    def test_minus_sign_is_an_expense(self) -> None:
        entry = parse_entry("Coffee -4.5")

        self.assertEqual(entry.kind, TransactionKind.EXPENSE)
        self.assertEqual(entry.amount, Decimal("4.50"))
        self.assertEqual(entry.signed_amount, Decimal("-4.50"))

    def test_item_may_contain_spaces_and_digits(self) -> None:
        entry = parse_entry("Room 101 deposit 20")

        self.assertEqual(entry.item, "Room 101 deposit")
        self.assertEqual(entry.amount, Decimal("20.00"))

    def test_rejects_malformed_messages(self) -> None:
        for text in ("Lunch", "20", "", "Lunch twenty", "Lunch 20.123", "Lunch 20 US", "Lunch 20 SGD extra"):
            with self.subTest(text=text):
                with self.assertRaises(ParseFailure):
                    parse_entry(text)


class MentionTests(unittest.TestCase):
    def test_mention_is_stripped_case_insensitively(self) -> None:
        entry = parse_entry("@Ledger_Bot Lunch 20", mention="@ledger_bot")

        self.assertEqual(entry.item, "Lunch")

    def test_missing_mention_raises(self) -> None:
        with self.assertRaises(MentionMissing):
            parse_entry("Lunch 20", mention="@ledger_bot")

    def test_missing_mention_is_a_parse_failure(self) -> None:
        self.assertTrue(issubclass(MentionMissing, ParseFailure))

    def test_mention_alone_is_not_an_entry(self) -> None:
        self.assertEqual(strip_mention("@ledger_bot", "@ledger_bot"), "")
        with self.assertRaises(ParseFailure):
            parse_entry("@ledger_bot", mention="@ledger_bot")

    def test_no_mention_configured_keeps_text(self) -> None:
        self.assertEqual(strip_mention("  Lunch 20 ", None), "Lunch 20")


if __name__ == "__main__":
    unittest.main()
