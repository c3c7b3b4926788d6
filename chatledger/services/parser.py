"""Free-text entry grammar: ``[mention] <item> <amount> [currency]``.

``Lunch 20 SGD`` is a 20.00 SGD expense, ``Salary +2000`` is income in the
chat's currency. A leading ``-`` (or no sign) means expense, ``+`` means
income. The amount takes at most two decimal places.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Optional

from ..models.transaction import TransactionKind
from ..schemas.transaction import ParsedEntry

ENTRY_PATTERN = re.compile(
    r"^(?P<item>.+?)\s+"
    r"(?P<amount>[+-]?\d+(?:\.\d{1,2})?)(?![\d.])"
    r"\s*(?P<currency>\w{3})?$"
)

CENTS = Decimal("0.01")


class ParseFailure(ValueError):
    """Raised when a message does not follow the entry grammar."""


class MentionMissing(ParseFailure):
    """Raised when a required leading mention is absent."""


def strip_mention(text: str, mention: Optional[str]) -> str:
    """Remove ``mention`` from the start of ``text``; raise :class:`MentionMissing` if absent."""
    stripped = text.strip()
    if not mention:
        return stripped
    parts = stripped.split(maxsplit=1)
    if not parts or parts[0].casefold() != mention.casefold():
        raise MentionMissing(f"Message does not start with {mention}.")
    return parts[1].strip() if len(parts) > 1 else ""


def parse_entry(text: str, *, mention: Optional[str] = None) -> ParsedEntry:
    body = strip_mention(text, mention)
    match = ENTRY_PATTERN.match(body)
    if match is None:
        raise ParseFailure(f"Could not read an entry from {body!r}.")

    item = match.group("item").strip()
    if not item:
        raise ParseFailure("The item name is empty.")

    raw_amount = match.group("amount")
    kind = TransactionKind.INCOME if raw_amount.startswith("+") else TransactionKind.EXPENSE
    amount = abs(Decimal(raw_amount)).quantize(CENTS)
    currency = match.group("currency")
    return ParsedEntry(
        item=item,
        amount=amount,
        kind=kind,
        currency=currency.upper() if currency else None,
    )
