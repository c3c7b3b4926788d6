from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Optional, TypeVar

T = TypeVar("T")

ZERO_DECIMAL_CURRENCIES = {"JPY", "IDR"}


def escape_markdown(text: str) -> str:
    return text.replace("_", "\\_").replace("*", "\\*").replace("`", "\\`").replace("[", "\\[")


def format_amount_for_display(amount: str | Decimal, currency: str) -> str:
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return f"{amount} {currency}"

    currency_upper = currency.upper()
    if currency_upper in ZERO_DECIMAL_CURRENCIES:
        return f"{value.quantize(Decimal('1')):,} {currency_upper}"
    return f"{value:,.2f} {currency_upper}"


def format_percentage(part: Decimal, whole: Decimal) -> str:
    if not whole:
        return "0%"
    share = (part / whole * Decimal("100")).quantize(Decimal("0.1"))
    return f"{share}%"


def chunk(items: list[T], size: int) -> list[list[T]]:
    size = max(size, 1)
    return [items[idx : idx + size] for idx in range(0, len(items), size)]


def split_command(text: str, bot_username: Optional[str] = None) -> tuple[str, list[str]]:
    """Split ``/summary@my_bot args`` into ``("summary", ["args"])``.

    Commands addressed to another bot come back with an empty name.
    """
    tokens = text.strip().split()
    head = tokens[0][1:] if tokens else ""
    command, _, target = head.partition("@")
    if target and bot_username and target.casefold() != bot_username.lstrip("@").casefold():
        return "", tokens[1:]
    return command.lower(), tokens[1:]
