"""User-facing texts."""

from __future__ import annotations

import textwrap
from decimal import Decimal
from typing import Optional

from ..models.transaction import Transaction, TransactionKind
from ..schemas.settlement import Settlement
from .helpers import escape_markdown, format_amount_for_display, format_percentage

FORMAT_HELP = (
    "I don't understand that format. Please add transactions in the format: "
    "'[Item] [Amount] [currency (optional)]'. For example, 'Lunch 20 USD' or 'Salary +2000 USD'."
)

WELCOME = textwrap.dedent(
    """
    Hello, I am your expense tracker bot. Please add expenses in the format:
    '[Expense Item] [Amount] [currency (optional)]'. For example, 'Lunch 20 USD' or 'Coffee 5'.
    Use '+' before the amount to indicate income, e.g., 'Salary +2000 USD'.
    """
).strip()

HELP_OVERVIEW = textwrap.dedent(
    """
    How I can help:

    - Record an expense: `Lunch 20` or `Taxi 12.50 SGD`. Pick a category from the buttons.
    - Record income: `Salary +2000`.
    - Fix an entry: reply to your original message with the corrected text.
    - /summary - this month's totals and who owes whom.
    - /categories - list the categories of this chat.
    - /settings - change currency or timezone, or add a category.
    - In groups, start entries with {mention}.
    """
).strip()

CATEGORY_PROMPT = "Please select a category for the expense:"
SETTINGS_PROMPT = "What would you like to change?"
CURRENCY_PROMPT = "Choose the default currency for this chat:"
TIMEZONE_PROMPT = "Choose the timezone used for monthly summaries:"
NEW_CATEGORY_PROMPT = "Send the name of the new category."
NO_PENDING = "There is no entry waiting for a category. Send a new one first."
EDIT_NOT_FOUND = "I couldn't find the original transaction to edit."


def help_text(mention: Optional[str]) -> str:
    return HELP_OVERVIEW.format(mention=escape_markdown(mention) if mention else "a mention of the bot")


def category_prompt(replaced: Optional[str] = None) -> str:
    if replaced:
        return f"{CATEGORY_PROMPT}\n(replaces your unfinished entry '{replaced}')"
    return CATEGORY_PROMPT


def confirmation(transaction: Transaction, *, edited: bool = False) -> str:
    amount_text = format_amount_for_display(transaction.amount, transaction.currency)
    verb = "Updated" if edited else "Added"
    kind = "income" if transaction.kind == TransactionKind.INCOME else "expense"
    text = (
        f"{verb} {kind} for *{escape_markdown(transaction.user_name)}*: "
        f"{escape_markdown(transaction.item)} - {amount_text}"
    )
    if transaction.kind == TransactionKind.EXPENSE and transaction.category:
        text += f" ({escape_markdown(transaction.category)})"
    return text


def category_list(categories: list[str]) -> str:
    lines = ["Categories:"]
    lines.extend(f"- {name}" for name in categories)
    return "\n".join(lines)


def render_settlement(settlement: Settlement, currency: str, local_start: str, local_end: str) -> str:
    if settlement.is_empty:
        return f"No expenses recorded between {local_start} and {local_end}."

    label = settlement.currencies[0] if len(settlement.currencies) == 1 else currency
    lines = [
        f"*Summary {local_start} - {local_end}*",
        f"Total spent: {format_amount_for_display(settlement.total, label)}",
    ]
    if len(settlement.currencies) > 1:
        lines.append(
            "_Amounts in " + ", ".join(settlement.currencies) + " are added up without conversion._"
        )

    lines.append("")
    lines.append("*By category:*")
    ranked = sorted(settlement.category_totals.items(), key=lambda pair: pair[1], reverse=True)
    for name, amount in ranked:
        lines.append(
            f"- {escape_markdown(name)}: {format_amount_for_display(amount, label)}"
            f" ({format_percentage(amount, settlement.total)})"
        )

    lines.append("")
    lines.append(f"*By person* (even share {format_amount_for_display(settlement.split, label)}):")
    for user_id, spent in settlement.user_totals.items():
        name = escape_markdown(settlement.user_names.get(user_id, str(user_id)))
        balance = settlement.balances.get(user_id, Decimal("0"))
        sign = "+" if balance >= 0 else "-"
        lines.append(
            f"- {name}: {format_amount_for_display(spent, label)}"
            f" ({sign}{format_amount_for_display(abs(balance), label)})"
        )

    lines.append("")
    if not settlement.transfers:
        lines.append("Everyone is square.")
    else:
        lines.append("*To settle:*")
        for transfer in settlement.transfers:
            lines.append(
                f"- {escape_markdown(transfer.debtor_name)} pays "
                f"{escape_markdown(transfer.creditor_name)} "
                f"{format_amount_for_display(transfer.amount, label)}"
            )
    return "\n".join(lines)
