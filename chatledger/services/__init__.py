from .categories import (
    InvalidCategoryName,
    InvalidSelection,
    begin_category_capture,
    capture_category_name,
    effective_categories,
    infer_category,
    resolve_currency,
    set_chat_currency,
    set_chat_timezone,
)
from .chats import get_chat, register_participant
from .ledger import EditTargetNotFound, commit_pending, edit_by_reply, list_transactions
from .parser import MentionMissing, ParseFailure, parse_entry
from .pending import EntryOutcome, NoPendingTransaction, get_pending, record_entry, select_category
from .settlement import compute_settlement, month_bounds, settle_chat

__all__ = [
    "InvalidCategoryName",
    "InvalidSelection",
    "begin_category_capture",
    "capture_category_name",
    "effective_categories",
    "infer_category",
    "resolve_currency",
    "set_chat_currency",
    "set_chat_timezone",
    "get_chat",
    "register_participant",
    "EditTargetNotFound",
    "commit_pending",
    "edit_by_reply",
    "list_transactions",
    "MentionMissing",
    "ParseFailure",
    "parse_entry",
    "EntryOutcome",
    "NoPendingTransaction",
    "get_pending",
    "record_entry",
    "select_category",
    "compute_settlement",
    "month_bounds",
    "settle_chat",
]
