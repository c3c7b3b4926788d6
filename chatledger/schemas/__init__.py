from .events import CallbackEvent, ChatRef, MessageEvent, ReplyRef, UserRef, parse_update
from .settlement import NetTransfer, Settlement
from .transaction import ParsedEntry, TransactionKind, TransactionRead

__all__ = [
    "CallbackEvent",
    "ChatRef",
    "MessageEvent",
    "ReplyRef",
    "UserRef",
    "parse_update",
    "NetTransfer",
    "Settlement",
    "ParsedEntry",
    "TransactionKind",
    "TransactionRead",
]
