from .base import Base
from .chat import Chat, ChatMembership
from .transaction import PendingTransaction, Transaction, TransactionKind, fold_item
from .user import User

__all__ = [
    "Base",
    "Chat",
    "ChatMembership",
    "PendingTransaction",
    "Transaction",
    "TransactionKind",
    "User",
    "fold_item",
]
