"""Initial schema: chats, users, memberships, pending entries and ledger.

Revision ID: 20261019_000001
Revises: 
Create Date: 2026-10-19 00:00:01.000000
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_000001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


transaction_kind_enum = postgresql.ENUM(
    "expense",
    "income",
    name="transactionkind",
    create_type=False,
)


def _base_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.Uuid(), primary_key=True, nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def _entry_columns() -> list[sa.Column]:
    return [
        sa.Column("chat_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("user_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("item", sa.String(length=512), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("kind", transaction_kind_enum, nullable=False),
        sa.Column("category", sa.String(length=128), nullable=True),
    ]


def upgrade() -> None:
    transaction_kind_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "chats",
        *_base_columns(),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("default_currency", sa.String(length=3), nullable=True),
        sa.Column("timezone", sa.String(length=64), nullable=True),
        sa.Column("custom_categories", sa.JSON(), nullable=False),
        sa.Column(
            "awaiting_category_name", sa.Boolean(), nullable=False, server_default=sa.false()
        ),
    )
    op.create_index("ix_chats_telegram_id", "chats", ["telegram_id"], unique=True)

    op.create_table(
        "users",
        *_base_columns(),
        sa.Column("telegram_id", sa.BigInteger(), nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=True),
    )
    op.create_index("ix_users_telegram_id", "users", ["telegram_id"], unique=True)

    op.create_table(
        "chat_memberships",
        *_base_columns(),
        sa.Column("chat_id", sa.BigInteger(), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.UniqueConstraint("chat_id", "user_id", name="uq_chat_membership"),
    )
    op.create_index("ix_chat_memberships_chat_id", "chat_memberships", ["chat_id"])

    op.create_table(
        "pending_transactions",
        *_base_columns(),
        *_entry_columns(),
        sa.UniqueConstraint("chat_id", "user_id", name="uq_pending_chat_user"),
    )

    op.create_table(
        "transactions",
        *_base_columns(),
        *_entry_columns(),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "ix_transactions_chat_occurred", "transactions", ["chat_id", "occurred_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_transactions_chat_occurred", table_name="transactions")
    op.drop_table("transactions")
    op.drop_table("pending_transactions")
    op.drop_index("ix_chat_memberships_chat_id", table_name="chat_memberships")
    op.drop_table("chat_memberships")
    op.drop_index("ix_users_telegram_id", table_name="users")
    op.drop_table("users")
    op.drop_index("ix_chats_telegram_id", table_name="chats")
    op.drop_table("chats")
    transaction_kind_enum.drop(op.get_bind(), checkfirst=True)
