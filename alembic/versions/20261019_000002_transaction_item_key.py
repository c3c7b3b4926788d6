"""Add a case-folded item key to ledger entries.

Revision ID: 20261019_000002
Revises: 20261019_000001
Create Date: 2026-10-19 00:00:02.000000
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_000002"
down_revision: str | None = "20261019_000001"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.add_column("transactions", sa.Column("item_key", sa.String(length=1024), nullable=True))
    # lower() is close enough for existing rows; new rows are folded by the application.
    op.execute("UPDATE transactions SET item_key = lower(item)")
    op.alter_column("transactions", "item_key", existing_type=sa.String(length=1024), nullable=False)
    op.create_index("ix_transactions_chat_item_key", "transactions", ["chat_id", "item_key"])


def downgrade() -> None:
    op.drop_index("ix_transactions_chat_item_key", table_name="transactions")
    op.drop_column("transactions", "item_key")
