"""Create memos table with list/filter indexes.

Revision ID: 001_create_memos
Revises: None
Create Date: 2025-01-09

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_create_memos"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "memos",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "completed", sa.Boolean, nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("idx_memos_due_at", "memos", ["due_at"])
    op.create_index("idx_memos_completed", "memos", ["completed"])
    op.create_index("idx_memos_created_at", "memos", ["created_at"])


def downgrade() -> None:
    op.drop_index("idx_memos_created_at", table_name="memos")
    op.drop_index("idx_memos_completed", table_name="memos")
    op.drop_index("idx_memos_due_at", table_name="memos")
    op.drop_table("memos")
