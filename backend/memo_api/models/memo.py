"""Memo ORM — the persisted row behind the Memo entity.

Invariants:
    - id is UUID primary key generated by the application (uuid4), never reused
    - title is non-nullable, at most 200 chars
    - description is nullable text: NULL (absent) and '' (empty) are different values
    - due_at, created_at, updated_at are timezone-aware columns

Design Decisions:
    - Indexes on due_at, completed, created_at: the list filter/sort columns
    - No server defaults for timestamps: the mutation rules own the clock
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from memo_api.db.base import Base


class MemoRow(Base):
    """Memo table row."""
    __tablename__ = "memos"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    completed: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )

    __table_args__ = (
        Index("idx_memos_due_at", "due_at"),
        Index("idx_memos_completed", "completed"),
        Index("idx_memos_created_at", "created_at"),
    )
