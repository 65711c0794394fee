"""ORM Models — SQLAlchemy declarative models for persisted entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Importing this package registers every table on Base.metadata

Design Decisions:
    - One file per entity; memos is the only table
"""

from memo_api.models.memo import MemoRow  # noqa: F401
