"""Database Metadata — declarative Base shared by models and migrations.

Invariants:
    - Engine and sessions live in infrastructure/database.py, not here

Design Decisions:
    - asyncpg driver for PostgreSQL, aiosqlite for local runs and tests
"""
