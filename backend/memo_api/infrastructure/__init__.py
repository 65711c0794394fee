"""Infrastructure Layer — database sessions, the SQL memo store, logging.

Invariants:
    - Driver exceptions never escape this package; they become StoreError

Design Decisions:
    - Implements core/repository_protocols.py; core never imports from here
"""
