"""Core Layer — pure memo domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure; the clock is always passed in

Design Decisions:
    - Functional core separated from imperative shell (store, routes)
"""
