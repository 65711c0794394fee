"""API Layer — FastAPI routes, dependencies, middleware and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses

Design Decisions:
    - Thin routes delegate to MemoResource; no business logic in handlers
"""
