"""Pydantic Schemas — request/response validation for the memo API.

Invariants:
    - Schemas validate at system boundary (payloads, query strings, responses)

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
