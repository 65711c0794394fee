"""Services Layer — validation, query builder, mutation engine, resource facade.

Invariants:
    - Services depend on the MemoStore protocol, never on a concrete store
    - MemoResource is the only entry point routes should call

Design Decisions:
    - One file per component for locality (validation, query, mutation, facade)
"""
