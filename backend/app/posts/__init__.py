"""
posts — the single persisted resource.

Sub-modules:
    models  — ORM table, API schema and store parameters
    store   — Querier protocol and its SQLAlchemy implementation
"""
