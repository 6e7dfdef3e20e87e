"""Infrastructure Layer — database engine and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from core/ domain logic (errors excepted)
    - All database failures mapped to typed errors

Design Decisions:
    - Thin wrappers over SQLAlchemy and logging, one concern per module
"""
