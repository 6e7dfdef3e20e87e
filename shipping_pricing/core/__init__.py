"""Core Layer — pure pricing logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure and deterministic

Design Decisions:
    - Functional core separated from imperative shell: stores do IO, the engine composes
"""
