"""Shipping Pricing Package — per-city, per-auction shipping quotes with layered adjustments.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
