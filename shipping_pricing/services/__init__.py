"""Services Layer — imperative shell around the pure pricing core.

Invariants:
    - Stores own all SQL; PricingService owns orchestration; core owns arithmetic and policy
    - Every store takes an explicit AsyncSession handle

Design Decisions:
    - Stores are plain classes (not module functions): one instance per request session
"""
