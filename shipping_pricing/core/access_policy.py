"""Access Policy — single decision point for whose adjustment an operation touches.

Invariants:
    - resolve_target is the ONLY place the admin/explicit-target branch exists
    - Admin + explicit target -> (target, ADMIN); everything else -> (caller, USER)
    - A non-admin's explicit target is ignored, never honoured
    - An admin without an explicit target writes their own USER component, never ADMIN

Design Decisions:
    - Returns a frozen dataclass (not a tuple): call sites read .target_user_id / .role
    - Authentication is upstream: is_admin arrives as a plain bool
"""

from dataclasses import dataclass

from shipping_pricing.core.domain_types import AdjustmentRole, UserId
from shipping_pricing.core.enforce_pricing import require_user_id


@dataclass(frozen=True)
class TargetScope:
    """Which user an operation targets and which adjustment field it may write."""
    target_user_id: UserId
    role: AdjustmentRole

    @property
    def is_delegated(self) -> bool:
        """True when an admin acts on someone else's behalf."""
        return self.role is AdjustmentRole.ADMIN


def resolve_target(
    current_user_id: str | None,
    is_admin: bool,
    explicit_target_user_id: str | None = None,
) -> TargetScope:
    """Resolve target user and writable role for a read or write."""
    caller = require_user_id(current_user_id)
    target = (explicit_target_user_id or "").strip()
    if is_admin and target:
        target = require_user_id(target, "target_user_id")
        return TargetScope(UserId(target), AdjustmentRole.ADMIN)
    return TargetScope(UserId(caller), AdjustmentRole.USER)


def resolve_listing_scope(
    current_user_id: str | None,
    is_admin: bool,
    explicit_target_user_id: str | None = None,
) -> UserId | None:
    """Scope for multi-user listings. None means every user (admin-wide view)."""
    scope = resolve_target(current_user_id, is_admin, explicit_target_user_id)
    if is_admin and not scope.is_delegated:
        return None
    return scope.target_user_id
