"""Permission checking utilities for docgov.

The engine trusts pre-authorized calls; these helpers are what the caller
layer uses to authorize them first.
"""

from typing import Iterable, Optional

from ..errors import PermissionDeniedError
from .roles import (
    DECIDER_ROLES,
    DELETER_ROLES,
    EDITOR_ROLES,
    REVIEWER_ROLES,
    SUBMITTER_ROLES,
    Role,
)


def has_role(role: Optional[str], allowed: Iterable[Role]) -> bool:
    """Check if a role string is one of the allowed roles."""
    if not role:
        return False
    try:
        return Role(role) in set(allowed)
    except ValueError:
        return False


def require_role(role: Optional[str], allowed: Iterable[Role], action: str) -> None:
    """
    Raise unless the role is one of the allowed roles.
    
    Raises:
        PermissionDeniedError: If the role is not allowed
    """
    if not has_role(role, allowed):
        raise PermissionDeniedError(f"Permission denied: {action} requires one of "
                                    f"{sorted(r.value for r in allowed)}")


def can_submit(user_id: int, role: Optional[str], owner_id: int) -> bool:
    """Owners may submit their own entities; managers and admins any entity."""
    return user_id == owner_id or has_role(role, SUBMITTER_ROLES)


def can_decide(role: Optional[str]) -> bool:
    return has_role(role, DECIDER_ROLES)


def can_edit(user_id: int, role: Optional[str], owner_id: int) -> bool:
    """Owners may edit their own documents; editors any document."""
    return user_id == owner_id or has_role(role, EDITOR_ROLES)


def can_delete(role: Optional[str]) -> bool:
    return has_role(role, DELETER_ROLES)


def can_review(role: Optional[str]) -> bool:
    return has_role(role, REVIEWER_ROLES)
