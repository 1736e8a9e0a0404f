"""Role-based access control for docgov."""

from .roles import (
    Role,
    APPROVER_ROLES,
    DECIDER_ROLES,
    DELETER_ROLES,
    EDITOR_ROLES,
    REVIEWER_ROLES,
    SUBMITTER_ROLES,
    approver_roles_for,
)
from .checker import (
    has_role,
    require_role,
    can_submit,
    can_decide,
    can_edit,
    can_delete,
    can_review,
)

__all__ = [
    "Role",
    "APPROVER_ROLES",
    "DECIDER_ROLES",
    "DELETER_ROLES",
    "EDITOR_ROLES",
    "REVIEWER_ROLES",
    "SUBMITTER_ROLES",
    "approver_roles_for",
    "has_role",
    "require_role",
    "can_submit",
    "can_decide",
    "can_edit",
    "can_delete",
    "can_review",
]
