"""Approval workflow module for docgov.

Implements entity status transitions, submission fan-out and decision
aggregation. The engine lives in ``docgov.core.approval.engine``.
"""

from .states import (
    ApprovalStatus,
    EntityStatus,
    EntityType,
    WORKFLOW_PROFILES,
    get_profile,
)
from .machine import EntityStateMachine, TransitionError

__all__ = [
    "ApprovalStatus",
    "EntityStatus",
    "EntityType",
    "WORKFLOW_PROFILES",
    "get_profile",
    "EntityStateMachine",
    "TransitionError",
]
