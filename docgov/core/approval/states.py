"""Approval workflow states and per-variant transition tables.

State Machine Diagram (documents and policies):

    ┌──────────┐  submit   ┌──────────┐  all approvers approve  ┌──────────┐
    │  DRAFT   │──────────►│ PENDING  │────────────────────────►│ APPROVED │
    └──────────┘           └────┬─────┘                         └──────────┘
                                │   ▲                              (terminal)
               any approver     │   │ submit (resubmit)
               rejects          ▼   │
                           ┌────────┴─┐
                           │ REJECTED │
                           └──────────┘

    PENDING --any approver marks in_progress--> IN_PROGRESS
    IN_PROGRESS behaves like PENDING for approval and rejection.

Tasks use the same shape but unanimity lands in COMPLETED and a veto sends
the task back to PENDING instead of REJECTED. CANCELED is set outside the
approval workflow and, like COMPLETED, is terminal.
"""

from enum import Enum
from typing import Dict, FrozenSet, NamedTuple


class EntityType(str, Enum):
    """Variants of entity that can go through the approval workflow."""

    DOCUMENT = "document"
    TASK = "task"
    POLICY = "policy"


class EntityStatus(str, Enum):
    """Status values an entity can hold."""

    DRAFT = "draft"
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"

    # Task-only lifecycle states
    COMPLETED = "completed"
    CANCELED = "canceled"


class ApprovalStatus(str, Enum):
    """Status of a single approver's vote."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    APPROVED = "approved"
    REJECTED = "rejected"


# Statuses an approver may record through a decision
DECISION_STATUSES: FrozenSet[ApprovalStatus] = frozenset({
    ApprovalStatus.APPROVED,
    ApprovalStatus.REJECTED,
    ApprovalStatus.IN_PROGRESS,
})

# Votes that still await a final answer
UNDECIDED_STATUSES: FrozenSet[ApprovalStatus] = frozenset({
    ApprovalStatus.PENDING,
    ApprovalStatus.IN_PROGRESS,
})


class WorkflowProfile(NamedTuple):
    """How one entity variant moves through the workflow."""
    entity_type: EntityType
    approved_status: EntityStatus
    rejected_status: EntityStatus
    submittable: FrozenSet[EntityStatus]
    terminal: FrozenSet[EntityStatus]
    transitions: Dict[EntityStatus, FrozenSet[EntityStatus]]


_DOCUMENT_TRANSITIONS: Dict[EntityStatus, FrozenSet[EntityStatus]] = {
    EntityStatus.DRAFT: frozenset({EntityStatus.PENDING}),
    EntityStatus.PENDING: frozenset({
        EntityStatus.APPROVED,
        EntityStatus.REJECTED,
        EntityStatus.IN_PROGRESS,
    }),
    EntityStatus.IN_PROGRESS: frozenset({
        EntityStatus.APPROVED,
        EntityStatus.REJECTED,
    }),
    EntityStatus.REJECTED: frozenset({EntityStatus.PENDING}),
    EntityStatus.APPROVED: frozenset(),
}

_TASK_TRANSITIONS: Dict[EntityStatus, FrozenSet[EntityStatus]] = {
    EntityStatus.DRAFT: frozenset({EntityStatus.PENDING}),
    EntityStatus.PENDING: frozenset({
        EntityStatus.COMPLETED,
        EntityStatus.IN_PROGRESS,
    }),
    EntityStatus.IN_PROGRESS: frozenset({
        EntityStatus.COMPLETED,
        EntityStatus.PENDING,
    }),
    EntityStatus.COMPLETED: frozenset(),
    EntityStatus.CANCELED: frozenset(),
}


WORKFLOW_PROFILES: Dict[EntityType, WorkflowProfile] = {
    EntityType.DOCUMENT: WorkflowProfile(
        entity_type=EntityType.DOCUMENT,
        approved_status=EntityStatus.APPROVED,
        rejected_status=EntityStatus.REJECTED,
        submittable=frozenset({EntityStatus.DRAFT, EntityStatus.REJECTED}),
        terminal=frozenset({EntityStatus.APPROVED}),
        transitions=_DOCUMENT_TRANSITIONS,
    ),
    EntityType.POLICY: WorkflowProfile(
        entity_type=EntityType.POLICY,
        approved_status=EntityStatus.APPROVED,
        rejected_status=EntityStatus.REJECTED,
        submittable=frozenset({EntityStatus.DRAFT, EntityStatus.REJECTED}),
        terminal=frozenset({EntityStatus.APPROVED}),
        transitions=_DOCUMENT_TRANSITIONS,
    ),
    EntityType.TASK: WorkflowProfile(
        entity_type=EntityType.TASK,
        approved_status=EntityStatus.COMPLETED,
        rejected_status=EntityStatus.PENDING,
        # Tasks have no rejected status; a vetoed task sits in PENDING again
        submittable=frozenset({
            EntityStatus.DRAFT,
            EntityStatus.PENDING,
            EntityStatus.IN_PROGRESS,
        }),
        terminal=frozenset({EntityStatus.COMPLETED, EntityStatus.CANCELED}),
        transitions=_TASK_TRANSITIONS,
    ),
}


def get_profile(entity_type: EntityType) -> WorkflowProfile:
    """Get the workflow profile for an entity variant."""
    return WORKFLOW_PROFILES[EntityType(entity_type)]


def target_for_decision(entity_type: EntityType, decision: ApprovalStatus) -> EntityStatus:
    """Map a vote to the entity status it drives the entity towards."""
    profile = get_profile(entity_type)
    if decision == ApprovalStatus.APPROVED:
        return profile.approved_status
    if decision == ApprovalStatus.REJECTED:
        return profile.rejected_status
    return EntityStatus.IN_PROGRESS


def can_transition(entity_type: EntityType, from_status: EntityStatus, to_status: EntityStatus) -> bool:
    """Check if an entity variant may move between two statuses."""
    profile = get_profile(entity_type)
    if to_status == EntityStatus.PENDING and from_status in profile.submittable:
        return True
    return to_status in profile.transitions.get(from_status, frozenset())


def is_terminal(entity_type: EntityType, status: EntityStatus) -> bool:
    """Check if a status ends the workflow for an entity variant."""
    return EntityStatus(status) in get_profile(entity_type).terminal
