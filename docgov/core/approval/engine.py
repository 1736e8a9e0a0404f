"""Approval workflow engine.

Orchestrates submission fan-out and decision aggregation on top of the
workflow stores:

- ``submit`` moves an entity to PENDING and creates one pending approval per
  eligible approver, as a single all-or-nothing unit.
- ``decide`` records one approver's vote (the primary write), then updates
  the derived entity status and the activity log as best-effort secondary
  effects.

Submissions and decisions touching the same entity are serialized through a
per-entity lock, so the read-all-votes / write-entity-status step of two
concurrent decisions cannot interleave.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..clock import utcnow
from ..entities import Approval, EntityRef, Task
from ..errors import (
    DependencyFailureError,
    InvalidStateError,
    NoEligibleApproversError,
    NotFoundError,
    ValidationError,
    WorkflowError,
)
from ..rbac.roles import approver_roles_for
from .effects import EffectSkipped, SecondaryEffect, run_secondary_effects
from .locks import ENTITY_LOCKS, KeyedLock
from .machine import EntityStateMachine
from .states import (
    ApprovalStatus,
    DECISION_STATUSES,
    EntityStatus,
    EntityType,
    UNDECIDED_STATUSES,
    target_for_decision,
)

logger = logging.getLogger(__name__)


@dataclass
class Submission:
    """Result of a successful submission."""

    entity: EntityRef
    submission_round: int
    approvals: List[Approval] = field(default_factory=list)

    @property
    def approver_ids(self) -> List[int]:
        return [a.user_id for a in self.approvals]


class ApprovalWorkflowEngine:
    """
    Fans out approval requests and aggregates decisions into entity status.

    The engine trusts its caller to have authorized the actor; see
    ``docgov.core.rbac.checker`` for the checks the API layer applies.
    """

    def __init__(
        self,
        stores,
        *,
        locks: Optional[KeyedLock] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the engine.

        Args:
            stores: WorkflowStores bundle to read and write
            locks: Per-entity lock registry (defaults to the process-wide one)
            clock: Source of timestamps for decisions
        """
        self.stores = stores
        self._locks = locks if locks is not None else ENTITY_LOCKS
        self._clock = clock

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    def submit(self, entity_type: EntityType, entity_id: int, actor_id: int) -> Submission:
        """
        Submit an entity for approval.

        Moves the entity to PENDING, creates one pending approval per user
        holding one of the entity type's approver roles, and records a
        ``submit`` activity. Either all of these happen or none do.

        Returns:
            The submission with its round number and created approvals

        Raises:
            ValidationError: If the entity type is unknown
            NotFoundError: If the entity does not exist
            InvalidStateError: If the entity's status does not allow submission
            NoEligibleApproversError: If nobody holds an approver role
            DependencyFailureError: If a store or the role directory fails
        """
        ref = self._make_ref(entity_type, entity_id)

        with self._locks.hold(ref):
            with self.stores.transaction():
                submission = self._submit_locked(ref, actor_id)

        logger.info(
            f"Submitted {ref} for approval round {submission.submission_round} "
            f"to {len(submission.approvals)} approver(s)",
            extra={"entity_type": ref.entity_type.value, "entity_id": ref.entity_id},
        )
        return submission

    def _submit_locked(self, ref: EntityRef, actor_id: int) -> Submission:
        entity = self.stores.entities.get(ref, for_update=True)
        if entity is None:
            raise NotFoundError(ref.entity_type.value, ref.entity_id)

        machine = EntityStateMachine(ref.entity_type, ref.entity_id, entity.status)
        if not machine.can_submit:
            raise InvalidStateError(
                f"{ref.entity_type.value.capitalize()} {ref.entity_id} cannot be "
                f"submitted from status {machine.status.value}"
            )

        existing = self.stores.approvals.list_by_entity(ref)
        current_round = max((a.submission_round for a in existing), default=0)
        if isinstance(entity, Task):
            latest = [a for a in existing if a.submission_round == current_round]
            # A vetoed round is closed; its remaining votes can no longer matter
            vetoed = any(a.status == ApprovalStatus.REJECTED for a in latest)
            outstanding = [a for a in latest if a.status in UNDECIDED_STATUSES]
            if outstanding and not vetoed:
                raise InvalidStateError(
                    f"Task {ref.entity_id} is already awaiting "
                    f"{len(outstanding)} approval(s)"
                )

        approver_ids = self._eligible_approvers(ref.entity_type)
        if not approver_ids:
            raise NoEligibleApproversError(
                f"No users hold an approver role for {ref.entity_type.value}s; "
                f"{ref} would never leave pending"
            )

        previous_status = machine.status
        machine.submit(user_id=actor_id)
        new_round = current_round + 1
        created: List[Approval] = []

        try:
            self.stores.entities.update(ref, status=machine.status)
            for user_id in approver_ids:
                created.append(
                    self.stores.approvals.create(ref, user_id, submission_round=new_round)
                )
            self.stores.activities.append(
                actor_id,
                "submit",
                ref.entity_type.value,
                ref.entity_id,
                {"title": entity.title, "round": new_round, "approvers": approver_ids},
            )
        except Exception as e:
            if not self.stores.transactional:
                self._compensate_submission(ref, previous_status, created)
            if isinstance(e, WorkflowError):
                raise
            raise DependencyFailureError(f"Submission of {ref} failed: {e}") from e

        return Submission(entity=ref, submission_round=new_round, approvals=created)

    def _eligible_approvers(self, entity_type: EntityType) -> List[int]:
        roles = sorted(r.value for r in approver_roles_for(entity_type))
        try:
            user_ids = self.stores.roles.users_with_roles(roles)
        except WorkflowError:
            raise
        except Exception as e:
            raise DependencyFailureError(f"Role directory lookup failed: {e}") from e
        # Preserve order, drop duplicates
        return list(dict.fromkeys(user_ids))

    def _compensate_submission(
        self,
        ref: EntityRef,
        previous_status: EntityStatus,
        created: List[Approval],
    ) -> None:
        """Undo a partial fan-out on stores without transactions."""
        extra = {"entity_type": ref.entity_type.value, "entity_id": ref.entity_id}
        for approval in created:
            try:
                self.stores.approvals.delete(approval.id)
            except Exception:
                logger.exception(
                    f"Could not remove approval {approval.id} while undoing submission of {ref}",
                    extra=extra,
                )
        try:
            self.stores.entities.update(ref, status=previous_status)
        except Exception:
            logger.exception(
                f"Could not restore {ref} to {previous_status.value} after failed submission",
                extra=extra,
            )
        else:
            logger.warning(
                f"Rolled back submission of {ref}; removed {len(created)} approval(s)",
                extra=extra,
            )

    # ------------------------------------------------------------------
    # Decision
    # ------------------------------------------------------------------

    def decide(
        self,
        approval_id: int,
        status: ApprovalStatus,
        comments: Optional[str] = None,
        actor_id: Optional[int] = None,
    ) -> Approval:
        """
        Record an approver's decision.

        The approval row is updated first and that write alone defines
        success. Afterwards, as independent best-effort effects:

        - approved: if every approval of the entity's latest round is now
          approved, the entity becomes approved (tasks: completed)
        - rejected: the entity becomes rejected (tasks: pending)
        - in_progress: the entity becomes in_progress
        - one activity entry is written

        Failures of those effects are logged and never raised.

        Returns:
            The updated approval

        Raises:
            ValidationError: If ``status`` is not a decision status
            NotFoundError: If the approval does not exist
            DependencyFailureError: If the approval cannot be written
        """
        decision = self._parse_decision(status)

        approval = self.stores.approvals.get(approval_id)
        if approval is None:
            raise NotFoundError("approval", approval_id)
        ref = approval.entity
        actor = actor_id if actor_id is not None else approval.user_id

        with self._locks.hold(ref):
            with self.stores.transaction():
                current = self.stores.approvals.get(approval_id, for_update=True)
                if current is None:
                    raise NotFoundError("approval", approval_id)
                updated = self.stores.approvals.update(
                    approval_id,
                    status=decision,
                    comments=comments,
                    approved_at=self._clock(),
                )

            logger.info(
                f"Approval {approval_id} on {ref} recorded as {decision.value}",
                extra={"approval_id": approval_id, "entity_type": ref.entity_type.value,
                       "entity_id": ref.entity_id},
            )

            run_secondary_effects(
                self._decision_effects(updated, decision, actor),
                context={
                    "approval_id": approval_id,
                    "entity_type": ref.entity_type.value,
                    "entity_id": ref.entity_id,
                },
            )

        return updated

    def _parse_decision(self, status) -> ApprovalStatus:
        try:
            decision = ApprovalStatus(getattr(status, "value", status))
        except ValueError:
            decision = None
        if decision not in DECISION_STATUSES:
            raise ValidationError(
                f"Invalid decision status {status!r}; expected one of "
                f"{sorted(s.value for s in DECISION_STATUSES)}"
            )
        return decision

    def _decision_effects(
        self,
        approval: Approval,
        decision: ApprovalStatus,
        actor_id: int,
    ) -> List[SecondaryEffect]:
        # Shared between the effects: what the status effect learned about the entity
        seen: Dict[str, Any] = {}

        def update_entity_status():
            with self.stores.transaction():
                self._aggregate(approval, decision, actor_id, seen)

        def log_activity():
            if seen.get("missing"):
                raise EffectSkipped(f"{approval.entity} no longer exists")
            details: Dict[str, Any] = {
                "approval_id": approval.id,
                "round": approval.submission_round,
                "comments": approval.comments,
            }
            if "title" in seen:
                details["title"] = seen["title"]
            if "status" in seen:
                details["entity_status"] = seen["status"]
            with self.stores.transaction():
                self.stores.activities.append(
                    actor_id,
                    decision.value,
                    approval.entity_type.value,
                    approval.entity_id,
                    details,
                )

        return [
            SecondaryEffect("entity_status", update_entity_status),
            SecondaryEffect("activity", log_activity),
        ]

    def _aggregate(
        self,
        approval: Approval,
        decision: ApprovalStatus,
        actor_id: int,
        seen: Dict[str, Any],
    ) -> None:
        """Project the votes of the latest round onto the entity's status."""
        ref = approval.entity
        entity = self.stores.entities.get(ref, for_update=True)
        if entity is None:
            seen["missing"] = True
            raise EffectSkipped(f"{ref} no longer exists")
        seen["title"] = entity.title
        seen["status"] = EntityStatus(entity.status).value

        machine = EntityStateMachine(ref.entity_type, ref.entity_id, entity.status)
        if machine.is_terminal:
            raise EffectSkipped(f"{ref} is {machine.status.value} and can no longer change")

        votes = self.stores.approvals.list_by_entity(ref)
        latest_round = max((a.submission_round for a in votes), default=approval.submission_round)
        if approval.submission_round != latest_round:
            raise EffectSkipped(
                f"approval {approval.id} belongs to round {approval.submission_round}, "
                f"{ref} is in round {latest_round}"
            )

        if decision == ApprovalStatus.APPROVED:
            current = [a for a in votes if a.submission_round == latest_round]
            waiting = [
                a for a in current
                if a.status != ApprovalStatus.APPROVED and a.id != approval.id
            ]
            if waiting:
                logger.info(
                    f"{ref} awaits {len(waiting)} more approval(s) in round {latest_round}",
                    extra={"entity_type": ref.entity_type.value, "entity_id": ref.entity_id},
                )
                return

        target = target_for_decision(ref.entity_type, decision)
        if target == machine.status:
            return
        if not machine.can_move_to(target):
            raise EffectSkipped(
                f"{ref} cannot move from {machine.status.value} to {target.value}"
            )

        machine.transition(target, user_id=actor_id)
        changes: Dict[str, Any] = {"status": machine.status}
        if isinstance(entity, Task) and machine.status == EntityStatus.COMPLETED:
            changes["completed_at"] = self._clock()
        self.stores.entities.update(ref, **changes)
        seen["status"] = machine.status.value

        logger.info(
            f"{ref} moved to {machine.status.value} after approval {approval.id}",
            extra={"entity_type": ref.entity_type.value, "entity_id": ref.entity_id},
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _make_ref(entity_type, entity_id: int) -> EntityRef:
        try:
            return EntityRef(EntityType(getattr(entity_type, "value", entity_type)), int(entity_id))
        except (TypeError, ValueError):
            raise ValidationError(f"Unknown entity reference {entity_type}:{entity_id}")
