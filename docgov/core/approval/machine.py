"""Entity state machine.

Validates status transitions for one entity and keeps the history of the
transitions it performed.
"""

from typing import Any, Dict, Optional

from ..clock import utcnow
from ..errors import InvalidStateError
from .states import (
    EntityStatus,
    EntityType,
    can_transition,
    get_profile,
    is_terminal,
)


class TransitionError(InvalidStateError):
    """Raised when a status transition is invalid."""

    def __init__(self, message: str, from_status: EntityStatus, to_status: EntityStatus):
        super().__init__(message)
        self.from_status = from_status
        self.to_status = to_status


class EntityStateMachine:
    """
    State machine for one entity in the approval workflow.

    Manages transitions between entity statuses with:
    - Validation against the variant's transition table
    - Terminal status protection
    - Idempotent re-application of the current status
    - A local history of performed transitions
    """

    def __init__(
        self,
        entity_type: EntityType,
        entity_id: int,
        current_status: EntityStatus,
    ):
        """
        Initialize the state machine.

        Args:
            entity_type: Variant of the entity (document, task, policy)
            entity_id: ID of the entity
            current_status: Current status of the entity
        """
        self.entity_type = EntityType(entity_type)
        self.entity_id = entity_id
        self._status = EntityStatus(current_status)
        self._profile = get_profile(self.entity_type)
        self._transition_history: list[Dict[str, Any]] = []

    @property
    def status(self) -> EntityStatus:
        """Current status of the entity."""
        return self._status

    @property
    def is_terminal(self) -> bool:
        """Check if current status is terminal (no further transitions)."""
        return is_terminal(self.entity_type, self._status)

    @property
    def can_submit(self) -> bool:
        """Check if the entity may be (re)submitted for approval."""
        return self._status in self._profile.submittable

    def can_move_to(self, target: EntityStatus) -> bool:
        """Check if the entity can move to ``target`` (or already holds it)."""
        if self.is_terminal:
            return False
        if target == self._status:
            return True
        return can_transition(self.entity_type, self._status, EntityStatus(target))

    def submit(self, *, user_id: Optional[int] = None) -> EntityStatus:
        """
        Move the entity into PENDING for a new approval round.

        Raises:
            TransitionError: If the current status does not allow submission
        """
        if not self.can_submit:
            raise TransitionError(
                f"Cannot submit {self.entity_type.value} {self.entity_id} "
                f"from status {self._status.value}",
                self._status,
                EntityStatus.PENDING,
            )
        return self._apply(EntityStatus.PENDING, "submit", user_id)

    def transition(self, target: EntityStatus, *, user_id: Optional[int] = None) -> EntityStatus:
        """
        Move the entity to ``target``.

        Re-applying the current status is a no-op and is not recorded.

        Returns:
            The status after the transition

        Raises:
            TransitionError: If the transition is invalid or the entity is terminal
        """
        target = EntityStatus(target)
        if self.is_terminal:
            raise TransitionError(
                f"{self.entity_type.value.capitalize()} {self.entity_id} is "
                f"{self._status.value} and can no longer change",
                self._status,
                target,
            )
        if target == self._status:
            return self._status
        if not can_transition(self.entity_type, self._status, target):
            raise TransitionError(
                f"Cannot move {self.entity_type.value} {self.entity_id} "
                f"from {self._status.value} to {target.value}",
                self._status,
                target,
            )
        return self._apply(target, target.value, user_id)

    def get_history(self) -> list[Dict[str, Any]]:
        """Get the transitions performed by this machine."""
        return self._transition_history.copy()

    def _apply(self, target: EntityStatus, reason: str, user_id: Optional[int]) -> EntityStatus:
        self._transition_history.append({
            "entity_type": self.entity_type.value,
            "entity_id": self.entity_id,
            "from_status": self._status.value,
            "to_status": target.value,
            "reason": reason,
            "user_id": user_id,
            "timestamp": utcnow(),
        })
        self._status = target
        return self._status
