"""Tests for the entity state machine."""

import pytest

from docgov.core.approval.machine import EntityStateMachine, TransitionError
from docgov.core.approval.states import EntityStatus, EntityType
from docgov.core.errors import InvalidStateError


class TestEntityStateMachine:
    """Test state machine behavior."""

    def test_create_machine(self):
        """Test creating a state machine."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 7, EntityStatus.DRAFT)

        assert machine.status == EntityStatus.DRAFT
        assert machine.entity_id == 7
        assert not machine.is_terminal
        assert machine.can_submit

    def test_submit_from_draft(self):
        """Test submitting a draft document."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 1, EntityStatus.DRAFT)

        assert machine.submit(user_id=4) == EntityStatus.PENDING
        assert machine.status == EntityStatus.PENDING

    def test_resubmit_after_rejection(self):
        """Test a rejected document can be submitted again."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 1, EntityStatus.REJECTED)

        machine.submit()
        assert machine.status == EntityStatus.PENDING

    def test_cannot_submit_pending_document(self):
        """Test a pending document cannot be submitted twice."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 1, EntityStatus.PENDING)

        assert not machine.can_submit
        with pytest.raises(TransitionError) as exc_info:
            machine.submit()
        assert exc_info.value.from_status == EntityStatus.PENDING
        assert exc_info.value.to_status == EntityStatus.PENDING

    def test_cannot_submit_approved_policy(self):
        """Test an approved policy cannot be resubmitted."""
        machine = EntityStateMachine(EntityType.POLICY, 1, EntityStatus.APPROVED)

        with pytest.raises(InvalidStateError):
            machine.submit()

    def test_task_submittable_from_pending(self):
        """Test tasks may be submitted from pending since they have no rejected status."""
        machine = EntityStateMachine(EntityType.TASK, 1, EntityStatus.PENDING)

        assert machine.can_submit

    def test_transition(self):
        """Test a valid transition."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 1, EntityStatus.PENDING)

        assert machine.transition(EntityStatus.APPROVED, user_id=2) == EntityStatus.APPROVED
        assert machine.is_terminal

    def test_same_status_is_noop(self):
        """Test re-applying the current status is not recorded."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 1, EntityStatus.IN_PROGRESS)

        machine.transition(EntityStatus.IN_PROGRESS)
        assert machine.get_history() == []

    def test_invalid_transition(self):
        """Test an invalid transition raises TransitionError."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 1, EntityStatus.DRAFT)

        with pytest.raises(TransitionError):
            machine.transition(EntityStatus.APPROVED)
        assert machine.status == EntityStatus.DRAFT

    def test_terminal_cannot_transition(self):
        """Test a completed task can no longer change."""
        machine = EntityStateMachine(EntityType.TASK, 1, EntityStatus.COMPLETED)

        assert not machine.can_move_to(EntityStatus.PENDING)
        with pytest.raises(TransitionError):
            machine.transition(EntityStatus.PENDING)

    def test_can_move_to(self):
        """Test checking allowed targets."""
        machine = EntityStateMachine(EntityType.TASK, 1, EntityStatus.IN_PROGRESS)

        assert machine.can_move_to(EntityStatus.PENDING)
        assert machine.can_move_to(EntityStatus.COMPLETED)
        assert machine.can_move_to(EntityStatus.IN_PROGRESS)
        assert not machine.can_move_to(EntityStatus.REJECTED)

    def test_history_tracking(self):
        """Test that transition history is tracked."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 9, EntityStatus.DRAFT)

        machine.submit(user_id=4)
        machine.transition(EntityStatus.IN_PROGRESS, user_id=2)
        machine.transition(EntityStatus.REJECTED, user_id=3)

        history = machine.get_history()
        assert [h["to_status"] for h in history] == ["pending", "in_progress", "rejected"]
        assert history[0]["reason"] == "submit"
        assert history[0]["user_id"] == 4
        assert history[2]["from_status"] == "in_progress"
        assert all(h["entity_id"] == 9 for h in history)

    def test_history_is_a_copy(self):
        """Test callers cannot alter the recorded history."""
        machine = EntityStateMachine(EntityType.DOCUMENT, 1, EntityStatus.DRAFT)
        machine.submit()

        machine.get_history().clear()
        assert len(machine.get_history()) == 1
