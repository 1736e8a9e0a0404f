"""Tests for entity workflow states and per-variant profiles."""

from docgov.core.approval.states import (
    ApprovalStatus,
    DECISION_STATUSES,
    EntityStatus,
    EntityType,
    UNDECIDED_STATUSES,
    WORKFLOW_PROFILES,
    can_transition,
    get_profile,
    is_terminal,
    target_for_decision,
)


class TestStatusDefinitions:
    """Test status enums and status groups."""

    def test_all_entity_statuses_defined(self):
        """Test that all expected entity statuses exist."""
        expected = ["draft", "pending", "in_progress", "approved", "rejected", "completed", "canceled"]
        assert sorted(s.value for s in EntityStatus) == sorted(expected)

    def test_decision_statuses(self):
        """Test that pending is not a decision an approver can record."""
        assert ApprovalStatus.PENDING not in DECISION_STATUSES
        assert DECISION_STATUSES == {
            ApprovalStatus.APPROVED,
            ApprovalStatus.REJECTED,
            ApprovalStatus.IN_PROGRESS,
        }

    def test_undecided_statuses(self):
        """Test that in_progress votes still count as undecided."""
        assert UNDECIDED_STATUSES == {ApprovalStatus.PENDING, ApprovalStatus.IN_PROGRESS}

    def test_every_variant_has_a_profile(self):
        """Test that each entity type has a workflow profile."""
        assert set(WORKFLOW_PROFILES) == set(EntityType)
        for entity_type in EntityType:
            assert get_profile(entity_type).entity_type == entity_type

    def test_profile_lookup_accepts_strings(self):
        """Test profile lookup by raw value."""
        assert get_profile("task").approved_status == EntityStatus.COMPLETED


class TestDecisionTargets:
    """Test the status a vote drives each variant towards."""

    def test_document_targets(self):
        """Test document approve/reject/in_progress targets."""
        assert target_for_decision(EntityType.DOCUMENT, ApprovalStatus.APPROVED) == EntityStatus.APPROVED
        assert target_for_decision(EntityType.DOCUMENT, ApprovalStatus.REJECTED) == EntityStatus.REJECTED
        assert target_for_decision(EntityType.DOCUMENT, ApprovalStatus.IN_PROGRESS) == EntityStatus.IN_PROGRESS

    def test_policy_targets_match_documents(self):
        """Test policies share the document outcomes."""
        assert target_for_decision(EntityType.POLICY, ApprovalStatus.APPROVED) == EntityStatus.APPROVED
        assert target_for_decision(EntityType.POLICY, ApprovalStatus.REJECTED) == EntityStatus.REJECTED

    def test_task_targets(self):
        """Test tasks complete on unanimity and fall back to pending on veto."""
        assert target_for_decision(EntityType.TASK, ApprovalStatus.APPROVED) == EntityStatus.COMPLETED
        assert target_for_decision(EntityType.TASK, ApprovalStatus.REJECTED) == EntityStatus.PENDING
        assert target_for_decision(EntityType.TASK, ApprovalStatus.IN_PROGRESS) == EntityStatus.IN_PROGRESS


class TestTransitions:
    """Test the transition tables."""

    def test_document_transitions(self):
        """Test valid and invalid document transitions."""
        assert can_transition(EntityType.DOCUMENT, EntityStatus.DRAFT, EntityStatus.PENDING)
        assert can_transition(EntityType.DOCUMENT, EntityStatus.PENDING, EntityStatus.APPROVED)
        assert can_transition(EntityType.DOCUMENT, EntityStatus.PENDING, EntityStatus.IN_PROGRESS)
        assert can_transition(EntityType.DOCUMENT, EntityStatus.IN_PROGRESS, EntityStatus.REJECTED)
        assert can_transition(EntityType.DOCUMENT, EntityStatus.REJECTED, EntityStatus.PENDING)

        assert not can_transition(EntityType.DOCUMENT, EntityStatus.DRAFT, EntityStatus.APPROVED)
        assert not can_transition(EntityType.DOCUMENT, EntityStatus.APPROVED, EntityStatus.PENDING)
        assert not can_transition(EntityType.DOCUMENT, EntityStatus.REJECTED, EntityStatus.APPROVED)
        assert not can_transition(EntityType.DOCUMENT, EntityStatus.PENDING, EntityStatus.COMPLETED)

    def test_task_transitions(self):
        """Test valid and invalid task transitions."""
        assert can_transition(EntityType.TASK, EntityStatus.PENDING, EntityStatus.COMPLETED)
        assert can_transition(EntityType.TASK, EntityStatus.IN_PROGRESS, EntityStatus.PENDING)
        assert can_transition(EntityType.TASK, EntityStatus.IN_PROGRESS, EntityStatus.COMPLETED)

        assert not can_transition(EntityType.TASK, EntityStatus.PENDING, EntityStatus.REJECTED)
        assert not can_transition(EntityType.TASK, EntityStatus.PENDING, EntityStatus.APPROVED)
        assert not can_transition(EntityType.TASK, EntityStatus.COMPLETED, EntityStatus.PENDING)

    def test_terminal_statuses(self):
        """Test terminal status per variant."""
        assert is_terminal(EntityType.DOCUMENT, EntityStatus.APPROVED)
        assert is_terminal(EntityType.POLICY, EntityStatus.APPROVED)
        assert not is_terminal(EntityType.DOCUMENT, EntityStatus.REJECTED)

        assert is_terminal(EntityType.TASK, EntityStatus.COMPLETED)
        assert is_terminal(EntityType.TASK, EntityStatus.CANCELED)
        assert not is_terminal(EntityType.TASK, EntityStatus.PENDING)
