"""Tests for roles and permission checks."""

import pytest

from docgov.core.approval.states import EntityType
from docgov.core.errors import PermissionDeniedError
from docgov.core.rbac import (
    APPROVER_ROLES,
    DELETER_ROLES,
    Role,
    approver_roles_for,
    can_decide,
    can_delete,
    can_edit,
    can_review,
    can_submit,
    has_role,
    require_role,
)


class TestApproverRoles:
    """Test the fixed approver table."""

    def test_documents_and_tasks(self):
        """Test documents and tasks go to managers and coordinators."""
        assert approver_roles_for(EntityType.DOCUMENT) == {Role.MANAGER, Role.COORDINATOR}
        assert approver_roles_for(EntityType.TASK) == {Role.MANAGER, Role.COORDINATOR}

    def test_policies(self):
        """Test policies go to managers and admins."""
        assert approver_roles_for(EntityType.POLICY) == {Role.MANAGER, Role.ADMIN}

    def test_every_entity_type_mapped(self):
        assert set(APPROVER_ROLES) == set(EntityType)

    def test_lookup_by_value(self):
        assert approver_roles_for("policy") == APPROVER_ROLES[EntityType.POLICY]


class TestChecks:
    """Test permission helpers."""

    def test_has_role(self):
        assert has_role("manager", {Role.MANAGER})
        assert not has_role("analyst", {Role.MANAGER})
        assert not has_role(None, {Role.MANAGER})
        assert not has_role("superuser", {Role.MANAGER})

    def test_require_role(self):
        """Test require_role raises PermissionDeniedError."""
        require_role("admin", DELETER_ROLES, "deleting documents")

        with pytest.raises(PermissionDeniedError) as exc_info:
            require_role("analyst", DELETER_ROLES, "deleting documents")
        assert "deleting documents" in str(exc_info.value)
        assert exc_info.value.status_code == 403

    def test_can_submit(self):
        """Test owners and managers can submit."""
        assert can_submit(4, "analyst", owner_id=4)
        assert can_submit(2, "manager", owner_id=4)
        assert can_submit(1, "admin", owner_id=4)
        assert not can_submit(3, "coordinator", owner_id=4)
        assert not can_submit(5, "operator", owner_id=4)

    def test_can_decide(self):
        assert can_decide("manager")
        assert can_decide("coordinator")
        assert can_decide("admin")
        assert not can_decide("analyst")

    def test_can_edit(self):
        assert can_edit(4, "analyst", owner_id=4)
        assert can_edit(3, "coordinator", owner_id=4)
        assert not can_edit(5, "operator", owner_id=4)

    def test_can_delete(self):
        assert can_delete("admin")
        assert can_delete("manager")
        assert not can_delete("coordinator")

    def test_can_review(self):
        assert can_review("coordinator")
        assert not can_review("operator")
