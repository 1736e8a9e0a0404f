"""Tests for the in-memory stores."""

import pytest

from docgov.core.approval.states import ApprovalStatus, EntityStatus, EntityType
from docgov.core.entities import EntityRef
from docgov.core.errors import NotFoundError, ValidationError

from tests.factories import MANAGER, make_document, make_policy, make_task


class TestEntityStore:

    def test_ref_resolution(self, stores):
        """Test document and policy tags only resolve matching documents."""
        doc = make_document(stores)
        policy = make_policy(stores)
        task = make_task(stores)

        assert stores.entities.get(EntityRef.document(doc.id)).id == doc.id
        assert stores.entities.get(EntityRef.policy(doc.id)) is None
        assert stores.entities.get(EntityRef.policy(policy.id)).id == policy.id
        assert stores.entities.get(EntityRef.document(policy.id)) is None
        assert stores.entities.get(EntityRef.task(task.id)).id == task.id

    def test_returned_records_are_copies(self, stores):
        doc = make_document(stores)

        fetched = stores.entities.get_document(doc.id)
        fetched.status = EntityStatus.APPROVED

        assert stores.entities.get_document(doc.id).status == EntityStatus.DRAFT

    def test_update(self, stores):
        doc = make_document(stores)

        updated = stores.entities.update(doc.ref, status="pending", title="New")

        assert updated.status == EntityStatus.PENDING
        assert updated.title == "New"
        assert updated.updated_at >= doc.updated_at

    @pytest.mark.parametrize("field", ["id", "created_by", "created_at", "nonsense"])
    def test_update_rejects_field(self, stores, field):
        doc = make_document(stores)

        with pytest.raises(ValidationError):
            stores.entities.update(doc.ref, **{field: 1})

    def test_update_missing(self, stores):
        with pytest.raises(NotFoundError):
            stores.entities.update(EntityRef.task(3), status="completed")

    def test_ids_not_reused(self, stores):
        first = make_document(stores)
        stores.entities.delete(first.ref)

        assert make_document(stores).id != first.id


class TestApprovalStore:

    def test_list_by_entity(self, stores):
        ref = EntityRef.document(1)
        other = EntityRef.task(1)
        stores.approvals.create(ref, 2)
        stores.approvals.create(other, 2)
        stores.approvals.create(ref, 3, submission_round=2)

        approvals = stores.approvals.list_by_entity(ref)

        assert [(a.user_id, a.submission_round) for a in approvals] == [(2, 1), (3, 2)]
        assert len(stores.approvals.list_by_approver(2)) == 2
        assert len(stores.approvals.list_all(entity_type=EntityType.TASK)) == 1

    def test_update_status(self, stores):
        approval = stores.approvals.create(EntityRef.policy(4), MANAGER)

        updated = stores.approvals.update(approval.id, status="approved", comments="ok")

        assert updated.status == ApprovalStatus.APPROVED
        assert updated.entity == EntityRef.policy(4)

    def test_update_missing(self, stores):
        with pytest.raises(NotFoundError):
            stores.approvals.update(9, status="approved")


class TestActivityLog:

    def test_recent_newest_first(self, stores):
        for n in range(25):
            stores.activities.append(1, "update", "document", n)

        recent = stores.activities.recent()

        assert len(recent) == 20
        assert recent[0].entity_id == 24
        assert [a.entity_id for a in stores.activities.recent(3)] == [24, 23, 22]

    def test_details_copied(self, stores):
        details = {"title": "A"}
        stores.activities.append(1, "create", EntityType.DOCUMENT, 1, details)
        details["title"] = "B"

        assert stores.activities.list_for_entity("document", 1)[0].details == {"title": "A"}


class TestRoleDirectory:

    def test_users_with_roles(self, stores):
        assert stores.roles.users_with_roles(["manager", "coordinator"]) == [2, 3]
        assert stores.roles.users_with_roles([]) == []

    def test_assign(self, stores):
        stores.roles.assign(9, "manager")

        assert stores.roles.role_of(9) == "manager"
        assert 9 in stores.roles.users_with_roles(["manager"])
        assert stores.roles.role_of(99) is None
