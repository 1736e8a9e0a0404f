"""Tests for concurrent decisions and submissions on one entity."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from docgov.core.approval.engine import ApprovalWorkflowEngine
from docgov.core.approval.states import ApprovalStatus, EntityStatus, EntityType
from docgov.core.errors import InvalidStateError

from tests.factories import ANALYST, make_document


def _slow(method, delay=0.005):
    """Wrap a store method so concurrent callers overlap inside it."""
    def wrapper(*args, **kwargs):
        result = method(*args, **kwargs)
        time.sleep(delay)
        return result
    return wrapper


class TestConcurrentDecisions:

    def test_last_concurrent_approval_approves(self, stores, locks):
        """Test unanimity is observed even when every approver decides at once."""
        for user_id in range(6, 16):
            stores.roles.assign(user_id, "coordinator")
        doc = make_document(stores)
        engine = ApprovalWorkflowEngine(stores, locks=locks)
        submission = engine.submit(EntityType.DOCUMENT, doc.id, ANALYST)
        assert len(submission.approvals) == 12

        stores.approvals.list_by_entity = _slow(stores.approvals.list_by_entity)
        barrier = threading.Barrier(len(submission.approvals))

        def decide(approval):
            barrier.wait()
            # One engine per caller, as the API builds them per request
            ApprovalWorkflowEngine(stores, locks=locks).decide(
                approval.id, ApprovalStatus.APPROVED, None, approval.user_id
            )

        with ThreadPoolExecutor(max_workers=len(submission.approvals)) as pool:
            list(pool.map(decide, submission.approvals))

        assert stores.entities.get_document(doc.id).status == EntityStatus.APPROVED
        decisions = [a for a in stores.activities.recent(100) if a.action == "approved"]
        assert len(decisions) == 12

    def test_concurrent_veto_and_approvals(self, stores, locks):
        """Test a veto racing with approvals always leaves the document rejected."""
        for user_id in range(6, 10):
            stores.roles.assign(user_id, "manager")
        doc = make_document(stores)
        engine = ApprovalWorkflowEngine(stores, locks=locks)
        submission = engine.submit(EntityType.DOCUMENT, doc.id, ANALYST)
        veto = submission.approvals[-1]
        barrier = threading.Barrier(len(submission.approvals))

        def decide(approval):
            barrier.wait()
            status = ApprovalStatus.REJECTED if approval.id == veto.id else ApprovalStatus.APPROVED
            engine.decide(approval.id, status, None, approval.user_id)

        with ThreadPoolExecutor(max_workers=len(submission.approvals)) as pool:
            list(pool.map(decide, submission.approvals))

        assert stores.entities.get_document(doc.id).status == EntityStatus.REJECTED


class TestConcurrentSubmissions:

    def test_only_one_submission_wins(self, stores, locks):
        """Test two simultaneous submissions of one draft fan out once."""
        doc = make_document(stores)
        barrier = threading.Barrier(2)
        errors = []

        def submit():
            barrier.wait()
            try:
                ApprovalWorkflowEngine(stores, locks=locks).submit(EntityType.DOCUMENT, doc.id, ANALYST)
            except InvalidStateError as e:
                errors.append(e)

        threads = [threading.Thread(target=submit) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(errors) == 1
        assert len(stores.approvals.list_by_entity(doc.ref)) == 2
        assert stores.entities.get_document(doc.id).status == EntityStatus.PENDING
