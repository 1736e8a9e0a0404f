"""Approval workflow API endpoints."""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, status

from docgov.api.deps import CurrentUser, get_current_user, get_engine, get_stores
from docgov.api.schemas import (
    ApprovalListResponse,
    ApprovalResponse,
    ApprovalWithEntityResponse,
    DecisionRequest,
    SubmissionResponse,
    SubmitRequest,
)
from docgov.core.approval.engine import ApprovalWorkflowEngine
from docgov.core.approval.states import EntityType
from docgov.core.entities import Approval, EntityRef, Task
from docgov.core.errors import NotFoundError, PermissionDeniedError, WorkflowError
from docgov.core.rbac import Role, can_decide, can_review, can_submit
from docgov.stores import WorkflowStores

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/approvals", tags=["approvals"])


def _entity_summary(stores: WorkflowStores, approval: Approval) -> Optional[dict]:
    """Resolve an approval's entity for display; None if it cannot be loaded."""
    try:
        entity = stores.entities.get(approval.entity)
    except WorkflowError as e:
        logger.warning(f"Could not load {approval.entity} for approval {approval.id}: {e}")
        return None
    if entity is None:
        return None

    summary = {
        "id": entity.id,
        "title": entity.title,
        "status": entity.status.value,
        "created_by": entity.created_by,
    }
    if isinstance(entity, Task):
        summary["assigned_to"] = entity.assigned_to
    else:
        summary["version"] = entity.version
        summary["category"] = entity.category
    return summary


def _with_entity(stores: WorkflowStores, approvals: List[Approval]) -> ApprovalListResponse:
    items = [
        ApprovalWithEntityResponse(
            **ApprovalResponse.model_validate(a).model_dump(),
            entity=_entity_summary(stores, a),
        )
        for a in approvals
    ]
    return ApprovalListResponse(items=items, total=len(items))


@router.get("", response_model=ApprovalListResponse)
async def list_approvals(
    entity_type: Optional[EntityType] = None,
    stores: WorkflowStores = Depends(get_stores),
    current_user: CurrentUser = Depends(get_current_user),
):
    """List approvals with their entities; non-reviewers only see their own."""
    if can_review(current_user.role):
        approvals = stores.approvals.list_all(entity_type=entity_type)
    else:
        approvals = [
            a for a in stores.approvals.list_by_approver(current_user.id)
            if entity_type is None or a.entity_type == entity_type
        ]
    return _with_entity(stores, approvals)


@router.get("/mine", response_model=ApprovalListResponse)
async def list_my_approvals(
    stores: WorkflowStores = Depends(get_stores),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Approvals addressed to the caller."""
    return _with_entity(stores, stores.approvals.list_by_approver(current_user.id))


@router.post("/submit", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def submit_for_approval(
    data: SubmitRequest,
    stores: WorkflowStores = Depends(get_stores),
    engine: ApprovalWorkflowEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Submit a document, task or policy for approval."""
    ref = EntityRef(data.entity_type, data.entity_id)
    entity = stores.entities.get(ref)
    if entity is None:
        raise NotFoundError(ref.entity_type.value, ref.entity_id)

    owners = {entity.created_by}
    if isinstance(entity, Task):
        owners.add(entity.assigned_to)
    if not any(can_submit(current_user.id, current_user.role, owner) for owner in owners):
        raise PermissionDeniedError(f"Not allowed to submit {ref}")

    submission = engine.submit(ref.entity_type, ref.entity_id, current_user.id)
    return SubmissionResponse(
        entity_type=submission.entity.entity_type,
        entity_id=submission.entity.entity_id,
        submission_round=submission.submission_round,
        approvals=[ApprovalResponse.model_validate(a) for a in submission.approvals],
    )


@router.post("/{approval_id}/decision", response_model=ApprovalResponse)
async def decide_approval(
    approval_id: int,
    data: DecisionRequest,
    stores: WorkflowStores = Depends(get_stores),
    engine: ApprovalWorkflowEngine = Depends(get_engine),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Record the caller's decision on an approval addressed to them."""
    if not can_decide(current_user.role):
        raise PermissionDeniedError("Permission denied: deciding approvals")

    approval = stores.approvals.get(approval_id)
    if approval is None:
        raise NotFoundError("approval", approval_id)
    if approval.user_id != current_user.id and current_user.role != Role.ADMIN.value:
        raise PermissionDeniedError(f"Approval {approval_id} is addressed to another user")

    return engine.decide(approval_id, data.status, data.comments, current_user.id)
