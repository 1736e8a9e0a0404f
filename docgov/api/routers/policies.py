"""Policy API endpoints."""

from typing import List

from fastapi import APIRouter, Depends

from docgov.api.deps import (
    CurrentUser,
    get_acceptance_tracker,
    get_current_user,
    get_document_service,
)
from docgov.api.schemas import DocumentResponse, PolicyAcceptanceResponse
from docgov.core.entities import POLICY_CATEGORY
from docgov.core.rbac import REVIEWER_ROLES, require_role
from docgov.services import DocumentService, PolicyAcceptanceTracker

router = APIRouter(prefix="/policies", tags=["policies"])


@router.get("", response_model=List[DocumentResponse])
async def list_policies(
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """List documents in the policy category."""
    return service.list_documents(category=POLICY_CATEGORY)


@router.post("/{document_id}/accept", response_model=PolicyAcceptanceResponse)
async def accept_policy(
    document_id: int,
    tracker: PolicyAcceptanceTracker = Depends(get_acceptance_tracker),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Accept an approved policy; repeated calls return the same record."""
    return tracker.accept(current_user.id, document_id)


@router.get("/{document_id}/acceptances", response_model=List[PolicyAcceptanceResponse])
async def list_acceptances(
    document_id: int,
    tracker: PolicyAcceptanceTracker = Depends(get_acceptance_tracker),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_role(current_user.role, REVIEWER_ROLES, "viewing policy acceptances")
    return tracker.list_for_policy(document_id)
