"""Document management API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from docgov.api.deps import CurrentUser, get_current_user, get_document_service
from docgov.api.schemas import (
    DocumentCreate,
    DocumentResponse,
    DocumentUpdate,
    DocumentVersionResponse,
)
from docgov.core.errors import PermissionDeniedError
from docgov.core.rbac import DELETER_ROLES, can_edit, require_role
from docgov.services import DocumentService

router = APIRouter(prefix="/documents", tags=["documents"])


@router.get("", response_model=List[DocumentResponse])
async def list_documents(
    category: Optional[str] = None,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """List documents, optionally filtered by category."""
    return service.list_documents(category=category)


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    data: DocumentCreate,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Create a draft document owned by the caller."""
    return service.create_document(created_by=current_user.id, **data.model_dump())


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: int,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.get_document(document_id)


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: int,
    data: DocumentUpdate,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Edit a document; changed content bumps the minor version."""
    document = service.get_document(document_id)
    if not can_edit(current_user.id, current_user.role, document.created_by):
        raise PermissionDeniedError("Only the owner or an editor can modify this document")

    return service.update_document(
        document_id, current_user.id, **data.model_dump(exclude_unset=True)
    )


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: int,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    require_role(current_user.role, DELETER_ROLES, "deleting documents")
    service.delete_document(document_id, current_user.id)


@router.get("/{document_id}/versions", response_model=List[DocumentVersionResponse])
async def list_versions(
    document_id: int,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Version history of a document, oldest first."""
    service.get_document(document_id)
    return service.list_versions(document_id)
