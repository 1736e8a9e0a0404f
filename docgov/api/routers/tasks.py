"""Task API endpoints."""

from typing import List

from fastapi import APIRouter, Depends, status

from docgov.api.deps import CurrentUser, get_current_user, get_document_service
from docgov.api.schemas import TaskCreate, TaskResponse, TaskStatusUpdate
from docgov.core.errors import PermissionDeniedError
from docgov.core.rbac import can_edit, can_review
from docgov.services import DocumentService

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("", response_model=List[TaskResponse])
async def list_tasks(
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """List all tasks for reviewers, otherwise the caller's assigned tasks."""
    if can_review(current_user.role):
        return service.list_tasks()
    return service.list_tasks(assigned_to=current_user.id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    data: TaskCreate,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.create_task(created_by=current_user.id, **data.model_dump())


@router.get("/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: int,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    return service.get_task(task_id)


@router.put("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: int,
    data: TaskStatusUpdate,
    service: DocumentService = Depends(get_document_service),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Set a task's status; allowed for the assignee and editors."""
    task = service.get_task(task_id)
    if not can_edit(current_user.id, current_user.role, task.assigned_to):
        raise PermissionDeniedError("Only the assignee or an editor can update this task")

    return service.set_task_status(task_id, data.status, current_user.id)
