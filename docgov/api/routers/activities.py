"""Activity feed API endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from docgov.api.deps import CurrentUser, get_current_user, get_stores
from docgov.api.schemas import ActivityResponse
from docgov.core.config import get_settings
from docgov.stores import WorkflowStores

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("", response_model=List[ActivityResponse])
async def recent_activity(
    limit: Optional[int] = Query(None, ge=1, le=500),
    stores: WorkflowStores = Depends(get_stores),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Most recent activities, newest first."""
    return stores.activities.recent(limit or get_settings().recent_activity_limit)


@router.get("/{entity_type}/{entity_id}", response_model=List[ActivityResponse])
async def entity_activity(
    entity_type: str,
    entity_id: int,
    stores: WorkflowStores = Depends(get_stores),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Audit trail of one entity, oldest first."""
    return stores.activities.list_for_entity(entity_type, entity_id)
