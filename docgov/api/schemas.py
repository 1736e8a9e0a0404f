"""Request and response schemas for the DocGov API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from docgov.core.approval.states import ApprovalStatus, EntityStatus, EntityType


class ErrorResponse(BaseModel):
    """Body returned for every workflow error."""
    detail: str
    kind: str


# Documents
class DocumentBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = ""
    category: str = Field(..., min_length=1, max_length=100)
    department: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    file_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class DocumentCreate(DocumentBase):
    pass


class DocumentUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    department: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    file_url: Optional[str] = None
    tags: Optional[List[str]] = None


class DocumentResponse(DocumentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    status: EntityStatus
    version: str
    created_by: int
    created_at: datetime
    updated_at: datetime


class DocumentVersionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    document_id: int
    version: str
    content: str
    created_by: int
    created_at: datetime


# Tasks
class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    assigned_to: int
    priority: str = Field("medium", pattern="^(low|medium|high|urgent)$")
    description: Optional[str] = None
    document_id: Optional[int] = None
    due_date: Optional[datetime] = None


class TaskStatusUpdate(BaseModel):
    status: EntityStatus


class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    assigned_to: int
    created_by: int
    priority: str
    status: EntityStatus
    description: Optional[str]
    document_id: Optional[int]
    due_date: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime


# Approvals
class SubmitRequest(BaseModel):
    entity_type: EntityType
    entity_id: int


class DecisionRequest(BaseModel):
    # Left as a plain string so an unknown value reaches the engine's validation
    status: str
    comments: Optional[str] = None


class ApprovalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    entity_type: EntityType
    entity_id: int
    user_id: int
    status: ApprovalStatus
    submission_round: int
    comments: Optional[str]
    created_at: datetime
    approved_at: Optional[datetime]


class ApprovalWithEntityResponse(ApprovalResponse):
    # None when the entity was deleted or could not be loaded
    entity: Optional[Dict[str, Any]] = None


class ApprovalListResponse(BaseModel):
    items: List[ApprovalWithEntityResponse]
    total: int


class SubmissionResponse(BaseModel):
    entity_type: EntityType
    entity_id: int
    submission_round: int
    approvals: List[ApprovalResponse]


# Policies
class PolicyAcceptanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    document_id: int
    accepted_at: datetime


# Activity
class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    action: str
    entity_type: str
    entity_id: int
    details: Optional[Dict[str, Any]]
    created_at: datetime
