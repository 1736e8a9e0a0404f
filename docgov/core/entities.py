"""Record types shared by the stores, the engine and the services.

Approvals point at exactly one entity through an ``EntityRef``, a tagged
reference of (variant, id). Policies are documents whose category is
``policy``; they live in the document table but are referenced with the
``policy`` tag.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .approval.states import ApprovalStatus, EntityStatus, EntityType
from .clock import utcnow


POLICY_CATEGORY = "policy"


@dataclass(frozen=True)
class EntityRef:
    """Reference to one entity of one variant."""

    entity_type: EntityType
    entity_id: int

    def __post_init__(self):
        object.__setattr__(self, "entity_type", EntityType(self.entity_type))

    @classmethod
    def document(cls, entity_id: int) -> "EntityRef":
        return cls(EntityType.DOCUMENT, entity_id)

    @classmethod
    def task(cls, entity_id: int) -> "EntityRef":
        return cls(EntityType.TASK, entity_id)

    @classmethod
    def policy(cls, entity_id: int) -> "EntityRef":
        return cls(EntityType.POLICY, entity_id)

    @property
    def is_document_backed(self) -> bool:
        """Documents and policies share storage and version history."""
        return self.entity_type in (EntityType.DOCUMENT, EntityType.POLICY)

    def __str__(self) -> str:
        return f"{self.entity_type.value}:{self.entity_id}"


@dataclass
class Document:
    """A document or, when ``category == "policy"``, a policy."""

    id: int
    title: str
    content: str
    category: str
    department: str
    created_by: int
    status: EntityStatus = EntityStatus.DRAFT
    version: str = "1.0"
    description: Optional[str] = None
    file_url: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def is_policy(self) -> bool:
        return self.category == POLICY_CATEGORY

    @property
    def ref(self) -> EntityRef:
        if self.is_policy:
            return EntityRef.policy(self.id)
        return EntityRef.document(self.id)


@dataclass
class Task:
    """A unit of work assigned to a user."""

    id: int
    title: str
    assigned_to: int
    created_by: int
    priority: str = "medium"
    status: EntityStatus = EntityStatus.PENDING
    description: Optional[str] = None
    document_id: Optional[int] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utcnow)

    @property
    def ref(self) -> EntityRef:
        return EntityRef.task(self.id)


Entity = Union[Document, Task]


@dataclass
class Approval:
    """One approver's vote on one entity for one submission round."""

    id: int
    entity: EntityRef
    user_id: int
    status: ApprovalStatus = ApprovalStatus.PENDING
    submission_round: int = 1
    comments: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    approved_at: Optional[datetime] = None

    @property
    def entity_type(self) -> EntityType:
        return self.entity.entity_type

    @property
    def entity_id(self) -> int:
        return self.entity.entity_id


@dataclass(frozen=True)
class DocumentVersion:
    """Immutable content snapshot of a document."""

    id: int
    document_id: int
    version: str
    content: str
    created_by: int
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class Activity:
    """Immutable audit entry."""

    id: int
    user_id: int
    action: str
    entity_type: str
    entity_id: int
    details: Optional[Dict[str, Any]] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class PolicyAcceptance:
    """A user's acknowledgement of an approved policy."""

    id: int
    user_id: int
    document_id: int
    accepted_at: datetime = field(default_factory=utcnow)
