"""Base classes for the workflow stores.

Defines the interfaces the engine and services depend on. Stores own
persistence only; status transition rules live in the engine.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from docgov.core.approval.states import ApprovalStatus, EntityType
from docgov.core.entities import (
    Activity,
    Approval,
    Document,
    DocumentVersion,
    Entity,
    EntityRef,
    PolicyAcceptance,
    Task,
)


class EntityStore(ABC):
    """Storage for documents (including policies) and tasks."""

    @abstractmethod
    def get_document(self, document_id: int, *, for_update: bool = False) -> Optional[Document]:
        """Get a document of any category by ID."""

    @abstractmethod
    def get_task(self, task_id: int, *, for_update: bool = False) -> Optional[Task]:
        """Get a task by ID."""

    @abstractmethod
    def create_document(self, **values: Any) -> Document:
        """Create a document; ``id`` and timestamps are assigned by the store."""

    @abstractmethod
    def create_task(self, **values: Any) -> Task:
        """Create a task; ``id`` and ``created_at`` are assigned by the store."""

    @abstractmethod
    def update(self, ref: EntityRef, **changes: Any) -> Entity:
        """Apply changes to an entity and return the stored result."""

    @abstractmethod
    def delete(self, ref: EntityRef) -> None:
        """Delete an entity."""

    @abstractmethod
    def list_documents(self, *, category: Optional[str] = None) -> List[Document]:
        """List documents, optionally restricted to one category."""

    @abstractmethod
    def list_tasks(self, *, assigned_to: Optional[int] = None) -> List[Task]:
        """List tasks, optionally restricted to one assignee."""

    def get(self, ref: EntityRef, *, for_update: bool = False) -> Optional[Entity]:
        """
        Resolve an entity reference.

        A ``policy`` reference only resolves to a document in the policy
        category, and a ``document`` reference never resolves to a policy.
        """
        if ref.entity_type == EntityType.TASK:
            return self.get_task(ref.entity_id, for_update=for_update)

        document = self.get_document(ref.entity_id, for_update=for_update)
        if document is None:
            return None
        if document.is_policy != (ref.entity_type == EntityType.POLICY):
            return None
        return document


class ApprovalStore(ABC):
    """Storage for approval records."""

    @abstractmethod
    def get(self, approval_id: int, *, for_update: bool = False) -> Optional[Approval]:
        """Get an approval by ID."""

    @abstractmethod
    def create(
        self,
        entity: EntityRef,
        user_id: int,
        *,
        status: ApprovalStatus = ApprovalStatus.PENDING,
        submission_round: int = 1,
    ) -> Approval:
        """Create a pending approval addressed to ``user_id``."""

    @abstractmethod
    def update(self, approval_id: int, **changes: Any) -> Approval:
        """Apply changes to an approval and return the stored result."""

    @abstractmethod
    def delete(self, approval_id: int) -> None:
        """Remove an approval; only used to compensate a failed fan-out."""

    @abstractmethod
    def list_by_entity(self, entity: EntityRef) -> List[Approval]:
        """All approvals for one entity, oldest first."""

    @abstractmethod
    def list_by_approver(self, user_id: int) -> List[Approval]:
        """All approvals addressed to one user, oldest first."""

    @abstractmethod
    def list_all(self, *, entity_type: Optional[EntityType] = None) -> List[Approval]:
        """All approvals, optionally restricted to one entity variant."""


class VersionStore(ABC):
    """Append-only storage of document content snapshots."""

    @abstractmethod
    def append(self, document_id: int, version: str, content: str, author_id: int) -> DocumentVersion:
        """Record a new snapshot."""

    @abstractmethod
    def list_for_document(self, document_id: int) -> List[DocumentVersion]:
        """Snapshots of one document, oldest first."""


class ActivityLog(ABC):
    """Append-only audit trail."""

    @abstractmethod
    def append(
        self,
        user_id: int,
        action: str,
        entity_type: str,
        entity_id: int,
        details: Optional[Dict[str, Any]] = None,
    ) -> Activity:
        """Record an activity."""

    @abstractmethod
    def recent(self, limit: int = 20) -> List[Activity]:
        """Most recent activities, newest first."""

    @abstractmethod
    def list_for_entity(self, entity_type: str, entity_id: int) -> List[Activity]:
        """Activities recorded against one entity, oldest first."""


class PolicyAcceptanceStore(ABC):
    """Storage for policy acknowledgements, unique per (user, document)."""

    @abstractmethod
    def get(self, user_id: int, document_id: int) -> Optional[PolicyAcceptance]:
        """Get the acceptance for a user/document pair."""

    @abstractmethod
    def get_or_create(self, user_id: int, document_id: int) -> Tuple[PolicyAcceptance, bool]:
        """
        Atomically fetch or create the acceptance for a user/document pair.

        Returns:
            Tuple of (acceptance, created)
        """

    @abstractmethod
    def list_by_document(self, document_id: int) -> List[PolicyAcceptance]:
        """Acceptances of one policy."""

    @abstractmethod
    def list_by_user(self, user_id: int) -> List[PolicyAcceptance]:
        """Acceptances recorded by one user."""


class RoleDirectory(ABC):
    """Answers which users hold which roles."""

    @abstractmethod
    def users_with_roles(self, roles: Iterable[str]) -> List[int]:
        """IDs of users holding any of ``roles``, ascending."""

    @abstractmethod
    def role_of(self, user_id: int) -> Optional[str]:
        """Role held by a user, or None if the user is unknown."""


@dataclass
class WorkflowStores:
    """
    The set of stores one engine invocation works against.

    ``transaction()`` delimits a unit of work. This base implementation has
    no multi-row transactions; persistent bundles override it.
    """

    entities: EntityStore
    approvals: ApprovalStore
    versions: VersionStore
    activities: ActivityLog
    acceptances: PolicyAcceptanceStore
    roles: RoleDirectory

    @property
    def transactional(self) -> bool:
        return False

    @contextmanager
    def transaction(self) -> Iterator["WorkflowStores"]:
        yield self
