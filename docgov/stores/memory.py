"""In-memory store implementations.

Each store guards its maps with its own lock and hands out copies, so a
caller mutating a returned record never changes stored state.
"""

import itertools
import threading
from dataclasses import fields, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from docgov.core.approval.states import ApprovalStatus, EntityStatus, EntityType
from docgov.core.clock import utcnow
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
from docgov.core.errors import NotFoundError, ValidationError

from .base import (
    ActivityLog,
    ApprovalStore,
    EntityStore,
    PolicyAcceptanceStore,
    RoleDirectory,
    VersionStore,
    WorkflowStores,
)


_IMMUTABLE_FIELDS = {"id", "created_by", "created_at"}


def _check_changes(record_type, changes: Dict[str, Any]) -> None:
    known = {f.name for f in fields(record_type)}
    unknown = set(changes) - known
    if unknown:
        raise ValidationError(f"Unknown fields for {record_type.__name__}: {sorted(unknown)}")
    frozen = set(changes) & _IMMUTABLE_FIELDS
    if frozen:
        raise ValidationError(f"Fields cannot be changed: {sorted(frozen)}")


class InMemoryEntityStore(EntityStore):
    """Documents and tasks held in dictionaries."""

    def __init__(self):
        self._lock = threading.RLock()
        self._documents: Dict[int, Document] = {}
        self._tasks: Dict[int, Task] = {}
        self._document_ids = itertools.count(1)
        self._task_ids = itertools.count(1)

    def get_document(self, document_id: int, *, for_update: bool = False) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(document_id)
            return replace(document) if document else None

    def get_task(self, task_id: int, *, for_update: bool = False) -> Optional[Task]:
        with self._lock:
            task = self._tasks.get(task_id)
            return replace(task) if task else None

    def create_document(self, **values: Any) -> Document:
        with self._lock:
            now = utcnow()
            values.setdefault("created_at", now)
            values.setdefault("updated_at", now)
            document = Document(id=next(self._document_ids), **values)
            document.status = EntityStatus(document.status)
            self._documents[document.id] = document
            return replace(document)

    def create_task(self, **values: Any) -> Task:
        with self._lock:
            task = Task(id=next(self._task_ids), **values)
            task.status = EntityStatus(task.status)
            self._tasks[task.id] = task
            return replace(task)

    def update(self, ref: EntityRef, **changes: Any) -> Entity:
        with self._lock:
            if ref.entity_type == EntityType.TASK:
                current = self._tasks.get(ref.entity_id)
                if current is None:
                    raise NotFoundError("task", ref.entity_id)
                _check_changes(Task, changes)
            else:
                current = self._documents.get(ref.entity_id)
                if current is None:
                    raise NotFoundError(ref.entity_type.value, ref.entity_id)
                _check_changes(Document, changes)
                changes.setdefault("updated_at", utcnow())

            if "status" in changes:
                changes["status"] = EntityStatus(changes["status"])
            updated = replace(current, **changes)

            if ref.entity_type == EntityType.TASK:
                self._tasks[ref.entity_id] = updated
            else:
                self._documents[ref.entity_id] = updated
            return replace(updated)

    def delete(self, ref: EntityRef) -> None:
        with self._lock:
            target = self._tasks if ref.entity_type == EntityType.TASK else self._documents
            if target.pop(ref.entity_id, None) is None:
                raise NotFoundError(ref.entity_type.value, ref.entity_id)

    def list_documents(self, *, category: Optional[str] = None) -> List[Document]:
        with self._lock:
            return [
                replace(d) for d in self._documents.values()
                if category is None or d.category == category
            ]

    def list_tasks(self, *, assigned_to: Optional[int] = None) -> List[Task]:
        with self._lock:
            return [
                replace(t) for t in self._tasks.values()
                if assigned_to is None or t.assigned_to == assigned_to
            ]


class InMemoryApprovalStore(ApprovalStore):
    """Approval records held in a dictionary."""

    def __init__(self):
        self._lock = threading.RLock()
        self._approvals: Dict[int, Approval] = {}
        self._ids = itertools.count(1)

    def get(self, approval_id: int, *, for_update: bool = False) -> Optional[Approval]:
        with self._lock:
            approval = self._approvals.get(approval_id)
            return replace(approval) if approval else None

    def create(
        self,
        entity: EntityRef,
        user_id: int,
        *,
        status: ApprovalStatus = ApprovalStatus.PENDING,
        submission_round: int = 1,
    ) -> Approval:
        with self._lock:
            approval = Approval(
                id=next(self._ids),
                entity=entity,
                user_id=user_id,
                status=ApprovalStatus(status),
                submission_round=submission_round,
            )
            self._approvals[approval.id] = approval
            return replace(approval)

    def update(self, approval_id: int, **changes: Any) -> Approval:
        with self._lock:
            current = self._approvals.get(approval_id)
            if current is None:
                raise NotFoundError("approval", approval_id)
            _check_changes(Approval, changes)
            if "status" in changes:
                changes["status"] = ApprovalStatus(changes["status"])
            updated = replace(current, **changes)
            self._approvals[approval_id] = updated
            return replace(updated)

    def delete(self, approval_id: int) -> None:
        with self._lock:
            self._approvals.pop(approval_id, None)

    def list_by_entity(self, entity: EntityRef) -> List[Approval]:
        with self._lock:
            return [replace(a) for a in self._approvals.values() if a.entity == entity]

    def list_by_approver(self, user_id: int) -> List[Approval]:
        with self._lock:
            return [replace(a) for a in self._approvals.values() if a.user_id == user_id]

    def list_all(self, *, entity_type: Optional[EntityType] = None) -> List[Approval]:
        with self._lock:
            return [
                replace(a) for a in self._approvals.values()
                if entity_type is None or a.entity_type == EntityType(entity_type)
            ]


class InMemoryVersionStore(VersionStore):
    """Document versions held in a list."""

    def __init__(self):
        self._lock = threading.Lock()
        self._versions: List[DocumentVersion] = []
        self._ids = itertools.count(1)

    def append(self, document_id: int, version: str, content: str, author_id: int) -> DocumentVersion:
        with self._lock:
            row = DocumentVersion(
                id=next(self._ids),
                document_id=document_id,
                version=version,
                content=content,
                created_by=author_id,
            )
            self._versions.append(row)
            return row

    def list_for_document(self, document_id: int) -> List[DocumentVersion]:
        with self._lock:
            return [v for v in self._versions if v.document_id == document_id]


class InMemoryActivityLog(ActivityLog):
    """Activities held in a list."""

    def __init__(self):
        self._lock = threading.Lock()
        self._activities: List[Activity] = []
        self._ids = itertools.count(1)

    def append(
        self,
        user_id: int,
        action: str,
        entity_type: str,
        entity_id: int,
        details: Optional[Dict[str, Any]] = None,
    ) -> Activity:
        with self._lock:
            activity = Activity(
                id=next(self._ids),
                user_id=user_id,
                action=action,
                entity_type=str(getattr(entity_type, "value", entity_type)),
                entity_id=entity_id,
                details=dict(details) if details is not None else None,
            )
            self._activities.append(activity)
            return activity

    def recent(self, limit: int = 20) -> List[Activity]:
        with self._lock:
            return list(reversed(self._activities))[:limit]

    def list_for_entity(self, entity_type: str, entity_id: int) -> List[Activity]:
        entity_type = str(getattr(entity_type, "value", entity_type))
        with self._lock:
            return [
                a for a in self._activities
                if a.entity_type == entity_type and a.entity_id == entity_id
            ]


class InMemoryPolicyAcceptanceStore(PolicyAcceptanceStore):
    """Policy acceptances keyed by (user, document)."""

    def __init__(self):
        self._lock = threading.Lock()
        self._acceptances: Dict[Tuple[int, int], PolicyAcceptance] = {}
        self._ids = itertools.count(1)

    def get(self, user_id: int, document_id: int) -> Optional[PolicyAcceptance]:
        with self._lock:
            return self._acceptances.get((user_id, document_id))

    def get_or_create(self, user_id: int, document_id: int) -> Tuple[PolicyAcceptance, bool]:
        with self._lock:
            existing = self._acceptances.get((user_id, document_id))
            if existing is not None:
                return existing, False
            acceptance = PolicyAcceptance(
                id=next(self._ids),
                user_id=user_id,
                document_id=document_id,
            )
            self._acceptances[(user_id, document_id)] = acceptance
            return acceptance, True

    def list_by_document(self, document_id: int) -> List[PolicyAcceptance]:
        with self._lock:
            return [a for a in self._acceptances.values() if a.document_id == document_id]

    def list_by_user(self, user_id: int) -> List[PolicyAcceptance]:
        with self._lock:
            return [a for a in self._acceptances.values() if a.user_id == user_id]


class InMemoryRoleDirectory(RoleDirectory):
    """Role assignments held in a dictionary of user ID to role."""

    def __init__(self, assignments: Optional[Dict[int, str]] = None):
        self._lock = threading.Lock()
        self._roles: Dict[int, str] = {}
        for user_id, role in (assignments or {}).items():
            self.assign(user_id, role)

    def assign(self, user_id: int, role: str) -> None:
        with self._lock:
            self._roles[user_id] = str(getattr(role, "value", role))

    def users_with_roles(self, roles: Iterable[str]) -> List[int]:
        wanted = {str(getattr(r, "value", r)) for r in roles}
        with self._lock:
            return sorted(uid for uid, role in self._roles.items() if role in wanted)

    def role_of(self, user_id: int) -> Optional[str]:
        with self._lock:
            return self._roles.get(user_id)


def create_memory_stores(role_assignments: Optional[Dict[int, str]] = None) -> WorkflowStores:
    """Build a bundle of empty in-memory stores."""
    return WorkflowStores(
        entities=InMemoryEntityStore(),
        approvals=InMemoryApprovalStore(),
        versions=InMemoryVersionStore(),
        activities=InMemoryActivityLog(),
        acceptances=InMemoryPolicyAcceptanceStore(),
        roles=InMemoryRoleDirectory(role_assignments),
    )
