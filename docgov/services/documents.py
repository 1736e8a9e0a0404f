"""Document and task lifecycle service.

Creates, edits and deletes documents (policies included) and tasks. Each
operation performs one primary write; the version snapshot and activity
entries that follow it are secondary effects and never fail the call.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from docgov.core.approval.effects import SecondaryEffect, run_secondary_effects
from docgov.core.approval.locks import ENTITY_LOCKS, KeyedLock
from docgov.core.approval.states import EntityStatus, is_terminal
from docgov.core.clock import utcnow
from docgov.core.entities import POLICY_CATEGORY, Document, DocumentVersion, EntityRef, Task
from docgov.core.errors import InvalidStateError, NotFoundError, ValidationError
from docgov.core.versioning import INITIAL_VERSION, bump_minor

logger = logging.getLogger(__name__)


# Statuses a task's assignee or an editor may set directly
SETTABLE_TASK_STATUSES = frozenset({
    EntityStatus.PENDING,
    EntityStatus.IN_PROGRESS,
    EntityStatus.COMPLETED,
    EntityStatus.CANCELED,
})

_EDITABLE_DOCUMENT_FIELDS = ("title", "content", "category", "department",
                             "description", "file_url", "tags")

# Optional fields an edit may clear by passing None
_CLEARABLE_DOCUMENT_FIELDS = frozenset({"description", "file_url", "tags"})


class DocumentService:
    """
    Service for document and task lifecycle operations.

    Handles:
    - Creating documents with their initial version snapshot
    - Editing documents, bumping the minor version when content changes
    - Deleting documents
    - Creating tasks and changing their status
    - Listing documents, tasks and version history
    """

    def __init__(self, stores, *, locks: Optional[KeyedLock] = None):
        """
        Initialize the document service.

        Args:
            stores: WorkflowStores bundle to read and write
            locks: Per-entity lock registry (defaults to the process-wide one)
        """
        self.stores = stores
        self._locks = locks if locks is not None else ENTITY_LOCKS

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def create_document(
        self,
        *,
        title: str,
        content: str,
        category: str,
        department: str,
        created_by: int,
        description: Optional[str] = None,
        file_url: Optional[str] = None,
        tags: Optional[List[str]] = None,
    ) -> Document:
        """
        Create a draft document at version 1.0.

        Returns:
            The stored document
        """
        if not title or not title.strip():
            raise ValidationError("Document title is required")

        with self.stores.transaction():
            document = self.stores.entities.create_document(
                title=title,
                content=content or "",
                category=category,
                department=department,
                created_by=created_by,
                description=description,
                file_url=file_url,
                tags=list(tags or []),
                status=EntityStatus.DRAFT,
                version=INITIAL_VERSION,
            )

        logger.info(f"Created {document.ref} '{document.title}'")

        run_secondary_effects(
            [
                SecondaryEffect(
                    "version",
                    lambda: self._append_version(document.id, INITIAL_VERSION, document.content, created_by),
                ),
                SecondaryEffect(
                    "activity",
                    lambda: self._log(created_by, "create", document.ref, {"title": document.title}),
                ),
            ],
            context={"entity_type": document.ref.entity_type.value, "entity_id": document.id},
        )
        return document

    def update_document(self, document_id: int, actor_id: int, **changes: Any) -> Document:
        """
        Edit a document.

        When ``content`` differs from the stored content the minor version is
        bumped and a snapshot of the new content is recorded; identical
        content leaves the version untouched.

        Args:
            document_id: ID of the document
            actor_id: User making the edit
            **changes: Any of title, content, category, department,
                description, file_url, tags

        Returns:
            The updated document

        Raises:
            NotFoundError: If the document does not exist
            ValidationError: If a field is not editable or the stored version
                string is malformed
            InvalidStateError: If the category change would turn a document
                into a policy (or back) after it entered the workflow
        """
        unknown = set(changes) - set(_EDITABLE_DOCUMENT_FIELDS)
        if unknown:
            raise ValidationError(f"Fields cannot be edited: {sorted(unknown)}")

        with self._locks.hold(self.get_document(document_id).ref):
            with self.stores.transaction():
                current = self.stores.entities.get_document(document_id, for_update=True)
                if current is None:
                    raise NotFoundError("document", document_id)

                patch: Dict[str, Any] = {
                    k: v for k, v in changes.items()
                    if v is not None or k in _CLEARABLE_DOCUMENT_FIELDS
                }
                if "tags" in patch and patch["tags"] is None:
                    patch["tags"] = []
                if "category" in patch:
                    self._check_category_change(current, patch["category"])
                content_changed = "content" in patch and patch["content"] != current.content
                if content_changed:
                    patch["version"] = bump_minor(current.version)
                else:
                    patch.pop("content", None)

                document = self.stores.entities.update(current.ref, **patch)

        effects = []
        if content_changed:
            effects.append(SecondaryEffect(
                "version",
                lambda: self._append_version(document.id, document.version, document.content, actor_id),
            ))
        effects.append(SecondaryEffect(
            "activity",
            lambda: self._log(actor_id, "update", document.ref,
                              {"title": document.title, "version": document.version}),
        ))
        run_secondary_effects(
            effects,
            context={"entity_type": document.ref.entity_type.value, "entity_id": document.id},
        )
        return document

    def _check_category_change(self, current: Document, category: str) -> None:
        # Approvals reference the document by its document/policy ref
        if (category == POLICY_CATEGORY) == current.is_policy:
            return
        if current.status != EntityStatus.DRAFT or self.stores.approvals.list_by_entity(current.ref):
            raise InvalidStateError(
                f"{current.ref} cannot move to category '{category}' once it has "
                f"entered the approval workflow"
            )

    def delete_document(self, document_id: int, actor_id: int) -> None:
        """Delete a document; its version history and acceptances are kept."""
        with self._locks.hold(self.get_document(document_id).ref):
            with self.stores.transaction():
                document = self.stores.entities.get_document(document_id, for_update=True)
                if document is None:
                    raise NotFoundError("document", document_id)
                self.stores.entities.delete(document.ref)

        logger.info(f"Deleted {document.ref} '{document.title}'")

        run_secondary_effects(
            [SecondaryEffect(
                "activity",
                lambda: self._log(actor_id, "delete", document.ref, {"title": document.title}),
            )],
            context={"entity_type": document.ref.entity_type.value, "entity_id": document_id},
        )

    def get_document(self, document_id: int) -> Document:
        document = self.stores.entities.get_document(document_id)
        if document is None:
            raise NotFoundError("document", document_id)
        return document

    def list_documents(self, *, category: Optional[str] = None) -> List[Document]:
        return self.stores.entities.list_documents(category=category)

    def list_versions(self, document_id: int) -> List[DocumentVersion]:
        """Version history of a document, oldest first."""
        return self.stores.versions.list_for_document(document_id)

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def create_task(
        self,
        *,
        title: str,
        assigned_to: int,
        created_by: int,
        priority: str = "medium",
        description: Optional[str] = None,
        document_id: Optional[int] = None,
        due_date: Optional[datetime] = None,
    ) -> Task:
        """Create a pending task."""
        if not title or not title.strip():
            raise ValidationError("Task title is required")

        with self.stores.transaction():
            task = self.stores.entities.create_task(
                title=title,
                assigned_to=assigned_to,
                created_by=created_by,
                priority=priority,
                description=description,
                document_id=document_id,
                due_date=due_date,
                status=EntityStatus.PENDING,
            )

        logger.info(f"Created {task.ref} '{task.title}' for user {assigned_to}")

        run_secondary_effects(
            [SecondaryEffect(
                "activity",
                lambda: self._log(created_by, "create", task.ref,
                                  {"title": task.title, "assigned_to": assigned_to}),
            )],
            context={"entity_type": "task", "entity_id": task.id},
        )
        return task

    def set_task_status(self, task_id: int, status: EntityStatus, actor_id: int) -> Task:
        """
        Set a task's status outside the approval workflow.

        Raises:
            ValidationError: If the status cannot be set directly
            NotFoundError: If the task does not exist
            InvalidStateError: If the task is completed or canceled
        """
        try:
            status = EntityStatus(getattr(status, "value", status))
        except ValueError:
            status = None
        if status not in SETTABLE_TASK_STATUSES:
            raise ValidationError(
                f"Task status must be one of {sorted(s.value for s in SETTABLE_TASK_STATUSES)}"
            )

        ref = EntityRef.task(task_id)
        with self._locks.hold(ref):
            with self.stores.transaction():
                current = self.stores.entities.get_task(task_id, for_update=True)
                if current is None:
                    raise NotFoundError("task", task_id)
                if is_terminal(ref.entity_type, current.status) and status != current.status:
                    raise InvalidStateError(
                        f"Task {task_id} is {EntityStatus(current.status).value} and can no longer change"
                    )

                changes: Dict[str, Any] = {"status": status}
                if status == EntityStatus.COMPLETED and current.completed_at is None:
                    changes["completed_at"] = utcnow()
                task = self.stores.entities.update(ref, **changes)

        run_secondary_effects(
            [SecondaryEffect(
                "activity",
                lambda: self._log(actor_id, "update_status", ref,
                                  {"title": task.title, "status": status.value}),
            )],
            context={"entity_type": "task", "entity_id": task_id},
        )
        return task

    def get_task(self, task_id: int) -> Task:
        task = self.stores.entities.get_task(task_id)
        if task is None:
            raise NotFoundError("task", task_id)
        return task

    def list_tasks(self, *, assigned_to: Optional[int] = None) -> List[Task]:
        return self.stores.entities.list_tasks(assigned_to=assigned_to)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _append_version(self, document_id: int, version: str, content: str, author_id: int) -> None:
        with self.stores.transaction():
            self.stores.versions.append(document_id, version, content, author_id)

    def _log(self, user_id: int, action: str, ref: EntityRef, details: Dict[str, Any]) -> None:
        with self.stores.transaction():
            self.stores.activities.append(
                user_id, action, ref.entity_type.value, ref.entity_id, details
            )
