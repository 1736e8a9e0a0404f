"""SQLAlchemy store implementations.

All stores of one bundle share a Session. Store methods only flush;
``SqlWorkflowStores.transaction()`` commits or rolls back the unit of work.
Driver and connection errors surface as ``DependencyFailureError``.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

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
from docgov.core.errors import DependencyFailureError, NotFoundError, ValidationError
from docgov.db import models

from .base import (
    ActivityLog,
    ApprovalStore,
    EntityStore,
    PolicyAcceptanceStore,
    RoleDirectory,
    VersionStore,
    WorkflowStores,
)


_IMMUTABLE_COLUMNS = {"id", "created_by", "created_at"}


def _translate_errors(func):
    """Re-raise database errors as DependencyFailureError."""
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            raise DependencyFailureError(
                f"{type(self).__name__}.{func.__name__} failed: {e}"
            ) from e
    return wrapper


def _apply_changes(row, changes: Dict[str, Any]) -> None:
    frozen = set(changes) & _IMMUTABLE_COLUMNS
    if frozen:
        raise ValidationError(f"Fields cannot be changed: {sorted(frozen)}")
    for key, value in changes.items():
        if not hasattr(type(row), key):
            raise ValidationError(f"Unknown field for {type(row).__name__}: {key}")
        setattr(row, key, getattr(value, "value", value))


def _document_to_record(row: models.Document) -> Document:
    return Document(
        id=row.id,
        title=row.title,
        content=row.content,
        category=row.category,
        department=row.department,
        created_by=row.created_by,
        status=EntityStatus(row.status),
        version=row.version,
        description=row.description,
        file_url=row.file_url,
        tags=list(row.tags or []),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _task_to_record(row: models.Task) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        assigned_to=row.assigned_to,
        created_by=row.created_by,
        priority=row.priority,
        status=EntityStatus(row.status),
        description=row.description,
        document_id=row.document_id,
        due_date=row.due_date,
        completed_at=row.completed_at,
        created_at=row.created_at,
    )


def _approval_to_record(row: models.Approval) -> Approval:
    return Approval(
        id=row.id,
        entity=EntityRef(EntityType(row.entity_type), row.entity_id),
        user_id=row.user_id,
        status=ApprovalStatus(row.status),
        submission_round=row.submission_round,
        comments=row.comments,
        created_at=row.created_at,
        approved_at=row.approved_at,
    )


class SqlEntityStore(EntityStore):
    """Documents and tasks in the ``documents`` and ``tasks`` tables."""

    def __init__(self, session: Session):
        self.session = session

    def _document_row(self, document_id: int, for_update: bool = False) -> Optional[models.Document]:
        query = self.session.query(models.Document).filter(models.Document.id == document_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def _task_row(self, task_id: int, for_update: bool = False) -> Optional[models.Task]:
        query = self.session.query(models.Task).filter(models.Task.id == task_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @_translate_errors
    def get_document(self, document_id: int, *, for_update: bool = False) -> Optional[Document]:
        row = self._document_row(document_id, for_update)
        return _document_to_record(row) if row else None

    @_translate_errors
    def get_task(self, task_id: int, *, for_update: bool = False) -> Optional[Task]:
        row = self._task_row(task_id, for_update)
        return _task_to_record(row) if row else None

    @_translate_errors
    def create_document(self, **values: Any) -> Document:
        if "status" in values:
            values["status"] = EntityStatus(values["status"]).value
        row = models.Document(**values)
        self.session.add(row)
        self.session.flush()
        return _document_to_record(row)

    @_translate_errors
    def create_task(self, **values: Any) -> Task:
        if "status" in values:
            values["status"] = EntityStatus(values["status"]).value
        row = models.Task(**values)
        self.session.add(row)
        self.session.flush()
        return _task_to_record(row)

    @_translate_errors
    def update(self, ref: EntityRef, **changes: Any) -> Entity:
        if ref.entity_type == EntityType.TASK:
            row = self._task_row(ref.entity_id)
            if row is None:
                raise NotFoundError("task", ref.entity_id)
            _apply_changes(row, changes)
            self.session.flush()
            return _task_to_record(row)

        row = self._document_row(ref.entity_id)
        if row is None:
            raise NotFoundError(ref.entity_type.value, ref.entity_id)
        changes.setdefault("updated_at", utcnow())
        _apply_changes(row, changes)
        self.session.flush()
        return _document_to_record(row)

    @_translate_errors
    def delete(self, ref: EntityRef) -> None:
        if ref.entity_type == EntityType.TASK:
            row = self._task_row(ref.entity_id)
        else:
            row = self._document_row(ref.entity_id)
        if row is None:
            raise NotFoundError(ref.entity_type.value, ref.entity_id)
        self.session.delete(row)
        self.session.flush()

    @_translate_errors
    def list_documents(self, *, category: Optional[str] = None) -> List[Document]:
        query = self.session.query(models.Document)
        if category is not None:
            query = query.filter(models.Document.category == category)
        return [_document_to_record(r) for r in query.order_by(models.Document.id.asc()).all()]

    @_translate_errors
    def list_tasks(self, *, assigned_to: Optional[int] = None) -> List[Task]:
        query = self.session.query(models.Task)
        if assigned_to is not None:
            query = query.filter(models.Task.assigned_to == assigned_to)
        return [_task_to_record(r) for r in query.order_by(models.Task.id.asc()).all()]


class SqlApprovalStore(ApprovalStore):
    """Approvals in the ``approvals`` table."""

    def __init__(self, session: Session):
        self.session = session

    def _row(self, approval_id: int, for_update: bool = False) -> Optional[models.Approval]:
        query = self.session.query(models.Approval).filter(models.Approval.id == approval_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    @_translate_errors
    def get(self, approval_id: int, *, for_update: bool = False) -> Optional[Approval]:
        row = self._row(approval_id, for_update)
        return _approval_to_record(row) if row else None

    @_translate_errors
    def create(
        self,
        entity: EntityRef,
        user_id: int,
        *,
        status: ApprovalStatus = ApprovalStatus.PENDING,
        submission_round: int = 1,
    ) -> Approval:
        row = models.Approval(
            entity_type=entity.entity_type.value,
            entity_id=entity.entity_id,
            user_id=user_id,
            status=ApprovalStatus(status).value,
            submission_round=submission_round,
        )
        self.session.add(row)
        self.session.flush()
        return _approval_to_record(row)

    @_translate_errors
    def update(self, approval_id: int, **changes: Any) -> Approval:
        row = self._row(approval_id)
        if row is None:
            raise NotFoundError("approval", approval_id)
        if "entity" in changes:
            raise ValidationError("An approval's target entity cannot be changed")
        _apply_changes(row, changes)
        self.session.flush()
        return _approval_to_record(row)

    @_translate_errors
    def delete(self, approval_id: int) -> None:
        row = self._row(approval_id)
        if row is not None:
            self.session.delete(row)
            self.session.flush()

    @_translate_errors
    def list_by_entity(self, entity: EntityRef) -> List[Approval]:
        rows = self.session.query(models.Approval).filter(
            and_(
                models.Approval.entity_type == entity.entity_type.value,
                models.Approval.entity_id == entity.entity_id,
            )
        ).order_by(models.Approval.id.asc()).all()
        return [_approval_to_record(r) for r in rows]

    @_translate_errors
    def list_by_approver(self, user_id: int) -> List[Approval]:
        rows = self.session.query(models.Approval).filter(
            models.Approval.user_id == user_id
        ).order_by(models.Approval.id.asc()).all()
        return [_approval_to_record(r) for r in rows]

    @_translate_errors
    def list_all(self, *, entity_type: Optional[EntityType] = None) -> List[Approval]:
        query = self.session.query(models.Approval)
        if entity_type is not None:
            query = query.filter(models.Approval.entity_type == EntityType(entity_type).value)
        return [_approval_to_record(r) for r in query.order_by(models.Approval.id.asc()).all()]


class SqlVersionStore(VersionStore):
    """Snapshots in the ``document_versions`` table."""

    def __init__(self, session: Session):
        self.session = session

    @_translate_errors
    def append(self, document_id: int, version: str, content: str, author_id: int) -> DocumentVersion:
        row = models.DocumentVersion(
            document_id=document_id,
            version=version,
            content=content,
            created_by=author_id,
        )
        self.session.add(row)
        self.session.flush()
        return DocumentVersion(
            id=row.id,
            document_id=row.document_id,
            version=row.version,
            content=row.content,
            created_by=row.created_by,
            created_at=row.created_at,
        )

    @_translate_errors
    def list_for_document(self, document_id: int) -> List[DocumentVersion]:
        rows = self.session.query(models.DocumentVersion).filter(
            models.DocumentVersion.document_id == document_id
        ).order_by(models.DocumentVersion.id.asc()).all()
        return [
            DocumentVersion(
                id=r.id,
                document_id=r.document_id,
                version=r.version,
                content=r.content,
                created_by=r.created_by,
                created_at=r.created_at,
            )
            for r in rows
        ]


class SqlActivityLog(ActivityLog):
    """Audit trail in the ``activities`` table."""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _to_record(row: models.Activity) -> Activity:
        return Activity(
            id=row.id,
            user_id=row.user_id,
            action=row.action,
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            details=row.details,
            created_at=row.created_at,
        )

    @_translate_errors
    def append(
        self,
        user_id: int,
        action: str,
        entity_type: str,
        entity_id: int,
        details: Optional[Dict[str, Any]] = None,
    ) -> Activity:
        row = models.Activity(
            user_id=user_id,
            action=action,
            entity_type=str(getattr(entity_type, "value", entity_type)),
            entity_id=entity_id,
            details=details,
        )
        self.session.add(row)
        self.session.flush()
        return self._to_record(row)

    @_translate_errors
    def recent(self, limit: int = 20) -> List[Activity]:
        rows = self.session.query(models.Activity).order_by(
            models.Activity.created_at.desc(), models.Activity.id.desc()
        ).limit(limit).all()
        return [self._to_record(r) for r in rows]

    @_translate_errors
    def list_for_entity(self, entity_type: str, entity_id: int) -> List[Activity]:
        rows = self.session.query(models.Activity).filter(
            and_(
                models.Activity.entity_type == str(getattr(entity_type, "value", entity_type)),
                models.Activity.entity_id == entity_id,
            )
        ).order_by(models.Activity.id.asc()).all()
        return [self._to_record(r) for r in rows]


class SqlPolicyAcceptanceStore(PolicyAcceptanceStore):
    """Acceptances in the ``policy_acceptances`` table."""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _to_record(row: models.PolicyAcceptance) -> PolicyAcceptance:
        return PolicyAcceptance(
            id=row.id,
            user_id=row.user_id,
            document_id=row.document_id,
            accepted_at=row.accepted_at,
        )

    def _row(self, user_id: int, document_id: int) -> Optional[models.PolicyAcceptance]:
        return self.session.query(models.PolicyAcceptance).filter(
            and_(
                models.PolicyAcceptance.user_id == user_id,
                models.PolicyAcceptance.document_id == document_id,
            )
        ).first()

    @_translate_errors
    def get(self, user_id: int, document_id: int) -> Optional[PolicyAcceptance]:
        row = self._row(user_id, document_id)
        return self._to_record(row) if row else None

    @_translate_errors
    def get_or_create(self, user_id: int, document_id: int) -> Tuple[PolicyAcceptance, bool]:
        """
        Fetch or insert the acceptance row.

        A concurrent insert of the same pair trips the unique constraint; the
        session is rolled back and the winner's row returned, so this must be
        the first write of its unit of work.
        """
        existing = self._row(user_id, document_id)
        if existing is not None:
            return self._to_record(existing), False

        row = models.PolicyAcceptance(user_id=user_id, document_id=document_id)
        self.session.add(row)
        try:
            self.session.flush()
        except IntegrityError:
            self.session.rollback()
            existing = self._row(user_id, document_id)
            if existing is None:
                raise
            return self._to_record(existing), False
        return self._to_record(row), True

    @_translate_errors
    def list_by_document(self, document_id: int) -> List[PolicyAcceptance]:
        rows = self.session.query(models.PolicyAcceptance).filter(
            models.PolicyAcceptance.document_id == document_id
        ).order_by(models.PolicyAcceptance.id.asc()).all()
        return [self._to_record(r) for r in rows]

    @_translate_errors
    def list_by_user(self, user_id: int) -> List[PolicyAcceptance]:
        rows = self.session.query(models.PolicyAcceptance).filter(
            models.PolicyAcceptance.user_id == user_id
        ).order_by(models.PolicyAcceptance.id.asc()).all()
        return [self._to_record(r) for r in rows]


class SqlRoleDirectory(RoleDirectory):
    """Role lookups against the ``users`` table."""

    def __init__(self, session: Session):
        self.session = session

    @_translate_errors
    def users_with_roles(self, roles: Iterable[str]) -> List[int]:
        wanted = [str(getattr(r, "value", r)) for r in roles]
        if not wanted:
            return []
        rows = self.session.query(models.User.id).filter(
            models.User.role.in_(wanted)
        ).order_by(models.User.id.asc()).all()
        return [r.id for r in rows]

    @_translate_errors
    def role_of(self, user_id: int) -> Optional[str]:
        row = self.session.query(models.User.role).filter(models.User.id == user_id).first()
        return row.role if row else None


@dataclass
class SqlWorkflowStores(WorkflowStores):
    """Store bundle whose units of work are database transactions."""

    session: Optional[Session] = None

    @property
    def transactional(self) -> bool:
        return True

    @contextmanager
    def transaction(self) -> Iterator["SqlWorkflowStores"]:
        try:
            yield self
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise DependencyFailureError(f"Transaction failed: {e}") from e
        except BaseException:
            self.session.rollback()
            raise


def create_sql_stores(session: Session) -> SqlWorkflowStores:
    """Build a bundle of stores sharing one session."""
    return SqlWorkflowStores(
        entities=SqlEntityStore(session),
        approvals=SqlApprovalStore(session),
        versions=SqlVersionStore(session),
        activities=SqlActivityLog(session),
        acceptances=SqlPolicyAcceptanceStore(session),
        roles=SqlRoleDirectory(session),
        session=session,
    )
