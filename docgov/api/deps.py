from dataclasses import dataclass
from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, Header, HTTPException, status

from docgov.core.approval.engine import ApprovalWorkflowEngine
from docgov.core.config import get_settings
from docgov.db.session import SessionLocal
from docgov.services import DocumentService, PolicyAcceptanceTracker
from docgov.stores import WorkflowStores, create_memory_stores, create_sql_stores


@dataclass(frozen=True)
class CurrentUser:
    """The caller, as resolved through the role directory."""
    id: int
    role: str


@lru_cache
def get_memory_stores() -> WorkflowStores:
    """Process-wide in-memory bundle for the ``memory`` backend.

    The role directory is seeded from ``Settings.memory_roles``.
    """
    return create_memory_stores(dict(get_settings().memory_roles))


def get_stores() -> Generator:
    """Store bundle for the configured backend; SQL bundles get their own session."""
    if get_settings().store_backend == "memory":
        yield get_memory_stores()
        return

    db = SessionLocal()
    try:
        yield create_sql_stores(db)
    finally:
        db.close()


def get_current_user(
    stores: WorkflowStores = Depends(get_stores),
    x_user_id: Optional[int] = Header(None),
) -> CurrentUser:
    """Resolve the caller from the X-User-Id header."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not identify user",
    )
    if x_user_id is None:
        raise credentials_exception

    role = stores.roles.role_of(x_user_id)
    if role is None:
        raise credentials_exception
    return CurrentUser(id=x_user_id, role=role)


def get_engine(stores: WorkflowStores = Depends(get_stores)) -> ApprovalWorkflowEngine:
    return ApprovalWorkflowEngine(stores)


def get_document_service(stores: WorkflowStores = Depends(get_stores)) -> DocumentService:
    return DocumentService(stores)


def get_acceptance_tracker(stores: WorkflowStores = Depends(get_stores)) -> PolicyAcceptanceTracker:
    return PolicyAcceptanceTracker(stores)
