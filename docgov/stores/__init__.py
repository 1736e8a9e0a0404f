"""Persistence for the approval workflow.

Two backends implement the interfaces in ``docgov.stores.base``: the
in-memory stores used by tests and single-process deployments, and the
SQLAlchemy stores backed by the ``docgov.db`` models.
"""

from .base import (
    ActivityLog,
    ApprovalStore,
    EntityStore,
    PolicyAcceptanceStore,
    RoleDirectory,
    VersionStore,
    WorkflowStores,
)
from .memory import create_memory_stores
from .sql import SqlWorkflowStores, create_sql_stores

__all__ = [
    "ActivityLog",
    "ApprovalStore",
    "EntityStore",
    "PolicyAcceptanceStore",
    "RoleDirectory",
    "VersionStore",
    "WorkflowStores",
    "SqlWorkflowStores",
    "create_memory_stores",
    "create_sql_stores",
]
