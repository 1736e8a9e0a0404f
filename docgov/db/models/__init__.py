"""Database models for docgov."""

from docgov.db.models.user import User
from docgov.db.models.document import Document, DocumentVersion
from docgov.db.models.task import Task
from docgov.db.models.approval import Approval
from docgov.db.models.activity import Activity
from docgov.db.models.policy_acceptance import PolicyAcceptance

__all__ = [
    "User",
    "Document",
    "DocumentVersion",
    "Task",
    "Approval",
    "Activity",
    "PolicyAcceptance",
]
