"""Services layered on the workflow stores."""

from .documents import DocumentService
from .policy_acceptance import PolicyAcceptanceTracker

__all__ = ["DocumentService", "PolicyAcceptanceTracker"]
