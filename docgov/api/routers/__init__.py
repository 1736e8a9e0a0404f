from . import activities, approvals, documents, policies, tasks

__all__ = ["activities", "approvals", "documents", "policies", "tasks"]
