"""Error taxonomy for the approval workflow.

Every error carries a machine-readable ``kind`` and the HTTP status code the
API layer reports for it.
"""

from typing import Optional


class WorkflowError(Exception):
    """Base class for all workflow errors."""
    
    kind = "workflow_error"
    status_code = 500
    
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(WorkflowError):
    """Referenced entity, approval, or document does not exist."""
    
    kind = "not_found"
    status_code = 404
    
    def __init__(self, resource: str, resource_id, message: Optional[str] = None):
        super().__init__(message or f"{resource.capitalize()} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class InvalidStateError(WorkflowError):
    """Operation is not allowed from the entity's current status."""
    
    kind = "invalid_state"
    status_code = 409


class NoEligibleApproversError(InvalidStateError):
    """Submission would fan out to nobody, leaving the entity stuck pending."""
    
    kind = "no_eligible_approvers"


class PermissionDeniedError(WorkflowError):
    """Actor lacks the required role or ownership."""
    
    kind = "forbidden"
    status_code = 403


class ValidationError(WorkflowError):
    """Malformed input, such as an unknown decision status."""
    
    kind = "validation_error"
    status_code = 400


class DependencyFailureError(WorkflowError):
    """A store or the role directory could not be reached."""
    
    kind = "dependency_failure"
    status_code = 503
