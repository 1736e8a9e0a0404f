"""Role definitions for docgov.

Defines the five user roles and the fixed tables that derive approval
topology and caller privileges from them:
1. Admin - Full system access
2. Manager - Submits, approves and manages content
3. Coordinator - Approves documents and tasks, edits any document
4. Analyst - Authors documents, works on assigned tasks
5. Operator - Works on assigned tasks
"""

from enum import Enum
from typing import Dict, FrozenSet

from ..approval.states import EntityType


class Role(str, Enum):
    """User roles."""
    
    ADMIN = "admin"
    MANAGER = "manager"
    COORDINATOR = "coordinator"
    ANALYST = "analyst"
    OPERATOR = "operator"


# Who receives an approval request when an entity of each type is submitted
APPROVER_ROLES: Dict[EntityType, FrozenSet[Role]] = {
    EntityType.DOCUMENT: frozenset({Role.MANAGER, Role.COORDINATOR}),
    EntityType.TASK: frozenset({Role.MANAGER, Role.COORDINATOR}),
    EntityType.POLICY: frozenset({Role.MANAGER, Role.ADMIN}),
}

# May submit any entity, not only their own
SUBMITTER_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})

# May record a decision on an approval
DECIDER_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER, Role.COORDINATOR})

# May edit any document or change any task's status
EDITOR_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER, Role.COORDINATOR})

# May delete documents
DELETER_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER})

# May view acceptances, all approvals and all tasks
REVIEWER_ROLES: FrozenSet[Role] = frozenset({Role.ADMIN, Role.MANAGER, Role.COORDINATOR})


def approver_roles_for(entity_type: EntityType) -> FrozenSet[Role]:
    """Get the roles whose holders must approve an entity of this type."""
    return APPROVER_ROLES[EntityType(entity_type)]
