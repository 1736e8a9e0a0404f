"""Policy acceptance tracking.

Users acknowledge approved policies. Acknowledgement is idempotent per
(user, policy) pair and only the first one is written to the activity log.
"""

import logging
from typing import List

from docgov.core.approval.effects import SecondaryEffect, run_secondary_effects
from docgov.core.approval.states import EntityStatus, EntityType
from docgov.core.entities import PolicyAcceptance
from docgov.core.errors import NotFoundError

logger = logging.getLogger(__name__)


class PolicyAcceptanceTracker:
    """Records and lists policy acceptances."""

    def __init__(self, stores):
        self.stores = stores

    def accept(self, user_id: int, document_id: int) -> PolicyAcceptance:
        """
        Accept a policy on behalf of a user.

        Calling this again for the same pair returns the existing record.

        Args:
            user_id: User accepting the policy
            document_id: ID of the policy document

        Returns:
            The acceptance record, existing or new

        Raises:
            NotFoundError: If the document does not exist or is not approved
        """
        document = self.stores.entities.get_document(document_id)
        if document is None or document.status != EntityStatus.APPROVED:
            raise NotFoundError(
                "policy",
                document_id,
                f"Policy {document_id} not found or not approved",
            )

        with self.stores.transaction():
            acceptance, created = self.stores.acceptances.get_or_create(user_id, document_id)

        if not created:
            return acceptance

        logger.info(f"User {user_id} accepted policy {document_id}")

        def log_activity():
            with self.stores.transaction():
                self.stores.activities.append(
                    user_id,
                    "accept",
                    EntityType.POLICY.value,
                    document_id,
                    {"title": document.title, "version": document.version},
                )

        run_secondary_effects(
            [SecondaryEffect("activity", log_activity)],
            context={"entity_type": EntityType.POLICY.value, "entity_id": document_id},
        )
        return acceptance

    def has_accepted(self, user_id: int, document_id: int) -> bool:
        return self.stores.acceptances.get(user_id, document_id) is not None

    def list_for_policy(self, document_id: int) -> List[PolicyAcceptance]:
        """Acceptances of one policy, oldest first."""
        return self.stores.acceptances.list_by_document(document_id)

    def list_for_user(self, user_id: int) -> List[PolicyAcceptance]:
        return self.stores.acceptances.list_by_user(user_id)
