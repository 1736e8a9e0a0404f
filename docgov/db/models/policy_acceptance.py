"""Policy acceptance model."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint

from docgov.core.clock import utcnow
from docgov.db.base import Base


class PolicyAcceptance(Base):
    """At most one row per (user, policy document)."""
    __tablename__ = "policy_acceptances"
    __table_args__ = (
        UniqueConstraint("user_id", "document_id", name="uq_policy_acceptances_user_document"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    document_id = Column(Integer, nullable=False, index=True)
    accepted_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<PolicyAcceptance user={self.user_id} document={self.document_id}>"
