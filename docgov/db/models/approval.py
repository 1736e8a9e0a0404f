"""Approval model.

Each row is one approver's vote on one entity. The target is stored as a
single (entity_type, entity_id) pair rather than one nullable foreign key
per variant.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Index

from docgov.core.clock import utcnow
from docgov.db.base import Base


class Approval(Base):
    __tablename__ = "approvals"
    __table_args__ = (
        Index("ix_approvals_entity", "entity_type", "entity_id", "submission_round"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    
    # Target entity
    entity_type = Column(String(20), nullable=False)  # document, task, policy
    entity_id = Column(Integer, nullable=False)
    submission_round = Column(Integer, nullable=False, default=1)
    
    # Approver
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Vote
    status = Column(String(20), nullable=False, default="pending", index=True)
    comments = Column(Text, nullable=True)  # Required by callers for rejections
    
    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    approved_at = Column(DateTime, nullable=True)

    def __repr__(self) -> str:
        return f"<Approval {self.entity_type}:{self.entity_id} user={self.user_id} [{self.status}]>"
