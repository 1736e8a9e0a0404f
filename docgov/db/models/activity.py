"""Activity model.

Append-only audit trail; rows are never updated or deleted.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, Index

from docgov.core.clock import utcnow
from docgov.db.base import Base


class Activity(Base):
    __tablename__ = "activities"
    __table_args__ = (
        Index("ix_activities_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True)
    
    # Actor
    user_id = Column(Integer, nullable=False, index=True)
    
    # Action details
    action = Column(String(50), nullable=False, index=True)
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(Integer, nullable=False)
    details = Column(JSON, nullable=True)
    
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<Activity {self.action} on {self.entity_type}:{self.entity_id} by user {self.user_id}>"
