"""User model.

Authentication lives outside docgov; this table only backs the role
directory and ownership references.
"""

from sqlalchemy import Column, Integer, String, DateTime

from docgov.core.clock import utcnow
from docgov.db.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    username = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="analyst", index=True)
    department = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.username} [{self.role}]>"
