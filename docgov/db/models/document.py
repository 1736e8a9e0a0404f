"""Document and document version models.

Policies are documents whose category is ``policy``.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey, Text

from docgov.core.clock import utcnow
from docgov.db.base import Base


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    content = Column(Text, nullable=False)
    category = Column(String(100), nullable=False, index=True)
    department = Column(String(100), nullable=False)
    version = Column(String(20), nullable=False, default="1.0")
    status = Column(String(20), nullable=False, default="draft", index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    file_url = Column(String(1024), nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    
    # Timestamps
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Document {self.title} v{self.version} [{self.status}]>"


class DocumentVersion(Base):
    """
    Content snapshot of a document.
    
    Rows are append-only; nothing updates or deletes them, and they
    outlive the document they snapshot.
    """
    __tablename__ = "document_versions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True)
    document_id = Column(Integer, nullable=False, index=True)
    version = Column(String(20), nullable=False)
    content = Column(Text, nullable=False)
    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<DocumentVersion {self.document_id}@{self.version}>"
