"""
Database models backing the document engine's collaborators.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    Index,
)
from sqlalchemy.sql import func
from bizdocs.database import Base


class Store(Base):
    """
    The issuing organization ("store") profile.

    Logically a single row; the metadata source reads the first one.
    """
    __tablename__ = "store"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    address = Column(Text, nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(200), nullable=True)
    website = Column(String(300), nullable=True)
    gst_number = Column(String(32), nullable=True)
    state = Column(String(100), nullable=True)
    bank_name = Column(String(200), nullable=True)
    bank_account_number = Column(String(64), nullable=True)
    bank_ifsc_code = Column(String(32), nullable=True)
    bank_branch = Column(String(200), nullable=True)
    terms = Column(Text, nullable=True)
    logo_url = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Store(id={self.id}, name={self.name})>"


class DocumentArtifact(Base):
    """A generated document persisted to object storage by a caller."""
    __tablename__ = "document_artifacts"

    id = Column(Integer, primary_key=True, index=True)
    kind = Column(String(20), nullable=False, index=True)  # invoice | ledger | report
    subject_ref = Column(String(100), nullable=True)  # invoice number, customer id, report period
    storage_path = Column(String(500), nullable=False)
    public_url = Column(String(1000), nullable=True)
    byte_size = Column(Integer, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    __table_args__ = (
        Index("ix_document_artifacts_kind_subject", "kind", "subject_ref"),
    )

    def __repr__(self):
        return f"<DocumentArtifact(id={self.id}, kind={self.kind}, path={self.storage_path})>"
