"""
Document database model
Stores schemaless documents grouped into named collections
"""

from sqlalchemy import Column, String, Integer, DateTime, Index, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func
from carenow.db.base import Base


class Document(Base):
    """
    Model for a single document in a collection.

    Partner jobs, earnings, availability, bookings, partner profiles and
    notifications are all stored here, keyed by (collection, doc_id).
    `version` increases on every write and backs compare-and-set updates.
    """
    __tablename__ = "documents"

    # Primary key
    collection = Column(String(64), primary_key=True)
    doc_id = Column(String(255), primary_key=True)

    # Document body (JSONB on PostgreSQL, JSON elsewhere)
    data = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False)
    version = Column(Integer, nullable=False, default=1)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Indexes
    __table_args__ = (
        Index('idx_documents_collection', 'collection'),
        Index('idx_documents_updated_at', 'updated_at'),
    )

    def __repr__(self):
        return f"<Document(collection='{self.collection}', doc_id='{self.doc_id}', version={self.version})>"
