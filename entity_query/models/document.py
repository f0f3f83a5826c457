"""Document and unique-key models"""
from sqlalchemy import JSON, Column, Index, String, UniqueConstraint
from ..database import Base


class DocumentRow(Base):
    """One entity document, stored as a JSON body keyed by (collection, id)"""

    __tablename__ = "documents"

    collection = Column(String(64), primary_key=True)
    id = Column(String(128), primary_key=True)
    body = Column(JSON, nullable=False)  # Full document, dates as UTC ISO strings

    def __repr__(self):
        return f"<DocumentRow(collection='{self.collection}', id='{self.id}')>"


class DocumentKey(Base):
    """Claimed unique-field value; the unique constraint rejects duplicates"""

    __tablename__ = "document_keys"

    collection = Column(String(64), primary_key=True)
    field = Column(String(64), primary_key=True)
    value = Column(String(512), primary_key=True)
    document_id = Column(String(128), nullable=False)

    __table_args__ = (
        UniqueConstraint("collection", "field", "value", name="uix_document_key"),
        Index("idx_document_key_owner", "collection", "document_id"),
    )

    def __repr__(self):
        return f"<DocumentKey({self.collection}.{self.field}='{self.value}' -> {self.document_id})>"
