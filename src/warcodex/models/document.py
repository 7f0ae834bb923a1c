"""Document row model for the relational document store.

Every warcodex collection shares one table: a row is one document, addressed
by ``(collection, doc_id)``, with the document body kept in a JSON column.
"""

from typing import Any

from sqlalchemy import JSON, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Document(Base, TimestampMixin):
    """One stored document.

    Attributes:
        id: Surrogate primary key, also used to keep insertion order
        collection: Collection the document belongs to
        doc_id: Document id, unique within its collection
        data: Document body including its audit fields
    """

    __tablename__ = "documents"
    __table_args__ = (UniqueConstraint("collection", "doc_id", name="uq_documents_collection_doc"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    collection: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    doc_id: Mapped[str] = mapped_column(String(128), nullable=False)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    def __repr__(self) -> str:
        return f"<Document(collection='{self.collection}', doc_id='{self.doc_id}')>"
