"""SQLAlchemy models for the relational document backend."""

from .base import Base, TimestampMixin, utc_now, utc_now_iso
from .document import Document

__all__ = [
    "Base",
    "Document",
    "TimestampMixin",
    "utc_now",
    "utc_now_iso",
]
