"""Declarative base and row bookkeeping for the relational document backend.

Row timestamps below belong to the database.  Document audit fields
(``_createdAt``, ``_updatedAt`` ...) live inside the JSON payload and are
written by the entity service using :func:`utc_now_iso`.
"""

from datetime import UTC, datetime
from typing import ClassVar

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """Server-side ``created_at`` / ``updated_at`` columns for a table."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_iso() -> str:
    """Current UTC time as a fixed-width ISO 8601 string.

    Fixed width keeps lexical and chronological order identical, which the
    stores rely on when sorting by audit timestamps.
    """
    return utc_now().isoformat(timespec="microseconds")
