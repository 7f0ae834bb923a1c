"""SQLAlchemy-backed document store."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from warcodex.models import Document
from warcodex.repository.errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    StoreError,
    StreamResetError,
)
from warcodex.repository.ids import generate_id
from warcodex.repository.query import DocumentQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_stream_reset(exc: BaseException) -> bool:
    """Whether ``exc`` is the transient stream-reset condition."""

    if isinstance(exc, StreamResetError):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    return "RST_STREAM" in str(exc)


class SqlDocumentStore:
    """Persist documents as JSON rows in a single ``documents`` table.

    Filtering happens in Python over the rows of one collection, which keeps
    nested-path filters (``references.<id>``) portable across SQLite and
    PostgreSQL.
    """

    name = "sql"

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    async def _run(self, func: Callable[[Session], T]) -> T:
        return await asyncio.to_thread(self._run_sync, func)

    def _run_sync(self, func: Callable[[Session], T]) -> T:
        with self._session_factory() as session:
            try:
                result = func(session)
                session.commit()
                return result
            except DBAPIError as exc:
                session.rollback()
                if isinstance(exc, IntegrityError):
                    raise
                if is_stream_reset(exc):
                    raise StreamResetError(str(exc)) from exc
                raise StoreError(str(exc)) from exc
            except Exception:
                session.rollback()
                raise

    @staticmethod
    def _row(session: Session, collection: str, document_id: str) -> Document | None:
        return session.execute(
            select(Document).where(
                Document.collection == collection, Document.doc_id == document_id
            )
        ).scalar_one_or_none()

    def new_id(self, collection: str) -> str:  # noqa: ARG002
        return generate_id()

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        def _get(session: Session) -> dict[str, Any] | None:
            row = self._row(session, collection, document_id)
            return dict(row.data) if row is not None else None

        return await self._run(_get)

    async def query(self, collection: str, query: DocumentQuery) -> list[dict[str, Any]]:
        def _query(session: Session) -> list[dict[str, Any]]:
            rows = session.execute(
                select(Document.data)
                .where(Document.collection == collection)
                .order_by(Document.id)
            ).scalars()
            return [dict(data) for data in query.apply(rows)]

        return await self._run(_query)

    async def create(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        def _create(session: Session) -> None:
            if self._row(session, collection, document_id) is not None:
                raise DocumentExistsError(collection, document_id)
            session.add(Document(collection=collection, doc_id=document_id, data=dict(data)))

        try:
            await self._run(_create)
        except IntegrityError as exc:
            raise DocumentExistsError(collection, document_id) from exc

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        def _update(session: Session) -> None:
            row = self._row(session, collection, document_id)
            if row is None:
                raise DocumentNotFoundError(collection, document_id)
            row.data = {**row.data, **data}

        await self._run(_update)

    async def delete(self, collection: str, document_id: str) -> None:
        await self.delete_batch(collection, [document_id])

    async def delete_batch(self, collection: str, document_ids: Sequence[str]) -> None:
        ids = list(document_ids)
        if not ids:
            return

        def _delete(session: Session) -> None:
            session.execute(
                delete(Document).where(
                    Document.collection == collection, Document.doc_id.in_(ids)
                )
            )

        await self._run(_delete)
        logger.debug("deleted %d document(s) from %s", len(ids), collection)

    async def list_collections(self) -> list[str]:
        def _list(session: Session) -> list[str]:
            return list(
                session.execute(
                    select(Document.collection).distinct().order_by(Document.collection)
                ).scalars()
            )

        return await self._run(_list)
