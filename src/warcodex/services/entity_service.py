"""Entity Store Adapter.

Generic create/read/update/delete/query operations against named document
collections.  The service owns the audit fields: callers never set
``_createdAt``, ``_updatedAt``, ``_createdBy`` or ``_isUpdated`` themselves.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from warcodex.domain.enums import EntityStatus, FilterOp, SortDirection
from warcodex.domain.models import NEW_ENTITY_TEMP_ID, UPDATED_BY_SYSTEM, Entity, to_document
from warcodex.interfaces import IDocumentStore
from warcodex.models.base import utc_now_iso
from warcodex.repository.errors import StreamResetError
from warcodex.repository.query import DocumentQuery, FieldFilter, SortRule

logger = logging.getLogger(__name__)

IDS_PER_QUERY = 10
"""Largest id list a single ``in``/``not-in`` query may carry."""

DEFAULT_DELETE_BATCH_SIZE = 15

_PROTECTED_FIELDS = frozenset({"_id", "_createdAt", "_createdBy", "_updatedAt", "_isUpdated"})

Document = dict[str, Any]
FilterSpec = FieldFilter | Sequence[Any]


class EntityService:
    """CRUD and query operations over any collection of a document store."""

    UPDATE_ATTEMPTS = 2

    def __init__(self, store: IDocumentStore) -> None:
        self._store = store

    @property
    def store(self) -> IDocumentStore:
        return self._store

    # --- reads ----------------------------------------------------------------

    async def load(
        self,
        collection: str,
        *,
        filters: Iterable[FilterSpec] | None = None,
        sort: SortRule | Sequence[str] | None = None,
        limit: int | None = None,
        start_after: str | None = None,
        without_sort: bool = False,
    ) -> list[Document]:
        """Query a collection; filters are ANDed together."""

        query = DocumentQuery.build(
            filters=filters,
            sort=sort,
            limit=limit,
            start_after=start_after,
            without_sort=without_sort,
        )
        return await self._store.query(collection, query)

    async def get_by_id(self, collection: str, document_id: str) -> Document | None:
        return await self._store.get(collection, document_id)

    async def exists(self, collection: str, document_id: str) -> bool:
        document = await self._store.get(collection, document_id)
        return bool(document and document.get("_id"))

    async def load_by_ids(self, collection: str, ids: Sequence[str]) -> list[Document]:
        """Fetch the documents with the given ids, in chunks of ten."""

        if not ids:
            return []
        chunks = [list(ids[i : i + IDS_PER_QUERY]) for i in range(0, len(ids), IDS_PER_QUERY)]
        results = await asyncio.gather(
            *(
                self.load(collection, filters=[("_id", FilterOp.IN, chunk)], without_sort=True)
                for chunk in chunks
            )
        )
        return [document for chunk in results for document in chunk]

    async def load_excluding_ids(
        self, collection: str, excluded_ids: Sequence[str]
    ) -> list[Document]:
        """Fetch every document whose id is not in ``excluded_ids``."""

        if not excluded_ids or len(excluded_ids) > IDS_PER_QUERY:
            documents = await self.load(collection, without_sort=True)
            if excluded_ids:
                excluded = set(excluded_ids)
                return [doc for doc in documents if doc.get("_id") not in excluded]
            return documents
        return await self.load(
            collection,
            filters=[("_id", FilterOp.NOT_IN, list(excluded_ids))],
            without_sort=True,
        )

    # --- writes ---------------------------------------------------------------

    async def save(
        self,
        collection: str,
        entity: Entity | Mapping[str, Any],
        *,
        user: str | None = None,
    ) -> Document | None:
        """Create or update ``entity`` and return the stored document.

        An entity without an id, or carrying the ``"new"`` placeholder, is
        created under a freshly generated id.
        """

        data = to_document(entity) if isinstance(entity, Entity) else dict(entity)
        document_id = data.get("_id")
        if document_id and document_id != NEW_ENTITY_TEMP_ID:
            return await self.update(collection, document_id, data, user=user)
        return await self.create(collection, data, user=user)

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        *,
        user: str | None = None,
        document_id: str | None = None,
    ) -> Document | None:
        document_id = document_id or self._store.new_id(collection)
        now = utc_now_iso()
        body = {key: value for key, value in data.items() if key not in _PROTECTED_FIELDS}
        body.setdefault("status", str(EntityStatus.ACTIVE))
        body.update(
            {
                "_id": document_id,
                "_createdAt": now,
                "_updatedAt": now,
                "_createdBy": user,
                "_updatedBy": user,
                "_isUpdated": False,
            }
        )
        await self._store.create(collection, document_id, body)
        logger.info("created %s/%s", collection, document_id)
        return await self._store.get(collection, document_id)

    async def update(
        self,
        collection: str,
        document_id: str,
        data: Mapping[str, Any],
        *,
        user: str | None = None,
    ) -> Document | None:
        """Merge ``data`` into an existing document.

        A stream reset is retried once; any other failure, or a second
        failure, reaches the caller unchanged.
        """

        payload = {key: value for key, value in data.items() if key not in _PROTECTED_FIELDS}
        payload["_updatedAt"] = utc_now_iso()
        payload["_isUpdated"] = True
        payload["_updatedBy"] = user or data.get("_updatedBy") or UPDATED_BY_SYSTEM

        for attempt in range(1, self.UPDATE_ATTEMPTS + 1):
            try:
                await self._store.update(collection, document_id, payload)
                break
            except StreamResetError:
                logger.warning(
                    "stream reset while updating '%s' ID: %s (attempt %d/%d)",
                    collection,
                    document_id,
                    attempt,
                    self.UPDATE_ATTEMPTS,
                )
                if attempt == self.UPDATE_ATTEMPTS:
                    raise
            except Exception:
                logger.error("error while updating '%s' ID: %s", collection, document_id)
                raise

        return await self._store.get(collection, document_id)

    async def delete(self, collection: str, document_id: str) -> None:
        """Delete one document; a missing id is not an error."""

        await self._store.delete(collection, document_id)
        logger.info("deleted %s/%s", collection, document_id)

    async def delete_collection(
        self, name: str, batch_size: int = DEFAULT_DELETE_BATCH_SIZE
    ) -> int:
        """Delete every document of ``name`` in atomic batches.

        Returns:
            Total number of documents deleted
        """

        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")

        total = 0
        sort = SortRule("_id", SortDirection.ASC)
        while True:
            batch = await self.load(name, sort=sort, limit=batch_size)
            if not batch:
                break
            await self._store.delete_batch(name, [doc["_id"] for doc in batch])
            total += len(batch)
            logger.debug("deleted batch of %d from %s", len(batch), name)
        logger.info("deleted collection %s (%d documents)", name, total)
        return total
