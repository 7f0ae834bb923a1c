"""JSON-file document store."""

from __future__ import annotations

import asyncio
import re
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter

from warcodex.repository.errors import DocumentExistsError, DocumentNotFoundError
from warcodex.repository.ids import generate_id
from warcodex.repository.query import DocumentQuery

CollectionData = dict[str, dict[str, Any]]

_VALID_COLLECTION = re.compile(r"^[A-Za-z0-9_-]+$")


class JsonDocumentStore:
    """Persist each collection as one JSON file on disk.

    Documents are kept in insertion order inside the file so that queries
    without a sort return them in the order they were created.
    """

    name = "json"

    def __init__(self, base_path: Path) -> None:
        self.base_path = base_path
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._adapter: TypeAdapter[CollectionData] = TypeAdapter(CollectionData)
        self._lock = asyncio.Lock()

    def _path_for(self, collection: str) -> Path:
        if not _VALID_COLLECTION.match(collection):
            raise ValueError(f"invalid collection name: {collection!r}")
        return self.base_path / f"{collection}.json"

    def _read(self, collection: str) -> CollectionData:
        path = self._path_for(collection)
        if not path.exists():
            return {}
        return self._adapter.validate_json(path.read_bytes())

    def _write(self, collection: str, data: CollectionData) -> None:
        path = self._path_for(collection)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_bytes(self._adapter.dump_json(data, indent=2))
        tmp.replace(path)

    def new_id(self, collection: str) -> str:  # noqa: ARG002
        return generate_id()

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        async with self._lock:
            data = await asyncio.to_thread(self._read, collection)
        document = data.get(document_id)
        return dict(document) if document is not None else None

    async def query(self, collection: str, query: DocumentQuery) -> list[dict[str, Any]]:
        async with self._lock:
            data = await asyncio.to_thread(self._read, collection)
        return [dict(doc) for doc in query.apply(data.values())]

    async def create(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        async with self._lock:
            await asyncio.to_thread(self._create_sync, collection, document_id, data)

    def _create_sync(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        documents = self._read(collection)
        if document_id in documents:
            raise DocumentExistsError(collection, document_id)
        documents[document_id] = dict(data)
        self._write(collection, documents)

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        async with self._lock:
            await asyncio.to_thread(self._update_sync, collection, document_id, data)

    def _update_sync(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        documents = self._read(collection)
        if document_id not in documents:
            raise DocumentNotFoundError(collection, document_id)
        documents[document_id] = {**documents[document_id], **data}
        self._write(collection, documents)

    async def delete(self, collection: str, document_id: str) -> None:
        await self.delete_batch(collection, [document_id])

    async def delete_batch(self, collection: str, document_ids: Sequence[str]) -> None:
        async with self._lock:
            await asyncio.to_thread(self._delete_sync, collection, list(document_ids))

    def _delete_sync(self, collection: str, document_ids: list[str]) -> None:
        documents = self._read(collection)
        removed = False
        for document_id in document_ids:
            if documents.pop(document_id, None) is not None:
                removed = True
        if removed:
            self._write(collection, documents)

    async def list_collections(self) -> list[str]:
        """Return every collection currently persisted in the store."""

        names = []
        for path in sorted(self.base_path.glob("*.json")):
            names.append(path.stem)
        return names
