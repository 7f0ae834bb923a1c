"""Document Store Protocol Interface.

This module defines the protocol (interface) every persistence backend
implements.  Documents are JSON-compatible dictionaries keyed by their wire
names; collections are plain strings.
"""

from collections.abc import Sequence
from typing import Any, Protocol

from warcodex.repository.query import DocumentQuery


class IDocumentStore(Protocol):
    """Protocol defining the collection/document operations warcodex needs.

    Every method is a coroutine: each call is one round trip to the backing
    store and a suspension point for the caller.
    """

    name: str

    def new_id(self, collection: str) -> str:
        """Generate an unused document id for ``collection``."""
        ...

    async def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Return one document or ``None`` when it does not exist."""
        ...

    async def query(self, collection: str, query: DocumentQuery) -> list[dict[str, Any]]:
        """Return the documents of ``collection`` matching ``query``."""
        ...

    async def create(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Write a new document.

        Raises:
            DocumentExistsError: the id is already used in the collection
        """
        ...

    async def update(self, collection: str, document_id: str, data: dict[str, Any]) -> None:
        """Merge ``data`` into an existing document.

        Raises:
            DocumentNotFoundError: no document with that id
            StreamResetError: transient transport failure
        """
        ...

    async def delete(self, collection: str, document_id: str) -> None:
        """Remove a document; deleting a missing id is not an error."""
        ...

    async def delete_batch(self, collection: str, document_ids: Sequence[str]) -> None:
        """Remove several documents atomically."""
        ...

    async def list_collections(self) -> list[str]:
        """Names of collections currently holding documents."""
        ...
