"""Exceptions raised by document stores."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for document store failures."""


class StreamResetError(StoreError):
    """Transient transport failure ("RST_STREAM"); safe to retry once."""


class DocumentNotFoundError(StoreError):
    """Raised when updating a document that does not exist."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"document '{document_id}' not found in '{collection}'")
        self.collection = collection
        self.document_id = document_id


class DocumentExistsError(StoreError):
    """Raised when creating a document whose id is already taken."""

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"document '{document_id}' already exists in '{collection}'")
        self.collection = collection
        self.document_id = document_id
