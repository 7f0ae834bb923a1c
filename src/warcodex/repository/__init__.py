"""Document store backends and the query model they share."""

from warcodex.repository.errors import (
    DocumentExistsError,
    DocumentNotFoundError,
    StoreError,
    StreamResetError,
)
from warcodex.repository.json_store import JsonDocumentStore
from warcodex.repository.query import DocumentQuery, FieldFilter, SortRule
from warcodex.repository.sql_store import SqlDocumentStore

__all__ = [
    "DocumentExistsError",
    "DocumentNotFoundError",
    "DocumentQuery",
    "FieldFilter",
    "JsonDocumentStore",
    "SortRule",
    "SqlDocumentStore",
    "StoreError",
    "StreamResetError",
]
