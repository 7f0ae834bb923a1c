"""Mention Count Cache Protocol Interface.

This module defines the protocol for remembering the last non-zero mention
count shown for an ``(entity, collection)`` pair.
"""

from typing import Protocol


class IMentionCountCache(Protocol):
    """Protocol defining a small key/value store of mention counts."""

    def get(self, entity_id: str, collection: str) -> int:
        """Return the cached count, or 0 when nothing is cached."""
        ...

    def set(self, entity_id: str, collection: str, value: int) -> None:
        """Remember ``value`` for the pair."""
        ...

    def clear(self, entity_id: str, collection: str) -> None:
        """Forget the cached count for the pair."""
        ...

    def record_zero(self, entity_id: str, collection: str) -> int:
        """Count one more consecutive zero read and return the streak length."""
        ...

    def reset_zero(self, entity_id: str, collection: str) -> None:
        """End the current streak of zero reads."""
        ...