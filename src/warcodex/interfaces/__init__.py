"""Protocol-based interfaces for warcodex collaborators.

This module exports the protocol interfaces, providing a clear contract for
store and cache implementations and enabling dependency injection and testing.
"""

from warcodex.interfaces.cache import IMentionCountCache
from warcodex.interfaces.store import IDocumentStore

__all__ = [
    "IDocumentStore",
    "IMentionCountCache",
]
