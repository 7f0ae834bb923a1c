"""Service layer for warcodex."""

from .controller import EntityController, UnauthorizedError
from .entity_service import EntityService
from .game_systems import GameSystemService
from .mentions import MentionScanner
from .reference_counter import InMemoryMentionCache, JsonMentionCache, ReferenceCounter
from .reference_editor import ReferenceEditor

__all__ = [
    "EntityController",
    "EntityService",
    "GameSystemService",
    "InMemoryMentionCache",
    "JsonMentionCache",
    "MentionScanner",
    "ReferenceCounter",
    "ReferenceEditor",
    "UnauthorizedError",
]
