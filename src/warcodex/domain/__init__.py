"""Domain types and pure rules for wargame rule content."""

from warcodex.domain.enums import EntityStatus, FilterOp, SortDirection, SourceType
from warcodex.domain.models import (
    NEW_ENTITY_TEMP_ID,
    Armor,
    Entity,
    GameSystem,
    Keyword,
    Mentions,
    Playable,
    Profile,
    Source,
    Trait,
    Weapon,
)
from warcodex.domain.references import PolicyError, ReferencePolicy
from warcodex.domain.selection import RowSelection, reduce_selection, visible_rows

__all__ = [
    "NEW_ENTITY_TEMP_ID",
    "Armor",
    "Entity",
    "EntityStatus",
    "FilterOp",
    "GameSystem",
    "Keyword",
    "Mentions",
    "Playable",
    "PolicyError",
    "Profile",
    "ReferencePolicy",
    "RowSelection",
    "SortDirection",
    "Source",
    "SourceType",
    "Trait",
    "Weapon",
    "reduce_selection",
    "visible_rows",
]
