"""Pydantic models describing every persisted warcodex entity.

Documents travel through the stores as plain JSON-compatible dictionaries
keyed by their wire names (``_id``, ``_createdAt``, ``systemId`` ...).  The
models below give the rest of the code typed, snake-case access to the same
data.  Unknown fields are preserved so a document survives a load/save round
trip even when a model does not declare everything stored in it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from .enums import EntityStatus, SourceType

NEW_ENTITY_TEMP_ID = "new"
"""Placeholder id carried by entities the store has not assigned an id to."""

UPDATED_BY_SYSTEM = "NEXT_BACKEND"
"""``_updatedBy`` value written when an update has no acting user."""

EntityT = TypeVar("EntityT", bound="Entity")


class Entity(BaseModel):
    """Persisted record with identity, audit fields and a readable name."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(default=NEW_ENTITY_TEMP_ID, alias="_id")
    name: str = ""
    status: EntityStatus = EntityStatus.ACTIVE
    created_at: datetime | None = Field(default=None, alias="_createdAt")
    updated_at: datetime | None = Field(default=None, alias="_updatedAt")
    created_by: str | None = Field(default=None, alias="_createdBy")
    updated_by: str | None = Field(default=None, alias="_updatedBy")
    is_updated: bool = Field(default=False, alias="_isUpdated")


class GameSystem(Entity):
    """One ruleset or product line; scopes every playable entity."""

    key: str = ""
    owner: str = ""
    description: str | None = None
    logo: str | None = None
    image: str | None = None
    links: list[str] = Field(default_factory=list)
    downloads: list[str] = Field(default_factory=list)
    shops: list[str] = Field(default_factory=list)
    rulebooks: list[str] = Field(default_factory=list)
    supplements: list[str] = Field(default_factory=list)
    additional: list[str] = Field(default_factory=list)
    reference_hierarchy: dict[str, list[str]] | None = Field(
        default=None, alias="referenceHierarchy"
    )


class Playable(Entity):
    """Entity scoped to a game system that may reference other playables."""

    system_id: str = Field(default="", alias="systemId")
    description: str | None = None
    references: dict[str, str] | None = None


class Source(Playable):
    """Rulebook, supplement or errata document."""

    authors: str | None = None
    year: int
    version: str
    type: SourceType
    image: str | None = None
    urls: list[str] = Field(default_factory=list)


class Keyword(Playable):
    """Named game keyword; carries no fields beyond ``Playable``."""


class Profile(Playable):
    """Unit or model profile."""

    stats: dict[str, Any] = Field(default_factory=dict)


class Armor(Playable):
    """Armor entry."""

    value: int | None = None


class Weapon(Playable):
    """Weapon entry."""

    range: str | None = None


class Trait(Playable):
    """Special rule attached to profiles, weapons or armors."""


Mentions = dict[str, list[Playable]]
"""Collection name -> playables in that collection referencing an entity."""


def to_document(entity: Entity) -> dict[str, Any]:
    """Dump an entity to its JSON-compatible wire document."""

    return entity.model_dump(mode="json", by_alias=True)


def from_document(model: type[EntityT], document: dict[str, Any]) -> EntityT:
    """Validate a stored document into the requested model."""

    return model.model_validate(document)
