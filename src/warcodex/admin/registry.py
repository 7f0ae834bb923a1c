"""Renderer registry: which view and edit schema serve a collection.

Collections are registered by kind (``profiles``, ``sources`` ...).  A
system-prefixed collection such as ``cos-profiles`` resolves through the
suffix after its last ``-``.  The registry is frozen once the application
has started, so a lookup never races a registration.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from warcodex.domain.models import (
    Armor,
    Entity,
    GameSystem,
    Keyword,
    Profile,
    Source,
    Trait,
    Weapon,
    to_document,
)

RowView = Callable[[Mapping[str, Any]], dict[str, Any]]


class UnknownCollectionError(LookupError):
    """Raised when no renderer handles a collection name."""

    def __init__(self, collection: str) -> None:
        super().__init__(f"no renderer registered for collection '{collection}'")
        self.collection = collection


class RegistryFrozenError(RuntimeError):
    """Raised when registering into a frozen registry."""


@dataclass(frozen=True, slots=True)
class EntityRenderer:
    """How one kind of entity is listed and validated."""

    kind: str
    model: type[Entity]
    view: RowView
    single_name: str
    plural_name: str
    filterable_fields: tuple[str, ...] = ("name",)
    sortable_fields: tuple[str, ...] = ("name", "_createdAt", "_updatedAt")

    def validate(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        """Validate an edit and return it as a store document.

        Raises:
            pydantic.ValidationError: the payload does not fit ``model``
        """

        return to_document(self.model.model_validate(dict(payload)))

    def row(self, document: Mapping[str, Any]) -> dict[str, Any]:
        return {"_id": document.get("_id"), **self.view(document)}


class RendererRegistry:
    def __init__(self, renderers: Iterable[EntityRenderer] = ()) -> None:
        self._renderers: dict[str, EntityRenderer] = {}
        self._frozen = False
        for renderer in renderers:
            self.register(renderer)

    def register(self, renderer: EntityRenderer) -> None:
        if self._frozen:
            raise RegistryFrozenError("renderer registry is frozen")
        if renderer.kind in self._renderers:
            raise ValueError(f"renderer for '{renderer.kind}' already registered")
        self._renderers[renderer.kind] = renderer

    def freeze(self) -> RendererRegistry:
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def kinds(self) -> list[str]:
        return sorted(self._renderers)

    def kind_of(self, collection: str) -> str:
        if collection in self._renderers:
            return collection
        suffix = collection.rsplit("-", 1)[-1]
        if suffix in self._renderers:
            return suffix
        raise UnknownCollectionError(collection)

    def resolve(self, collection: str) -> EntityRenderer:
        return self._renderers[self.kind_of(collection)]

    def __contains__(self, collection: object) -> bool:
        if not isinstance(collection, str):
            return False
        try:
            self.kind_of(collection)
        except UnknownCollectionError:
            return False
        return True


def _base_row(document: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "name": document.get("name", ""),
        "status": document.get("status"),
        "updated": document.get("_updatedAt"),
    }


def _system_row(document: Mapping[str, Any]) -> dict[str, Any]:
    return {**_base_row(document), "key": document.get("key"), "owner": document.get("owner")}


def _source_row(document: Mapping[str, Any]) -> dict[str, Any]:
    return {
        **_base_row(document),
        "type": document.get("type"),
        "year": document.get("year"),
        "version": document.get("version"),
        "authors": document.get("authors"),
    }


def _playable_row(document: Mapping[str, Any]) -> dict[str, Any]:
    return {
        **_base_row(document),
        "description": document.get("description"),
        "references": len(document.get("references") or {}),
    }


def _weapon_row(document: Mapping[str, Any]) -> dict[str, Any]:
    return {**_playable_row(document), "range": document.get("range")}


def _armor_row(document: Mapping[str, Any]) -> dict[str, Any]:
    return {**_playable_row(document), "value": document.get("value")}


def default_registry() -> RendererRegistry:
    """Renderers for every built-in entity kind."""

    return RendererRegistry(
        [
            EntityRenderer(
                "systems",
                GameSystem,
                _system_row,
                "System",
                "Systems",
                filterable_fields=("name", "key", "owner"),
                sortable_fields=("name", "key", "_createdAt", "_updatedAt"),
            ),
            EntityRenderer(
                "sources",
                Source,
                _source_row,
                "Source",
                "Sources",
                filterable_fields=("name", "authors", "type"),
                sortable_fields=("name", "year", "type", "_createdAt", "_updatedAt"),
            ),
            EntityRenderer("keywords", Keyword, _playable_row, "Keyword", "Keywords"),
            EntityRenderer(
                "profiles",
                Profile,
                _playable_row,
                "Profile",
                "Profiles",
                filterable_fields=("name", "description"),
            ),
            EntityRenderer("armors", Armor, _armor_row, "Armor", "Armors"),
            EntityRenderer("weapons", Weapon, _weapon_row, "Weapon", "Weapons"),
            EntityRenderer(
                "traits",
                Trait,
                _playable_row,
                "Trait",
                "Traits",
                filterable_fields=("name", "description"),
            ),
        ]
    )
