"""Editing an entity's outgoing Reference Map."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from warcodex.domain.references import PolicyError, ReferencePolicy
from warcodex.services.entity_service import EntityService


class ReferenceEditor:
    """Stage changes to one entity's Reference Map and commit them.

    Targets are not checked for existence; a committed map may point at
    documents that were deleted in the meantime.
    """

    def __init__(
        self,
        entities: EntityService,
        policy: ReferencePolicy,
        collection: str,
        entity: Mapping[str, Any],
        *,
        user: str | None = None,
    ) -> None:
        self._entities = entities
        self._policy = policy
        self._user = user
        self.collection = collection
        self.entity = dict(entity)
        self._original: dict[str, str] = dict(entity.get("references") or {})
        self._staged: dict[str, str] = dict(self._original)

    @property
    def references(self) -> dict[str, str]:
        return dict(self._staged)

    @property
    def allowed_targets(self) -> list[str]:
        return self._policy.allowed_to_refer(self.collection)

    @property
    def is_dirty(self) -> bool:
        return self._staged != self._original

    def add(self, target_id: str, target_collection: str) -> None:
        if not self._policy.allows(self.collection, target_collection):
            raise PolicyError(
                f"'{self.collection}' may not refer to '{target_collection}'"
            )
        self._staged[target_id] = target_collection

    def remove(self, target_id: str) -> None:
        self._staged.pop(target_id, None)

    async def candidates(self, target_collection: str) -> list[dict[str, Any]]:
        """Documents of ``target_collection`` that are not referenced yet."""

        if not self._policy.allows(self.collection, target_collection):
            return []
        return await self._entities.load_excluding_ids(target_collection, list(self._staged))

    async def commit(self, new_map: Mapping[str, str] | None = None) -> dict[str, Any] | None:
        """Persist the staged (or the given) Reference Map."""

        if new_map is not None:
            self._staged = dict(new_map)
        if not self.is_dirty:
            return self.entity

        saved = await self._entities.update(
            self.collection,
            self.entity["_id"],
            {"references": dict(self._staged)},
            user=self._user,
        )
        if saved is not None:
            self.entity = saved
            self._original = dict(saved.get("references") or {})
            self._staged = dict(self._original)
        return saved
