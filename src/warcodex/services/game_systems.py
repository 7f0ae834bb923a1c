"""Game system lookup and per-system reference policies."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from warcodex.domain.enums import FilterOp
from warcodex.domain.references import ReferencePolicy
from warcodex.services.entity_service import EntityService

logger = logging.getLogger(__name__)

SYSTEMS_COLLECTION = "systems"


class GameSystemService:
    """Resolve game systems by key and the reference policy that applies to them."""

    def __init__(
        self,
        entities: EntityService,
        default_policy: ReferencePolicy,
        *,
        known: Iterable[str] | None = None,
    ) -> None:
        self._entities = entities
        self._default_policy = default_policy
        self._known = set(known) if known is not None else None

    @property
    def default_policy(self) -> ReferencePolicy:
        return self._default_policy

    async def get_by_key(self, key: str) -> dict[str, Any] | None:
        """Return the system whose ``key`` matches; the first one wins on duplicates."""

        if not key:
            return None
        systems = await self._entities.load(
            SYSTEMS_COLLECTION, filters=[("key", FilterOp.EQ, key)]
        )
        if len(systems) > 1:
            logger.warning("%d game systems share key '%s'", len(systems), key)
        return systems[0] if systems else None

    def policy_for(self, system: Mapping[str, Any] | None) -> ReferencePolicy:
        """Policy declared by ``system``, or the default one.

        Raises:
            PolicyError: the system's ``referenceHierarchy`` is malformed
        """

        hierarchy = (system or {}).get("referenceHierarchy")
        if not hierarchy:
            return self._default_policy
        return ReferencePolicy(hierarchy, known=self._known)

    async def policy_for_key(self, key: str | None) -> ReferencePolicy:
        if not key:
            return self._default_policy
        return self.policy_for(await self.get_by_key(key))

    async def set_reference_hierarchy(
        self, key: str, hierarchy: Mapping[str, list[str]] | None, *, user: str | None = None
    ) -> dict[str, Any] | None:
        """Replace the hierarchy of the system keyed ``key``; ``None`` if there is none.

        An empty or ``None`` hierarchy puts the system back on the default policy.

        Raises:
            PolicyError: ``hierarchy`` is malformed or names an unknown collection
        """

        system = await self.get_by_key(key)
        if system is None:
            return None
        if hierarchy:
            ReferencePolicy(hierarchy, known=self._known)
        value = {name: list(targets) for name, targets in hierarchy.items()} if hierarchy else None
        logger.info("setting reference hierarchy of system '%s'", key)
        return await self._entities.update(
            SYSTEMS_COLLECTION, system["_id"], {"referenceHierarchy": value}, user=user
        )
