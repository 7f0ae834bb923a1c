"""Runtime primitives backing the warcodex HTTP API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from warcodex import factory
from warcodex.admin.registry import RendererRegistry, default_registry
from warcodex.admin.views import SortSelection, build_list_view
from warcodex.config import Settings, get_settings
from warcodex.domain.enums import FilterOp
from warcodex.domain.models import NEW_ENTITY_TEMP_ID
from warcodex.interfaces import IDocumentStore, IMentionCountCache
from warcodex.services.entity_service import EntityService
from warcodex.services.game_systems import GameSystemService
from warcodex.services.reference_counter import ReferenceCounter
from warcodex.services.reference_editor import ReferenceEditor

logger = logging.getLogger(__name__)


class ContentService:
    """Collection-level operations behind the HTTP routes.

    Every collection name is resolved through the renderer registry first,
    so unknown collections fail with ``UnknownCollectionError`` before the
    store is touched.
    """

    def __init__(
        self,
        entities: EntityService,
        registry: RendererRegistry,
        systems: GameSystemService,
        mention_cache: IMentionCountCache,
        *,
        zero_confirmations: int | None = None,
    ) -> None:
        self._entities = entities
        self._registry = registry
        self._systems = systems
        self._mention_cache = mention_cache
        self._zero_confirmations = zero_confirmations

    async def list_view(
        self,
        collection: str,
        *,
        system_id: str | None = None,
        filter_text: str | None = None,
        sort: SortSelection | None = None,
        limit: int | None = None,
        selected: str | None = None,
    ) -> dict[str, Any]:
        self._registry.resolve(collection)
        filters = [("systemId", FilterOp.EQ, system_id)] if system_id else None
        documents = await self._entities.load(collection, filters=filters)
        return build_list_view(
            collection,
            documents,
            self._registry,
            filter_text=filter_text,
            sort=sort,
            selected=selected,
            limit=limit,
        )

    async def get(self, collection: str, entity_id: str) -> dict[str, Any] | None:
        self._registry.resolve(collection)
        return await self._entities.get_by_id(collection, entity_id)

    async def create(
        self, collection: str, payload: Mapping[str, Any], *, user: str
    ) -> dict[str, Any] | None:
        renderer = self._registry.resolve(collection)
        document = renderer.validate({**payload, "_id": NEW_ENTITY_TEMP_ID})
        return await self._entities.save(collection, document, user=user)

    async def update(
        self, collection: str, entity_id: str, payload: Mapping[str, Any], *, user: str
    ) -> dict[str, Any] | None:
        """Merge ``payload`` into a stored entity; ``None`` when it does not exist."""

        renderer = self._registry.resolve(collection)
        existing = await self._entities.get_by_id(collection, entity_id)
        if existing is None:
            return None
        document = renderer.validate({**existing, **payload, "_id": entity_id})
        return await self._entities.save(collection, document, user=user)

    async def delete(self, collection: str, entity_id: str) -> None:
        self._registry.resolve(collection)
        await self._entities.delete(collection, entity_id)

    async def reference_report(
        self, collection: str, entity: Mapping[str, Any], *, system_key: str | None = None
    ) -> dict[str, Any]:
        """Reference and mention counts for ``entity`` under its system's policy."""

        self._registry.resolve(collection)
        policy = await self._systems.policy_for_key(system_key)
        scanner = factory.create_mention_scanner(self._entities, policy)
        mentions = await scanner.scan(entity, collection)
        # The cache may write to disk while counting.
        counter = await asyncio.to_thread(
            ReferenceCounter,
            entity,
            collection,
            mentions,
            self._mention_cache,
            zero_confirmations=self._zero_confirmations,
        )
        report = counter.as_dict()
        report["failed_collections"] = sorted(scanner.last_errors)
        return report

    async def editor_for(
        self,
        collection: str,
        entity: Mapping[str, Any],
        *,
        system_key: str | None = None,
        user: str | None = None,
    ) -> ReferenceEditor:
        self._registry.resolve(collection)
        policy = await self._systems.policy_for_key(system_key)
        return ReferenceEditor(self._entities, policy, collection, entity, user=user)


def read_version_file(path: Path) -> dict[str, Any]:
    """Load ``version.json``.

    Raises:
        OSError: the file cannot be read
        ValueError: the file is not a JSON object
    """

    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"{path} does not contain a JSON object")
    return data


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        store: IDocumentStore | None = None,
        registry: RendererRegistry | None = None,
        mention_cache: IMentionCountCache | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store or factory.create_document_store(self.settings)
        self.registry = (registry or default_registry()).freeze()
        self.entities = EntityService(self.store)
        # Raises PolicyError at startup when the configured hierarchy is invalid.
        self.policy = factory.create_default_policy(self.settings, self.registry)
        self.systems = factory.create_game_system_service(
            self.entities, self.policy, self.registry
        )
        self.mention_cache = mention_cache or factory.create_mention_cache(self.settings)
        self.content = ContentService(
            self.entities,
            self.registry,
            self.systems,
            self.mention_cache,
            zero_confirmations=self.settings.mention_zero_confirmations,
        )
        logger.info(
            "api state ready (store=%s, kinds=%s)", self.store.name, ", ".join(self.registry.kinds)
        )

    async def shutdown(self) -> None:
        logger.info("api state shut down")


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
