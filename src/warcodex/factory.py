"""Service factory for warcodex.

This module wires stores and services from settings.  Use these functions in
production code so every service gets the same store and policy.

For testing, inject protocol-based fakes instead of using these factories.

Example:
    # Production usage
    from warcodex.factory import create_entity_service
    entities = create_entity_service(settings)

    # Testing usage
    from warcodex.services.entity_service import EntityService

    class FlakyStore(JsonDocumentStore):
        async def update(self, collection, document_id, data):
            raise StreamResetError("RST_STREAM")

    entities = EntityService(FlakyStore(tmp_path))
"""

from warcodex.admin.registry import RendererRegistry
from warcodex.config import Settings
from warcodex.database import create_db_engine, get_session_factory, init_db
from warcodex.domain.references import ReferencePolicy
from warcodex.interfaces import IDocumentStore, IMentionCountCache
from warcodex.repository import JsonDocumentStore, SqlDocumentStore
from warcodex.services.entity_service import EntityService
from warcodex.services.game_systems import GameSystemService
from warcodex.services.mentions import MentionScanner
from warcodex.services.reference_counter import InMemoryMentionCache, JsonMentionCache


def create_document_store(settings: Settings) -> IDocumentStore:
    """Create the document store selected by ``settings.store_backend``.

    The sql backend creates its table on first use.
    """
    if settings.store_backend == "sql":
        engine = create_db_engine(settings.database_url, echo=settings.database_echo)
        init_db(engine)
        return SqlDocumentStore(get_session_factory(engine))
    return JsonDocumentStore(settings.data_dir)


def create_entity_service(settings: Settings) -> EntityService:
    return EntityService(create_document_store(settings))


def create_default_policy(settings: Settings, registry: RendererRegistry) -> ReferencePolicy:
    """Build the default reference policy, checked against the registered kinds.

    Raises:
        PolicyError: the configured hierarchy is malformed or names an
            unregistered collection
    """
    return ReferencePolicy(settings.reference_hierarchy, known=registry.kinds)


def create_game_system_service(
    entities: EntityService, policy: ReferencePolicy, registry: RendererRegistry
) -> GameSystemService:
    return GameSystemService(entities, policy, known=registry.kinds)


def create_mention_scanner(entities: EntityService, policy: ReferencePolicy) -> MentionScanner:
    return MentionScanner(entities, policy)


def create_mention_cache(settings: Settings) -> IMentionCountCache:
    """Persistent cache when ``mention_cache_path`` is set, process-local otherwise."""
    if settings.mention_cache_path is not None:
        return JsonMentionCache(settings.mention_cache_path)
    return InMemoryMentionCache()
