"""Tests for the entity store adapter."""

from __future__ import annotations

import pytest

from warcodex.database import create_db_engine, get_session_factory, init_db
from warcodex.domain.models import Keyword, Source
from warcodex.repository import (
    JsonDocumentStore,
    SqlDocumentStore,
    StoreError,
    StreamResetError,
)
from warcodex.services.entity_service import EntityService


class FlakyStore(JsonDocumentStore):
    """JSON store whose ``update`` fails a scripted number of times."""

    def __init__(self, base_path, failures):
        super().__init__(base_path)
        self.failures = list(failures)
        self.update_calls = 0

    async def update(self, collection, document_id, data):
        self.update_calls += 1
        if self.failures:
            raise self.failures.pop(0)
        await super().update(collection, document_id, data)


class CountingStore(JsonDocumentStore):
    def __init__(self, base_path):
        super().__init__(base_path)
        self.queries = []
        self.batches = []

    async def query(self, collection, query):
        self.queries.append(query)
        return await super().query(collection, query)

    async def delete_batch(self, collection, document_ids):
        self.batches.append(list(document_ids))
        await super().delete_batch(collection, document_ids)


@pytest.mark.asyncio
async def test_save_new_entity_sets_audit_fields(entities):
    saved = await entities.save("keywords", {"_id": "new", "name": "Fast"}, user="ed@example.com")

    assert saved["_id"] != "new"
    assert len(saved["_id"]) == 20
    assert saved["_createdAt"] == saved["_updatedAt"]
    assert saved["_isUpdated"] is False
    assert saved["_createdBy"] == saved["_updatedBy"] == "ed@example.com"
    assert saved["status"] == "active"


@pytest.mark.asyncio
async def test_save_model_without_id_creates(entities):
    saved = await entities.save("keywords", Keyword(name="Brave", systemId="cos"), user="u")
    assert saved is not None
    assert saved["systemId"] == "cos"
    assert await entities.exists("keywords", saved["_id"])


@pytest.mark.asyncio
async def test_update_existing_entity(entities):
    created = await entities.save("keywords", {"name": "Fast"}, user="alice")
    updated = await entities.save(
        "keywords",
        {**created, "name": "Faster", "_createdAt": "1999-01-01", "_isUpdated": False},
    )

    assert updated["name"] == "Faster"
    assert updated["_isUpdated"] is True
    assert updated["_createdAt"] == created["_createdAt"]
    assert updated["_createdBy"] == "alice"
    assert updated["_updatedAt"] >= created["_updatedAt"]
    # No acting user: the caller's _updatedBy is kept.
    assert updated["_updatedBy"] == "alice"


@pytest.mark.asyncio
async def test_update_without_any_user_uses_system_marker(entities):
    created = await entities.create("keywords", {"name": "Fast"})
    updated = await entities.update("keywords", created["_id"], {"name": "Slow"})
    assert updated["_updatedBy"] == "NEXT_BACKEND"


@pytest.mark.asyncio
async def test_update_retries_stream_reset_once(tmp_path):
    store = FlakyStore(tmp_path, [StreamResetError("RST_STREAM")])
    service = EntityService(store)
    created = await service.create("keywords", {"name": "Fast"})

    updated = await service.update("keywords", created["_id"], {"name": "Slow"}, user="u")

    assert store.update_calls == 2
    assert updated["name"] == "Slow"


@pytest.mark.asyncio
async def test_second_stream_reset_propagates(tmp_path):
    second = StreamResetError("RST_STREAM again")
    store = FlakyStore(tmp_path, [StreamResetError("RST_STREAM"), second])
    service = EntityService(store)
    created = await service.create("keywords", {"name": "Fast"})

    with pytest.raises(StreamResetError) as excinfo:
        await service.update("keywords", created["_id"], {"name": "Slow"})

    assert excinfo.value is second
    assert store.update_calls == 2
    assert (await service.get_by_id("keywords", created["_id"]))["name"] == "Fast"


@pytest.mark.asyncio
async def test_other_errors_are_not_retried(tmp_path):
    failure = StoreError("permission denied")
    store = FlakyStore(tmp_path, [failure])
    service = EntityService(store)
    created = await service.create("keywords", {"name": "Fast"})

    with pytest.raises(StoreError) as excinfo:
        await service.update("keywords", created["_id"], {"name": "Slow"})

    assert excinfo.value is failure
    assert store.update_calls == 1


@pytest.mark.asyncio
async def test_delete_is_idempotent(entities):
    created = await entities.create("keywords", {"name": "Fast"})
    await entities.delete("keywords", created["_id"])
    await entities.delete("keywords", created["_id"])
    assert await entities.get_by_id("keywords", created["_id"]) is None
    assert not await entities.exists("keywords", created["_id"])


@pytest.mark.asyncio
async def test_load_by_ids_chunks_queries(tmp_path):
    store = CountingStore(tmp_path)
    service = EntityService(store)
    ids = []
    for index in range(23):
        created = await service.create("traits", {"name": f"t{index}"})
        ids.append(created["_id"])
    store.queries.clear()

    loaded = await service.load_by_ids("traits", ids)

    assert sorted(doc["_id"] for doc in loaded) == sorted(ids)
    assert [len(query.filters[0].value) for query in store.queries] == [10, 10, 3]
    assert await service.load_by_ids("traits", []) == []


@pytest.mark.asyncio
async def test_load_excluding_ids(entities):
    ids = [(await entities.create("traits", {"name": f"t{i}"}))["_id"] for i in range(12)]

    few = await entities.load_excluding_ids("traits", ids[:2])
    many = await entities.load_excluding_ids("traits", ids[:11])
    none = await entities.load_excluding_ids("traits", [])

    assert {doc["_id"] for doc in few} == set(ids[2:])
    assert [doc["_id"] for doc in many] == [ids[11]]
    assert len(none) == 12


@pytest.mark.asyncio
async def test_delete_collection_in_batches(tmp_path):
    store = CountingStore(tmp_path)
    service = EntityService(store)
    for index in range(32):
        await service.create("cos-profiles", {"name": f"p{index}"})
    await service.create("cos-weapons", {"name": "keep"})

    deleted = await service.delete_collection("cos-profiles")

    assert deleted == 32
    assert [len(batch) for batch in store.batches] == [15, 15, 2]
    assert await service.load("cos-profiles") == []
    assert len(await service.load("cos-weapons")) == 1


@pytest.mark.asyncio
async def test_delete_empty_collection_issues_no_batches(tmp_path):
    store = CountingStore(tmp_path)
    service = EntityService(store)
    assert await service.delete_collection("nothing-here") == 0
    assert store.batches == []


@pytest.mark.asyncio
async def test_delete_collection_rejects_bad_batch_size(entities):
    with pytest.raises(ValueError):
        await entities.delete_collection("traits", batch_size=0)


@pytest.mark.asyncio
async def test_source_round_trip_keeps_enum_value(entities):
    source = Source(name="Errata", year=2024, version="1.1", type="FAQ/errata", systemId="cos")
    saved = await entities.save("sources", source, user="u")
    assert saved["type"] == "FAQ/errata"
    assert saved["year"] == 2024


@pytest.fixture(params=["json", "sql"])
def any_entities(request, tmp_path):
    if request.param == "json":
        return EntityService(JsonDocumentStore(tmp_path / "json"))
    engine = create_db_engine(f"sqlite:///{tmp_path / 'entities.db'}", echo=False)
    init_db(engine)
    return EntityService(SqlDocumentStore(get_session_factory(engine)))


@pytest.mark.asyncio
async def test_reference_map_round_trips_exactly(any_entities):
    created = await any_entities.create("weapons", {"name": "Lance", "references": {}})

    await any_entities.update("weapons", created["_id"], {"references": {"A": "profiles"}})
    reloaded = await any_entities.get_by_id("weapons", created["_id"])
    assert reloaded["references"] == {"A": "profiles"}

    await any_entities.update("weapons", created["_id"], {"references": {}})
    reloaded = await any_entities.get_by_id("weapons", created["_id"])
    assert reloaded["references"] == {}
