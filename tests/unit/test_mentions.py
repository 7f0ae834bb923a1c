"""Tests for mention scanning."""

from __future__ import annotations

import pytest

from warcodex.domain.models import Playable
from warcodex.domain.references import ReferencePolicy
from warcodex.repository import JsonDocumentStore, StoreError
from warcodex.services.entity_service import EntityService
from warcodex.services.mentions import MentionScanner


class BrokenCollectionStore(JsonDocumentStore):
    def __init__(self, base_path, broken):
        super().__init__(base_path)
        self.broken = broken

    async def query(self, collection, query):
        if collection == self.broken:
            raise StoreError(f"{collection} unavailable")
        return await super().query(collection, query)


async def _seed(service: EntityService) -> dict:
    source = await service.create("sources", {"name": "Core", "year": 2020, "version": "1"})
    sid = source["_id"]
    await service.create("profiles", {"name": "Knight", "references": {sid: "sources"}})
    await service.create("weapons", {"name": "Lance", "references": {sid: "sources"}})
    await service.create("weapons", {"name": "Mace", "references": {sid: "sources", "x": "traits"}})
    await service.create("weapons", {"name": "Club", "references": {"other": "sources"}})
    await service.create("traits", {"name": "Brave"})
    return source


@pytest.mark.asyncio
async def test_scan_collects_mentions_per_collection(entities):
    source = await _seed(entities)
    policy = ReferencePolicy.from_mentioned_by({"sources": ["profiles", "weapons"]})

    mentions = await MentionScanner(entities, policy).scan(source, "sources")

    assert set(mentions) == {"profiles", "weapons"}
    assert [p.name for p in mentions["profiles"]] == ["Knight"]
    assert sorted(p.name for p in mentions["weapons"]) == ["Lance", "Mace"]
    assert all(isinstance(item, Playable) for items in mentions.values() for item in items)


@pytest.mark.asyncio
async def test_scan_requires_matching_collection_name(entities):
    source = await _seed(entities)
    policy = ReferencePolicy.from_mentioned_by({"sources": ["weapons"]})

    # The same id recorded under another collection name is not a mention.
    mentions = await MentionScanner(entities, policy).scan(source, "traits")
    assert mentions == {}

    traits_policy = ReferencePolicy.from_mentioned_by({"traits": ["weapons"]})
    mentions = await MentionScanner(entities, traits_policy).scan(source, "traits")
    assert mentions == {"weapons": []}


@pytest.mark.asyncio
async def test_empty_policy_returns_empty_mentions(entities):
    source = await _seed(entities)
    assert await MentionScanner(entities, ReferencePolicy()).scan(source, "sources") == {}


@pytest.mark.asyncio
async def test_failed_subquery_stays_local(tmp_path):
    service = EntityService(BrokenCollectionStore(tmp_path, broken="profiles"))
    source = await _seed(service)
    policy = ReferencePolicy.from_mentioned_by({"sources": ["profiles", "weapons"]})
    scanner = MentionScanner(service, policy)

    mentions = await scanner.scan(source, "sources")

    assert mentions["profiles"] == []
    assert len(mentions["weapons"]) == 2
    assert list(scanner.last_errors) == ["profiles"]


@pytest.mark.asyncio
async def test_invalid_mentioning_document_stays_local(entities):
    source = await _seed(entities)
    await entities.create(
        "weapons",
        {"name": "Rusty", "status": "archived", "references": {source["_id"]: "sources"}},
    )
    policy = ReferencePolicy.from_mentioned_by({"sources": ["profiles", "weapons"]})
    scanner = MentionScanner(entities, policy)

    mentions = await scanner.scan(source, "sources")

    assert [p.name for p in mentions["profiles"]] == ["Knight"]
    assert mentions["weapons"] == []
    assert list(scanner.last_errors) == ["weapons"]
