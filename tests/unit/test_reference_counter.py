"""Tests for reference/mention counting and the mention count cache."""

from __future__ import annotations

import json

from warcodex.domain.models import Playable
from warcodex.services.reference_counter import (
    InMemoryMentionCache,
    JsonMentionCache,
    ReferenceCounter,
    cache_key,
)

ENTITY = {"_id": "t1", "name": "Brave", "references": {"s1": "sources", "k1": "keywords"}}


def _mentions(count: int) -> dict:
    return {"weapons": [Playable(_id=f"w{i}") for i in range(count)]}


def test_counts_and_messages():
    counter = ReferenceCounter(ENTITY, "traits", _mentions(1), InMemoryMentionCache())

    assert counter.reference_count == 2
    assert counter.mention_count == 1
    assert counter.reference_message == "2 references"
    assert counter.mention_message == "1 outer mention"
    assert counter.reference_breakdown() == [("keywords", 1), ("sources", 1)]
    assert counter.mention_breakdown() == [("weapons", 1)]


def test_singular_and_zero_messages():
    entity = {"_id": "t2", "references": {"s1": "sources"}}
    counter = ReferenceCounter(entity, "traits", {}, InMemoryMentionCache())
    assert counter.reference_message == "1 reference"
    assert counter.mention_message == "0 outer mentions"


def test_zero_read_shows_cached_count():
    cache = InMemoryMentionCache()
    ReferenceCounter(ENTITY, "traits", _mentions(3), cache)

    later = ReferenceCounter(ENTITY, "traits", {"weapons": []}, cache)

    assert later.mention_count == 0
    assert later.display_mention_count == 3
    assert later.mention_message == "3 outer mentions"


def test_cache_is_keyed_by_collection():
    cache = InMemoryMentionCache()
    ReferenceCounter(ENTITY, "traits", _mentions(3), cache)

    other = ReferenceCounter(ENTITY, "cos-traits", {}, cache)
    assert other.display_mention_count == 0


def test_live_count_wins_when_non_zero():
    cache = InMemoryMentionCache()
    ReferenceCounter(ENTITY, "traits", _mentions(3), cache)
    counter = ReferenceCounter(ENTITY, "traits", _mentions(1), cache)
    assert counter.display_mention_count == 1
    assert cache.get("t1", "traits") == 1


def test_zero_confirmations_clear_stale_count():
    cache = InMemoryMentionCache()
    ReferenceCounter(ENTITY, "traits", _mentions(2), cache, zero_confirmations=2)

    first = ReferenceCounter(ENTITY, "traits", {}, cache, zero_confirmations=2)
    assert first.display_mention_count == 2

    second = ReferenceCounter(ENTITY, "traits", {}, cache, zero_confirmations=2)
    assert second.display_mention_count == 0


def test_non_zero_read_resets_zero_streak():
    cache = InMemoryMentionCache()
    ReferenceCounter(ENTITY, "traits", _mentions(2), cache, zero_confirmations=2)
    ReferenceCounter(ENTITY, "traits", {}, cache, zero_confirmations=2)
    ReferenceCounter(ENTITY, "traits", _mentions(4), cache, zero_confirmations=2)

    counter = ReferenceCounter(ENTITY, "traits", {}, cache, zero_confirmations=2)
    assert counter.display_mention_count == 4


def test_as_dict_lists_mention_ids():
    entity = Playable.model_validate(ENTITY)
    payload = ReferenceCounter(entity, "traits", _mentions(2), InMemoryMentionCache()).as_dict()
    assert payload["entity_id"] == "t1"
    assert payload["mentions"] == {"weapons": ["w0", "w1"]}
    assert payload["reference_breakdown"] == {"keywords": 1, "sources": 1}
    assert payload["display_mention_count"] == 2


def test_json_cache_persists(tmp_path):
    path = tmp_path / "mentions.json"
    cache = JsonMentionCache(path)
    ReferenceCounter(ENTITY, "traits", _mentions(5), cache)

    stored = json.loads(path.read_text(encoding="utf-8"))
    assert stored == {cache_key("t1", "traits"): 5}
    assert cache_key("t1", "traits") == "mentNumber_t1_traits"

    reopened = JsonMentionCache(path)
    assert ReferenceCounter(ENTITY, "traits", {}, reopened).display_mention_count == 5


def test_json_cache_ignores_corrupt_file(tmp_path):
    path = tmp_path / "mentions.json"
    path.write_text("{not json", encoding="utf-8")
    assert JsonMentionCache(path).get("t1", "traits") == 0


class CountingJsonCache(JsonMentionCache):
    def __init__(self, path):
        super().__init__(path)
        self.flushes = 0

    def _flush(self):
        self.flushes += 1
        super()._flush()


def test_json_cache_skips_unchanged_writes(tmp_path):
    cache = CountingJsonCache(tmp_path / "mentions.json")

    ReferenceCounter(ENTITY, "traits", _mentions(3), cache)
    ReferenceCounter(ENTITY, "traits", _mentions(3), cache)
    assert cache.flushes == 1

    ReferenceCounter(ENTITY, "traits", _mentions(4), cache)
    assert cache.flushes == 2

    cache.clear("t1", "traits")
    cache.clear("t1", "traits")
    assert cache.flushes == 3
