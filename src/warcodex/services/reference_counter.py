"""Reference and mention counts as shown next to an entity.

The displayed mention count falls back to the last non-zero value seen for
the same ``(entity, collection)`` pair when a live recount comes back empty.
This hides empty reads while a scan is in flight, but it can also keep
showing a stale count after every mention has really been removed.  Passing
``zero_confirmations`` makes that many consecutive zero reads clear the cached
value.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from warcodex.domain.models import Mentions, Playable
from warcodex.domain.references import (
    collection_breakdown,
    count_mentions,
    count_references,
    mention_breakdown,
)
from warcodex.interfaces import IMentionCountCache

logger = logging.getLogger(__name__)


def cache_key(entity_id: str, collection: str) -> str:
    return f"mentNumber_{entity_id}_{collection}"


class InMemoryMentionCache:
    """Process-local mention count cache."""

    def __init__(self) -> None:
        self._values: dict[str, int] = {}
        self._zero_streaks: dict[str, int] = {}

    def get(self, entity_id: str, collection: str) -> int:
        return self._values.get(cache_key(entity_id, collection), 0)

    def set(self, entity_id: str, collection: str, value: int) -> None:
        self._values[cache_key(entity_id, collection)] = value

    def clear(self, entity_id: str, collection: str) -> None:
        self._values.pop(cache_key(entity_id, collection), None)

    def record_zero(self, entity_id: str, collection: str) -> int:
        key = cache_key(entity_id, collection)
        self._zero_streaks[key] = self._zero_streaks.get(key, 0) + 1
        return self._zero_streaks[key]

    def reset_zero(self, entity_id: str, collection: str) -> None:
        self._zero_streaks.pop(cache_key(entity_id, collection), None)


class JsonMentionCache(InMemoryMentionCache):
    """Mention count cache persisted to a JSON file.

    The file is rewritten only when a value changes.  Writes block, so async
    callers build their counters in a worker thread.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = path
        self._lock = threading.Lock()
        if path.exists():
            try:
                raw = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                logger.warning("ignoring unreadable mention cache %s", path)
                raw = {}
            self._values = {str(k): int(v) for k, v in raw.items()}

    def set(self, entity_id: str, collection: str, value: int) -> None:
        if self._values.get(cache_key(entity_id, collection)) == value:
            return
        super().set(entity_id, collection, value)
        self._flush()

    def clear(self, entity_id: str, collection: str) -> None:
        if cache_key(entity_id, collection) not in self._values:
            return
        super().clear(entity_id, collection)
        self._flush()

    def _flush(self) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(self._values, indent=2, sort_keys=True), "utf-8")


def _plural(count: int, singular: str, plural: str) -> str:
    return f"1 {singular}" if count == 1 else f"{count} {plural}"


class ReferenceCounter:
    """Counts of outgoing references and incoming mentions for one entity."""

    def __init__(
        self,
        entity: Playable | Mapping[str, Any],
        collection: str,
        mentions: Mentions | Mapping[str, list[Any]],
        cache: IMentionCountCache,
        *,
        zero_confirmations: int | None = None,
    ) -> None:
        self.entity = entity
        self.collection = collection
        self.mentions = mentions
        self._cache = cache
        self._zero_confirmations = zero_confirmations
        self.entity_id = entity.id if isinstance(entity, Playable) else str(entity["_id"])

        self.mention_count = count_mentions(mentions)
        if self.mention_count > 0:
            self._cache.set(self.entity_id, collection, self.mention_count)
            self._reset_zero_streak()
        else:
            self._observe_zero()

    @property
    def references(self) -> dict[str, str]:
        if isinstance(self.entity, Playable):
            return dict(self.entity.references or {})
        return dict(self.entity.get("references") or {})

    @property
    def reference_count(self) -> int:
        return count_references(self.entity)

    @property
    def display_mention_count(self) -> int:
        if self.mention_count == 0:
            previous = self._cache.get(self.entity_id, self.collection)
            if previous > 0:
                return previous
        return self.mention_count

    @property
    def reference_message(self) -> str:
        return _plural(self.reference_count, "reference", "references")

    @property
    def mention_message(self) -> str:
        return _plural(self.display_mention_count, "outer mention", "outer mentions")

    def reference_breakdown(self) -> list[tuple[str, int]]:
        return collection_breakdown(self.references.values())

    def mention_breakdown(self) -> list[tuple[str, int]]:
        return mention_breakdown(self.mentions)

    def _observe_zero(self) -> None:
        if self._zero_confirmations is None:
            return
        if self._cache.record_zero(self.entity_id, self.collection) >= self._zero_confirmations:
            self._cache.clear(self.entity_id, self.collection)
            self._reset_zero_streak()

    def _reset_zero_streak(self) -> None:
        self._cache.reset_zero(self.entity_id, self.collection)

    def as_dict(self) -> dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "collection": self.collection,
            "references": self.references,
            "reference_count": self.reference_count,
            "mention_count": self.mention_count,
            "display_mention_count": self.display_mention_count,
            "reference_message": self.reference_message,
            "mention_message": self.mention_message,
            "reference_breakdown": dict(self.reference_breakdown()),
            "mention_breakdown": dict(self.mention_breakdown()),
            "mentions": {
                name: [_mention_id(item) for item in items]
                for name, items in self.mentions.items()
            },
        }


def _mention_id(item: Any) -> str:
    if isinstance(item, Playable):
        return item.id
    return str(item["_id"])
