"""Reference policy and reference/mention arithmetic.

A playable records its outgoing links in a Reference Map
(``{target_id: target_collection}``).  Incoming links ("mentions") are never
stored; they are discovered by scanning the collections that the policy
allows to refer to the entity's collection.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping
from typing import Any

from .models import Mentions, Playable


class PolicyError(ValueError):
    """Raised when a reference hierarchy is malformed or violated."""


class ReferencePolicy:
    """Directed graph of which collections may refer to which.

    Edges point from the referring collection to the referred one, the same
    orientation as a game system's ``referenceHierarchy`` document field.
    """

    def __init__(
        self,
        allowed_to_refer: Mapping[str, Iterable[str]] | None = None,
        *,
        known: Iterable[str] | None = None,
    ) -> None:
        graph: dict[str, tuple[str, ...]] = {}
        for source, targets in (allowed_to_refer or {}).items():
            if not isinstance(source, str) or not source:
                raise PolicyError(f"invalid collection name in policy: {source!r}")
            if isinstance(targets, str):
                raise PolicyError(f"targets for '{source}' must be a list, not a string")
            target_list = tuple(targets)
            for target in target_list:
                if not isinstance(target, str) or not target:
                    raise PolicyError(f"invalid target of '{source}': {target!r}")
            duplicates = [name for name, count in Counter(target_list).items() if count > 1]
            if duplicates:
                raise PolicyError(f"duplicate targets for '{source}': {', '.join(duplicates)}")
            graph[source] = target_list

        if known is not None:
            known_names = set(known)
            mentioned = set(graph) | {t for targets in graph.values() for t in targets}
            unknown = sorted(name for name in mentioned if not _is_known(name, known_names))
            if unknown:
                raise PolicyError(f"unknown collections in policy: {', '.join(unknown)}")

        self._graph = graph
        inverse: dict[str, list[str]] = {}
        for source, targets in graph.items():
            for target in targets:
                inverse.setdefault(target, []).append(source)
        self._inverse = {target: sorted(sources) for target, sources in inverse.items()}

    @classmethod
    def from_mentioned_by(
        cls,
        can_be_mentioned_by: Mapping[str, Iterable[str]],
        *,
        known: Iterable[str] | None = None,
    ) -> ReferencePolicy:
        """Build a policy from ``{collection: [collections that may mention it]}``."""

        graph: dict[str, list[str]] = {}
        for target, sources in can_be_mentioned_by.items():
            if isinstance(sources, str):
                raise PolicyError(f"mentioners of '{target}' must be a list, not a string")
            for source in sources:
                graph.setdefault(source, []).append(target)
        return cls(graph, known=known)

    def allowed_to_refer(self, name: str) -> list[str]:
        """Collections that documents of ``name`` may reference."""

        return _lookup(self._graph, name)

    def can_be_mentioned_by(self, name: str) -> list[str]:
        """Collections whose documents may reference documents of ``name``."""

        return sorted(_lookup(self._inverse, name))

    def allows(self, source: str, target: str) -> bool:
        return target in self.allowed_to_refer(source)

    def as_dict(self) -> dict[str, list[str]]:
        return {source: list(targets) for source, targets in self._graph.items()}

    def __bool__(self) -> bool:
        return bool(self._graph)

    def __repr__(self) -> str:
        return f"ReferencePolicy({self.as_dict()!r})"


def _lookup(edges: Mapping[str, Iterable[str]], name: str) -> list[str]:
    # An unlisted "cos-profiles" follows the "profiles" entry, keeping its prefix.
    if name in edges:
        return list(edges[name])
    prefix, sep, kind = name.rpartition("-")
    if sep and prefix and kind in edges:
        return [f"{prefix}-{other}" for other in edges[kind]]
    return []


def _is_known(name: str, known: set[str]) -> bool:
    # System-prefixed collections ("cos-profiles") are known by their suffix.
    return name in known or name.rsplit("-", 1)[-1] in known


def _references_of(entity: Playable | Mapping[str, Any]) -> Mapping[str, Any] | None:
    if isinstance(entity, Playable):
        return entity.references
    return entity.get("references")


def count_references(entity: Playable | Mapping[str, Any]) -> int:
    """Number of outgoing references recorded on ``entity``."""

    references = _references_of(entity)
    return len(references) if references else 0


def count_mentions(mentions: Mapping[str, list[Any]]) -> int:
    """Total number of mentioning documents across every collection."""

    return sum(len(items) for items in mentions.values())


def collection_breakdown(collection_names: Iterable[str]) -> list[tuple[str, int]]:
    """Group collection names and count them, ordered by collection name."""

    return sorted(Counter(collection_names).items())


def mention_breakdown(mentions: Mentions | Mapping[str, list[Any]]) -> list[tuple[str, int]]:
    """Per-collection mention counts, skipping empty collections."""

    return sorted((name, len(items)) for name, items in mentions.items() if items)
