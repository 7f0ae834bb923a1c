"""Query model shared by every document store backend.

Filters are ``(field, operator, value)`` triples ANDed together; ``field`` may
be a dotted path into nested maps (``references.<id>``).  Sorting is a single
``(field, direction)`` pair.  When no sort is given the query falls back to
newest-first by ``_createdAt`` unless ``without_sort`` asks for the store's
native (insertion) order.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from warcodex.domain.enums import FilterOp, SortDirection

_MISSING = object()


@dataclass(frozen=True, slots=True)
class FieldFilter:
    """One ``field op value`` condition."""

    field: str
    op: FilterOp | str
    value: Any

    @classmethod
    def of(cls, triple: FieldFilter | Sequence[Any]) -> FieldFilter:
        if isinstance(triple, FieldFilter):
            return triple
        field_path, op, value = triple
        return cls(field_path, FilterOp(op) if op else op, value)

    @property
    def is_active(self) -> bool:
        # Incomplete triples are skipped rather than rejected.
        return bool(self.field) and bool(self.op) and self.value is not None

    def matches(self, document: dict[str, Any]) -> bool:
        return _evaluate(FilterOp(self.op), resolve_path(document, self.field), self.value)


@dataclass(frozen=True, slots=True)
class SortRule:
    """Single-field ordering."""

    field: str
    direction: SortDirection | str = SortDirection.ASC

    @classmethod
    def of(cls, pair: SortRule | Sequence[str]) -> SortRule:
        if isinstance(pair, SortRule):
            return pair
        field_path, direction = pair
        return cls(field_path, direction)

    @property
    def descending(self) -> bool:
        return SortDirection(self.direction) is SortDirection.DESC


DEFAULT_SORT = SortRule("_createdAt", SortDirection.DESC)


@dataclass(frozen=True, slots=True)
class DocumentQuery:
    """Everything a store needs to answer a collection query."""

    filters: tuple[FieldFilter, ...] = field(default_factory=tuple)
    sort: SortRule | None = None
    limit: int | None = None
    start_after: str | None = None
    without_sort: bool = False

    @classmethod
    def build(
        cls,
        *,
        filters: Iterable[FieldFilter | Sequence[Any]] | None = None,
        sort: SortRule | Sequence[str] | None = None,
        limit: int | None = None,
        start_after: str | None = None,
        without_sort: bool = False,
    ) -> DocumentQuery:
        return cls(
            filters=tuple(FieldFilter.of(item) for item in filters or ()),
            sort=SortRule.of(sort) if sort else None,
            limit=limit,
            start_after=start_after,
            without_sort=without_sort,
        )

    @property
    def effective_sort(self) -> SortRule | None:
        if self.sort is not None and self.sort.field and self.sort.direction:
            return self.sort
        if self.without_sort:
            return None
        return DEFAULT_SORT

    def apply(self, documents: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
        """Filter, order, paginate and truncate ``documents``."""

        active = [f for f in self.filters if f.is_active]
        result = [doc for doc in documents if all(f.matches(doc) for f in active)]

        sort = self.effective_sort
        if sort is not None:
            result = sort_documents(result, sort)

        if self.start_after is not None:
            ids = [doc.get("_id") for doc in result]
            if self.start_after not in ids:
                return []
            result = result[ids.index(self.start_after) + 1 :]

        if self.limit is not None:
            result = result[: max(self.limit, 0)]
        return result


def resolve_path(document: dict[str, Any], path: str) -> Any:
    """Follow a dotted path into nested dictionaries; ``_MISSING`` if absent."""

    current: Any = document
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return _MISSING
        current = current[part]
    return current


def sort_documents(documents: list[dict[str, Any]], rule: SortRule) -> list[dict[str, Any]]:
    """Stable sort on one field; documents lacking the field go last."""

    present = []
    missing = []
    for doc in documents:
        value = resolve_path(doc, rule.field)
        if value is _MISSING or value is None:
            missing.append(doc)
        else:
            present.append((_sort_key(value), doc))
    present.sort(key=lambda item: item[0], reverse=rule.descending)
    return [doc for _, doc in present] + missing


def _sort_key(value: Any) -> tuple[int, Any]:
    if isinstance(value, bool):
        return (0, int(value))
    if isinstance(value, int | float):
        return (0, value)
    if isinstance(value, str):
        return (1, value)
    return (2, str(value))


def _evaluate(op: FilterOp, actual: Any, expected: Any) -> bool:
    if actual is _MISSING:
        return False
    try:
        match op:
            case FilterOp.EQ:
                return actual == expected
            case FilterOp.NE:
                return actual != expected
            case FilterOp.LT:
                return actual < expected
            case FilterOp.LE:
                return actual <= expected
            case FilterOp.GT:
                return actual > expected
            case FilterOp.GE:
                return actual >= expected
            case FilterOp.ARRAY_CONTAINS:
                return isinstance(actual, list) and expected in actual
            case FilterOp.ARRAY_CONTAINS_ANY:
                return isinstance(actual, list) and any(item in actual for item in expected)
            case FilterOp.IN:
                return actual in expected
            case FilterOp.NOT_IN:
                return actual not in expected
    except TypeError:
        return False
    return False  # pragma: no cover - exhaustive match above
