"""List screen helpers: text filtering, header sorting and row selection."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from warcodex.admin.registry import RendererRegistry
from warcodex.domain.enums import SortDirection
from warcodex.domain.selection import RowSelection, initial_selection, visible_rows
from warcodex.repository.query import SortRule, resolve_path, sort_documents


class UnsortableFieldError(ValueError):
    """Raised when a list is sorted by a column its renderer does not offer."""

    def __init__(self, collection: str, field: str) -> None:
        super().__init__(f"collection '{collection}' cannot be sorted by '{field}'")
        self.collection = collection
        self.field = field


@dataclass(frozen=True, slots=True)
class SortSelection:
    """Active column sort; ``direction`` is ``None`` when unsorted."""

    field: str | None = None
    direction: SortDirection | None = None

    @property
    def active(self) -> bool:
        return self.field is not None and self.direction is not None

    def as_rule(self) -> SortRule | None:
        if not self.active:
            return None
        return SortRule(self.field, self.direction)


def toggle_sort(selection: SortSelection, field: str) -> SortSelection:
    """Cycle a column through unsorted, ascending and descending."""

    if selection.field != field or selection.direction is None:
        return SortSelection(field, SortDirection.ASC)
    if selection.direction is SortDirection.ASC:
        return SortSelection(field, SortDirection.DESC)
    return SortSelection()


def filter_entities(
    entities: Iterable[Mapping[str, Any]], fields: Sequence[str], text: str | None
) -> list[Mapping[str, Any]]:
    """Keep entities where any of ``fields`` contains ``text`` (case-insensitive)."""

    entities = list(entities)
    needle = (text or "").strip().casefold()
    if not needle:
        return entities

    def _matches(entity: Mapping[str, Any]) -> bool:
        for name in fields:
            value = resolve_path(dict(entity), name)
            if isinstance(value, str | int | float) and needle in str(value).casefold():
                return True
        return False

    return [entity for entity in entities if _matches(entity)]


def sort_entities(
    entities: Iterable[Mapping[str, Any]], selection: SortSelection
) -> list[dict[str, Any]]:
    rows = [dict(entity) for entity in entities]
    rule = selection.as_rule()
    if rule is None:
        return rows
    return sort_documents(rows, rule)


def build_list_view(
    collection: str,
    entities: Sequence[Mapping[str, Any]],
    registry: RendererRegistry,
    *,
    filter_text: str | None = None,
    sort: SortSelection | None = None,
    selected: str | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Filtered, sorted and selection-aware rows for one collection.

    ``total`` counts every entity matching ``filter_text``; ``limit`` only
    caps the rows returned.

    Raises:
        UnknownCollectionError: no renderer handles ``collection``
        UnsortableFieldError: ``sort`` names a column outside
            ``sortable_fields``
    """

    renderer = registry.resolve(collection)
    sort = sort or SortSelection()
    if sort.active and sort.field not in renderer.sortable_fields:
        raise UnsortableFieldError(collection, sort.field)
    matching = filter_entities(entities, renderer.filterable_fields, filter_text)
    ordered = sort_entities(matching, sort)
    state: RowSelection = initial_selection((str(doc.get("_id")) for doc in ordered), selected)
    shown = visible_rows(ordered, state, key=lambda doc: str(doc.get("_id")))
    if limit is not None:
        shown = shown[:limit]
    return {
        "collection": collection,
        "kind": renderer.kind,
        "title": renderer.plural_name,
        "item_title": renderer.single_name,
        "items": [renderer.row(doc) for doc in shown],
        "total": len(matching),
        "selected": state.selected,
    }
