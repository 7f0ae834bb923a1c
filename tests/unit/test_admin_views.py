"""Tests for the renderer registry, list views and row selection."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from warcodex.admin import (
    EntityRenderer,
    RegistryFrozenError,
    SortSelection,
    UnknownCollectionError,
    UnsortableFieldError,
    build_list_view,
    default_registry,
    filter_entities,
    sort_entities,
    toggle_sort,
)
from warcodex.domain.enums import SortDirection
from warcodex.domain.models import Keyword
from warcodex.domain.selection import (
    RowSelection,
    initial_selection,
    reduce_selection,
    visible_rows,
)

ROWS = [
    {"_id": "a", "name": "Spear", "description": "Long pole"},
    {"_id": "b", "name": "Axe", "description": None},
    {"_id": "c", "name": "bow", "description": "Ranged"},
]


def test_reduce_selection_toggles():
    state = RowSelection()
    state = reduce_selection(state, "a")
    assert state.selected == "a"
    # Any click while selected clears, even on another row.
    assert reduce_selection(state, "b") == RowSelection()
    assert reduce_selection(state, "a") == RowSelection()


def test_visible_rows_never_mutates_rows():
    snapshot = [dict(row) for row in ROWS]
    assert visible_rows(ROWS, RowSelection(), key=lambda r: r["_id"]) == ROWS
    assert visible_rows(ROWS, RowSelection("b"), key=lambda r: r["_id"]) == [ROWS[1]]
    assert ROWS == snapshot


def test_initial_selection_ignores_unknown_keys():
    assert initial_selection(["a", "b"], "b") == RowSelection("b")
    assert initial_selection(["a", "b"], "z") == RowSelection()


def test_toggle_sort_cycles():
    state = toggle_sort(SortSelection(), "name")
    assert state == SortSelection("name", SortDirection.ASC)
    state = toggle_sort(state, "name")
    assert state.direction is SortDirection.DESC
    state = toggle_sort(state, "name")
    assert not state.active
    assert toggle_sort(SortSelection("name", SortDirection.DESC), "year").direction is (
        SortDirection.ASC
    )


def test_filter_entities_is_case_insensitive():
    assert [r["_id"] for r in filter_entities(ROWS, ["name"], "BO")] == ["c"]
    assert [r["_id"] for r in filter_entities(ROWS, ["name", "description"], "long")] == ["a"]
    assert filter_entities(ROWS, ["name"], "  ") == ROWS


def test_sort_entities():
    result = sort_entities(ROWS, SortSelection("name", SortDirection.DESC))
    assert [r["name"] for r in result] == ["bow", "Spear", "Axe"]
    assert sort_entities(ROWS, SortSelection()) == ROWS


def test_registry_resolves_prefixed_collections():
    registry = default_registry().freeze()
    assert registry.resolve("cos-profiles").kind == "profiles"
    assert registry.resolve("profiles").kind == "profiles"
    assert "cos-weapons" in registry
    assert "dragons" not in registry
    with pytest.raises(UnknownCollectionError):
        registry.resolve("cos-dragons")


def test_frozen_registry_rejects_registration():
    registry = default_registry().freeze()
    with pytest.raises(RegistryFrozenError):
        registry.register(EntityRenderer("extra", Keyword, dict, "Extra", "Extras"))


def test_duplicate_registration_is_rejected():
    registry = default_registry()
    with pytest.raises(ValueError):
        registry.register(EntityRenderer("keywords", Keyword, dict, "Keyword", "Keywords"))


def test_source_renderer_validates_edits():
    renderer = default_registry().resolve("sources")
    with pytest.raises(ValidationError):
        renderer.validate({"name": "Core"})

    document = renderer.validate(
        {"name": "Core", "year": 2021, "version": "2", "type": "rulebook", "extra": 1}
    )
    assert document["type"] == "rulebook"
    assert document["extra"] == 1
    assert document["_id"] == "new"


def test_build_list_view_applies_filter_sort_and_selection():
    registry = default_registry().freeze()
    view = build_list_view(
        "cos-weapons",
        ROWS,
        registry,
        filter_text="a",
        sort=SortSelection("name", SortDirection.ASC),
    )
    assert view["kind"] == "weapons"
    assert view["title"] == "Weapons"
    assert [item["name"] for item in view["items"]] == ["Axe", "Spear"]
    assert view["total"] == 2
    assert view["selected"] is None

    selected = build_list_view("cos-weapons", ROWS, registry, selected="c")
    assert [item["_id"] for item in selected["items"]] == ["c"]
    assert selected["total"] == 3


def test_build_list_view_limits_rows_not_total():
    registry = default_registry().freeze()
    view = build_list_view(
        "weapons", ROWS, registry, sort=SortSelection("name", SortDirection.ASC), limit=1
    )
    assert [item["name"] for item in view["items"]] == ["Axe"]
    assert view["total"] == 3
    assert view["item_title"] == "Weapon"


def test_build_list_view_rejects_unsortable_field():
    registry = default_registry().freeze()
    with pytest.raises(UnsortableFieldError, match="year"):
        build_list_view("weapons", ROWS, registry, sort=SortSelection("year", SortDirection.ASC))
    assert build_list_view("sources", [], registry, sort=SortSelection("year", SortDirection.ASC))
