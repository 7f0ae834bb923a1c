"""Single-select row state kept apart from the row data."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TypeVar

RowT = TypeVar("RowT")


@dataclass(frozen=True, slots=True)
class RowSelection:
    """Currently selected row key, or ``None`` when nothing is selected."""

    selected: str | None = None

    @property
    def is_selected(self) -> bool:
        return self.selected is not None


def reduce_selection(state: RowSelection, key: str) -> RowSelection:
    """Apply a click on ``key``.

    A click with nothing selected selects the row; any click while a row is
    selected clears the selection and shows the full list again.
    """

    if state.is_selected:
        return RowSelection()
    return RowSelection(selected=key)


def initial_selection(keys: Iterable[str], preselected: str | None) -> RowSelection:
    """Start from ``preselected`` when it names one of ``keys``."""

    if preselected is not None and preselected in set(keys):
        return RowSelection(selected=preselected)
    return RowSelection()


def visible_rows(
    rows: Sequence[RowT],
    state: RowSelection,
    key: Callable[[RowT], str],
) -> list[RowT]:
    """Rows to display: all of them, or only the selected one."""

    if not state.is_selected:
        return list(rows)
    return [row for row in rows if key(row) == state.selected]
