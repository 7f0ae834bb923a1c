"""Admin screen building blocks: renderers and list views."""

from .registry import (
    EntityRenderer,
    RegistryFrozenError,
    RendererRegistry,
    UnknownCollectionError,
    default_registry,
)
from .views import (
    SortSelection,
    UnsortableFieldError,
    build_list_view,
    filter_entities,
    sort_entities,
    toggle_sort,
)

__all__ = [
    "EntityRenderer",
    "RegistryFrozenError",
    "RendererRegistry",
    "SortSelection",
    "UnknownCollectionError",
    "UnsortableFieldError",
    "build_list_view",
    "default_registry",
    "filter_entities",
    "sort_entities",
    "toggle_sort",
]
