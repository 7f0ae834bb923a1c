"""Enumerations shared across the warcodex domain."""

from __future__ import annotations

from enum import StrEnum


class EntityStatus(StrEnum):
    """Lifecycle state carried by every persisted entity."""

    ACTIVE = "active"
    DISABLED = "disabled"
    OBSOLETE = "obsolete"


class SourceType(StrEnum):
    """Bibliographic category of a rulebook or supplement."""

    RULEBOOK = "rulebook"
    SUPPLEMENT = "supplement"
    EXPANSION = "expansion"
    FAQ_ERRATA = "FAQ/errata"
    PLAYTEST = "playtest"
    TECHNICAL = "technical"


class FilterOp(StrEnum):
    """Comparison operators understood by the document stores."""

    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    ARRAY_CONTAINS = "array-contains"
    ARRAY_CONTAINS_ANY = "array-contains-any"
    IN = "in"
    NOT_IN = "not-in"


class SortDirection(StrEnum):
    """Ordering direction for a single sort field."""

    ASC = "asc"
    DESC = "desc"
