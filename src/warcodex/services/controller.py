"""Entity operations as consumed by an admin screen.

Store failures stop here: they are logged, kept in ``error`` and the call
returns an empty result, so a screen can render whatever it has.  Writing
without a signed-in user is the exception and is raised.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from warcodex.domain.models import Entity
from warcodex.repository.query import FieldFilter, SortRule
from warcodex.services.entity_service import EntityService

logger = logging.getLogger(__name__)


class UnauthorizedError(PermissionError):
    """Raised when a write is attempted without an authenticated user."""


class EntityController:
    """Stateful wrapper tracking ``loading`` and the last ``error``."""

    def __init__(self, service: EntityService, *, email: str | None = None) -> None:
        self._service = service
        self.email = email
        self.loading = False
        self.error: Exception | None = None

    def _check_email(self) -> str:
        if not self.email:
            raise UnauthorizedError("Unauthorized modifying!")
        return self.email

    def _fail(self, exc: Exception, action: str) -> None:
        logger.exception("%s failed", action)
        self.error = exc

    async def load_entities(
        self,
        collection: str | None,
        *,
        filters: Iterable[FieldFilter | Sequence[Any]] | None = None,
        sort: SortRule | Sequence[str] | None = None,
        limit: int | None = None,
        start_after: str | None = None,
        without_sort: bool = False,
    ) -> list[dict[str, Any]]:
        if not collection:
            return []
        self.loading = True
        try:
            return await self._service.load(
                collection,
                filters=filters,
                sort=sort,
                limit=limit,
                start_after=start_after,
                without_sort=without_sort,
            )
        except Exception as exc:
            self._fail(exc, f"loading {collection}")
        finally:
            self.loading = False
        return []

    async def get_entity(self, collection: str | None, entity_id: str | None) -> dict | None:
        if not collection or not entity_id:
            return None
        self.loading = True
        try:
            return await self._service.get_by_id(collection, entity_id)
        except Exception as exc:
            self._fail(exc, f"loading {collection}/{entity_id}")
        finally:
            self.loading = False
        return None

    async def save_entity(
        self, collection: str | None, entity: Entity | Mapping[str, Any] | None
    ) -> dict[str, Any] | None:
        email = self._check_email()
        if not collection or not entity:
            self.error = ValueError(
                "Document save destination is unknown!"
                if not collection
                else "Saved document is empty!"
            )
            return None
        self.loading = True
        try:
            return await self._service.save(collection, entity, user=email)
        except Exception as exc:
            self._fail(exc, f"saving into {collection}")
        finally:
            self.loading = False
        return None

    async def delete_entity(self, collection: str | None, entity_id: str | None) -> None:
        self._check_email()
        if not collection or not entity_id:
            self.error = ValueError(
                "Document site to delete is unknown!"
                if not collection
                else "Deleted document ID is empty!"
            )
            return
        self.loading = True
        try:
            await self._service.delete(collection, entity_id)
        except Exception as exc:
            self._fail(exc, f"deleting {collection}/{entity_id}")
        finally:
            self.loading = False

    async def load_references(
        self, collection: str | None, ids: Sequence[str]
    ) -> list[dict[str, Any]]:
        if not collection:
            return []
        self.loading = True
        try:
            return await self._service.load_by_ids(collection, ids)
        except Exception as exc:
            self._fail(exc, f"loading references from {collection}")
        finally:
            self.loading = False
        return []

    async def load_entities_for_references(
        self, collection: str | None, excluded_ids: Sequence[str]
    ) -> list[dict[str, Any]]:
        if not collection:
            return []
        self.loading = True
        try:
            return await self._service.load_excluding_ids(collection, excluded_ids)
        except Exception as exc:
            self._fail(exc, f"loading reference candidates from {collection}")
        finally:
            self.loading = False
        return []
