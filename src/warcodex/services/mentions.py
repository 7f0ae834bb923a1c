"""Mention scanning: discover which documents reference an entity."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from warcodex.domain.enums import FilterOp
from warcodex.domain.models import Mentions, Playable, from_document
from warcodex.domain.references import ReferencePolicy
from warcodex.services.entity_service import EntityService

logger = logging.getLogger(__name__)


class MentionScanner:
    """Fan out one query per collection allowed to mention a collection.

    Sub-queries run concurrently and the result is only assembled once all of
    them have settled.  A failing sub-query is logged and contributes an empty
    list; its exception is kept in ``last_errors``.  A mentioning document
    that does not validate fails its whole collection the same way.
    """

    def __init__(self, entities: EntityService, policy: ReferencePolicy) -> None:
        self._entities = entities
        self._policy = policy
        self.last_errors: dict[str, BaseException] = {}

    @property
    def policy(self) -> ReferencePolicy:
        return self._policy

    async def scan(
        self, entity: Playable | Mapping[str, Any], collection_name: str
    ) -> Mentions:
        """Return ``{collection: [playables referencing entity]}``."""

        entity_id = entity.id if isinstance(entity, Playable) else entity["_id"]
        mentioning = self._policy.can_be_mentioned_by(collection_name)
        self.last_errors = {}
        if not mentioning:
            return {}

        results = await asyncio.gather(
            *(
                self._entities.load(
                    name,
                    filters=[(f"references.{entity_id}", FilterOp.EQ, collection_name)],
                    without_sort=True,
                )
                for name in mentioning
            ),
            return_exceptions=True,
        )

        mentions: Mentions = {}
        for name, result in zip(mentioning, results, strict=True):
            if not isinstance(result, BaseException):
                try:
                    mentions[name] = [from_document(Playable, doc) for doc in result]
                    continue
                except ValidationError as exc:
                    result = exc
            logger.error(
                "mention scan of %s for %s/%s failed: %s",
                name,
                collection_name,
                entity_id,
                result,
            )
            self.last_errors[name] = result
            mentions[name] = []
        return mentions
