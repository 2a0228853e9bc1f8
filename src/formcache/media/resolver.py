"""Resolve a survey's media: fetch each distinct source once, then bind."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from formcache.errors.exceptions import ResolverError, ResourceFetchError
from formcache.media.binder import ResourceReferenceBinder
from formcache.media.target import RenderTarget
from formcache.types import MediaResource, ResourceSet, Survey

if TYPE_CHECKING:
    from formcache.connection.base import Connection
    from formcache.store.base import Store

logger = logging.getLogger(__name__)


class MediaResolver:
    """Loads survey media either from the store or over the network."""

    def __init__(
        self,
        store: Store,
        connection: Connection,
        binder: ResourceReferenceBinder | None = None,
    ) -> None:
        self._store = store
        self._connection = connection
        self._binder = binder or ResourceReferenceBinder(store)

    async def resolve_media(self, survey: Survey, target: RenderTarget) -> Survey:
        """Make sure media are stored, then bind them into *target*.

        Once a pass has run (even a partial one) the store is trusted and
        no network request is made. Raises ``ResolverError`` when the pass
        itself breaks; individual source failures never do.
        """
        if not survey.resources.is_unresolved:
            await self._binder.bind(survey, target)
            return survey

        try:
            source_keys = list(target.grouped_by_source())
            outcomes = await asyncio.gather(
                *(self._fetch(key) for key in source_keys), return_exceptions=True
            )
            fetched: list[MediaResource] = []
            for outcome in outcomes:
                if isinstance(outcome, ResourceFetchError):
                    logger.warning(
                        "Failed to fetch media %s: %s", outcome.source_key, outcome.message
                    )
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    fetched.append(outcome)
            resolved = survey.model_copy(
                update={"resources": ResourceSet.from_outcomes(fetched, len(source_keys))}
            )
            stored = await self._store.update(resolved)
            logger.info(
                "Stored %d of %d media file(s) for survey %s",
                len(fetched),
                len(source_keys),
                survey.survey_id,
            )
        except Exception as e:
            raise ResolverError(
                f"Media resolution failed for {survey.survey_id}: {e}",
                survey_id=survey.survey_id,
            ) from e

        survey.resources = stored.resources
        await self._binder.bind(survey, target)
        return survey

    async def _fetch(self, source_key: str) -> MediaResource:
        try:
            resource = await self._connection.get_media_file(source_key)
        except Exception as e:
            raise ResourceFetchError(str(e), source_key=source_key, inner=e) from e
        if resource.source_key != source_key:
            resource = resource.model_copy(update={"source_key": source_key})
        return resource
