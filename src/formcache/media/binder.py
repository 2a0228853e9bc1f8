"""Bind stored media into the render target as local data URIs."""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING

from formcache.media.target import RenderTarget
from formcache.types import MediaResource, Survey

if TYPE_CHECKING:
    from formcache.store.base import Store

logger = logging.getLogger(__name__)

RENDER_ATTRIBUTE = "src"


def to_data_uri(resource: MediaResource) -> str:
    """Materialize a resource as a self-contained ``data:`` reference."""
    mime = resource.content_type.split(";", 1)[0].strip() or "application/octet-stream"
    payload = base64.b64encode(resource.item).decode("ascii")
    return f"data:{mime};base64,{payload}"


class ResourceReferenceBinder:
    """Assigns one materialized reference per distinct source to its elements."""

    def __init__(self, store: Store) -> None:
        self._store = store

    async def bind(self, survey: Survey, target: RenderTarget) -> int:
        """Bind every group whose resource is stored. Returns groups bound.

        Groups without a complete stored resource stay unbound; the form
        still renders, just without that media.
        """
        bound = 0
        for source_key, elements in target.grouped_by_source().items():
            resource = await self._store.get_resource(survey.survey_id, source_key)
            if resource is None or not resource.is_complete:
                logger.warning(
                    "Resource %s for survey %s not found or not complete",
                    source_key,
                    survey.survey_id,
                )
                continue
            reference = to_data_uri(resource)
            for element in elements:
                element[RENDER_ATTRIBUTE] = reference
            bound += 1
        logger.debug("Bound %d media group(s) for survey %s", bound, survey.survey_id)
        return bound
