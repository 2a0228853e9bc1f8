"""Store contract consumed by the cache core."""

from __future__ import annotations

from typing import Protocol

from formcache.types import CacheStats, MediaResource, Survey


class Store(Protocol):
    """Async key-value persistence for surveys and their media.

    Per-key reads and writes are assumed atomic. ``update`` replaces an
    existing survey and its resource rows with ``survey.resources.items``;
    it raises ``StoreError`` when the survey is no longer stored.
    """

    async def get(self, survey_id: str) -> Survey | None: ...

    async def set(self, survey: Survey) -> Survey: ...

    async def update(self, survey: Survey) -> Survey: ...

    async def remove(self, survey_id: str) -> None: ...

    async def remove_all(self) -> None: ...

    async def get_resource(self, survey_id: str, source_key: str) -> MediaResource | None: ...

    def stats(self) -> CacheStats: ...

    def close(self) -> None: ...
