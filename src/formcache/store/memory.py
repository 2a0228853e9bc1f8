"""In-memory store, used for tests and ephemeral sessions."""

from __future__ import annotations

from formcache.errors.exceptions import StoreError
from formcache.types import CacheStats, MediaResource, Survey


class MemoryStore:
    """Dict-backed store. Records are copied in and out."""

    def __init__(self) -> None:
        self._surveys: dict[str, Survey] = {}

    async def get(self, survey_id: str) -> Survey | None:
        survey = self._surveys.get(survey_id)
        return survey.model_copy(deep=True) if survey else None

    async def set(self, survey: Survey) -> Survey:
        self._surveys[survey.survey_id] = survey.model_copy(deep=True)
        return survey.model_copy(deep=True)

    async def update(self, survey: Survey) -> Survey:
        if survey.survey_id not in self._surveys:
            raise StoreError(f"Survey {survey.survey_id} is not in the store")
        return await self.set(survey)

    async def remove(self, survey_id: str) -> None:
        self._surveys.pop(survey_id, None)

    async def remove_all(self) -> None:
        self._surveys.clear()

    async def get_resource(self, survey_id: str, source_key: str) -> MediaResource | None:
        survey = self._surveys.get(survey_id)
        if survey is None:
            return None
        resource = survey.resources.get(source_key)
        return resource.model_copy() if resource else None

    def stats(self) -> CacheStats:
        size = sum(
            len(s.form_definition.encode("utf-8"))
            + sum(r.size_bytes for r in s.resources.items)
            for s in self._surveys.values()
        )
        return CacheStats(
            surveys=len(self._surveys),
            resources=sum(len(s.resources) for s in self._surveys.values()),
            size_mb=size / (1024 * 1024),
        )

    def close(self) -> None:
        self._surveys.clear()

    def __len__(self) -> int:
        return len(self._surveys)
