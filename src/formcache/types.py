"""Shared Pydantic models for formcache."""

from __future__ import annotations

import time
from enum import StrEnum

from pydantic import BaseModel, Field, model_validator

# ── Enums ──


class ResourceState(StrEnum):
    UNRESOLVED = "unresolved"
    PARTIAL = "partial"
    RESOLVED = "resolved"


class CheckOutcome(StrEnum):
    UP_TO_DATE = "up_to_date"
    UPDATED = "updated"
    EVICTED = "evicted"
    FAILED = "failed"


class EventType(StrEnum):
    FORM_UPDATED = "form_updated"
    FORM_EVICTED = "form_evicted"


# ── Media ──


class MediaResource(BaseModel):
    """A fetched media file, owned by exactly one survey."""

    source_key: str
    item: bytes = b""
    content_type: str = "application/octet-stream"

    @property
    def is_complete(self) -> bool:
        return len(self.item) > 0

    @property
    def size_bytes(self) -> int:
        return len(self.item)


class ResourceSet(BaseModel):
    """Tagged resolution state of a survey's media.

    ``unresolved`` means media were never fetched. ``partial`` means a
    resolution pass ran but some sources failed (possibly all of them).
    ``resolved`` means every distinct source was fetched.
    """

    state: ResourceState = ResourceState.UNRESOLVED
    items: list[MediaResource] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_items(self) -> ResourceSet:
        keys = [r.source_key for r in self.items]
        if len(keys) != len(set(keys)):
            raise ValueError("duplicate source_key in resource set")
        if self.state == ResourceState.UNRESOLVED and self.items:
            raise ValueError("unresolved resource set cannot hold items")
        return self

    @classmethod
    def unresolved(cls) -> ResourceSet:
        return cls()

    @classmethod
    def from_outcomes(cls, items: list[MediaResource], expected: int) -> ResourceSet:
        """Build a set from the successful fetches of a pass over *expected* sources."""
        state = ResourceState.RESOLVED if len(items) >= expected else ResourceState.PARTIAL
        return cls(state=state, items=items)

    @property
    def is_unresolved(self) -> bool:
        return self.state == ResourceState.UNRESOLVED

    @property
    def source_keys(self) -> list[str]:
        return [r.source_key for r in self.items]

    def get(self, source_key: str) -> MediaResource | None:
        for resource in self.items:
            if resource.source_key == source_key:
                return resource
        return None

    def __len__(self) -> int:
        return len(self.items)


# ── Forms ──


class FormParts(BaseModel):
    """What the server returns for a form."""

    form_definition: str
    hash: str
    max_size: int | None = None
    resources: list[MediaResource] | None = None


class Survey(BaseModel):
    """A cached form definition plus its media resources and metadata."""

    survey_id: str
    form_definition: str = ""
    hash: str = ""
    max_size: int | None = None
    resources: ResourceSet = Field(default_factory=ResourceSet.unresolved)

    @classmethod
    def from_parts(cls, survey_id: str, parts: FormParts) -> Survey:
        return cls(
            survey_id=survey_id,
            form_definition=parts.form_definition,
            hash=parts.hash,
            max_size=parts.max_size,
        )

    def with_parts(self, parts: FormParts) -> Survey:
        """Return a copy carrying new parts; media must be re-resolved."""
        return self.model_copy(
            update={
                "form_definition": parts.form_definition,
                "hash": parts.hash,
                "resources": ResourceSet.unresolved(),
            },
            deep=True,
        )


# ── Runtime models ──


class CacheEvent(BaseModel):
    """A notification emitted by the cache."""

    timestamp: float = Field(default_factory=time.monotonic)
    event_type: EventType
    survey_id: str
    hash: str | None = None


class CacheStats(BaseModel):
    """Aggregate cache statistics."""

    surveys: int = 0
    resources: int = 0
    size_mb: float = 0.0
    hits: int = 0
    misses: int = 0
    refreshes: int = 0
    evictions: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0
