"""Connection contract consumed by the cache core."""

from __future__ import annotations

from typing import Protocol

from formcache.types import FormParts, MediaResource, Survey


class Connection(Protocol):
    """Network requests keyed by survey identity.

    Implementations raise ``NotFoundError`` when the form no longer exists
    and ``TransientError`` for everything else that goes wrong.
    """

    async def get_form_parts(self, survey: Survey) -> FormParts: ...

    async def get_form_parts_hash(self, survey: Survey, force_fresh: bool = False) -> str: ...

    async def get_media_file(self, source_key: str) -> MediaResource: ...

    async def get_maximum_submission_size(self) -> int: ...

    async def close(self) -> None: ...
