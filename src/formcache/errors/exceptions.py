"""Custom exception hierarchy for formcache."""

from __future__ import annotations

from typing import Any


class FormCacheError(Exception):
    """Base exception for all formcache errors."""

    def __init__(self, message: str = "", **kwargs: Any) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(FormCacheError):
    """The form or file no longer exists on the server.

    This is the only error that causes a cached survey to be evicted.
    """

    def __init__(
        self,
        message: str = "",
        http_status: int | None = 404,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.http_status = http_status
        self.original = original


class TransientError(FormCacheError):
    """Transient error. The cache is left alone and the next trigger retries.

    Examples: offline, timeout, 5xx server error, unexpected 4xx.
    """

    def __init__(
        self,
        message: str = "",
        error_type: str = "server_error",
        http_status: int | None = None,
        original: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.error_type = error_type
        self.http_status = http_status
        self.original = original


class ResourceFetchError(FormCacheError):
    """A single media source could not be fetched. Other sources continue."""

    def __init__(
        self,
        message: str = "",
        source_key: str = "",
        inner: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.source_key = source_key
        self.inner = inner


class ResolverError(FormCacheError):
    """A whole media resolution pass failed."""

    def __init__(self, message: str = "", survey_id: str = "") -> None:
        super().__init__(message)
        self.survey_id = survey_id


class StoreError(FormCacheError):
    """The persistent store failed to read or write."""
