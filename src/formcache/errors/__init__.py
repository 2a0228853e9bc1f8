"""Error handling: exception hierarchy and transport error classification."""

from formcache.errors.classify import classify_http_error
from formcache.errors.exceptions import (
    FormCacheError,
    NotFoundError,
    ResolverError,
    ResourceFetchError,
    StoreError,
    TransientError,
)

__all__ = [
    "FormCacheError",
    "NotFoundError",
    "TransientError",
    "ResourceFetchError",
    "ResolverError",
    "StoreError",
    "classify_http_error",
]
