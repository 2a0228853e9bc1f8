"""Map transport exceptions onto the formcache error hierarchy."""

from __future__ import annotations

import httpx

from formcache.errors.exceptions import FormCacheError, NotFoundError, TransientError

_NOT_FOUND = 404


def classify_http_error(exc: Exception) -> FormCacheError:
    """Convert an httpx exception to our exception hierarchy.

    Only a 404 response means the form is gone. Everything else,
    including other 4xx responses, is treated as transient so that an
    unreachable server never causes cached data to be deleted.
    """
    if isinstance(exc, FormCacheError):
        return exc
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status == _NOT_FOUND:
            return NotFoundError(str(exc), http_status=status, original=exc)
        error_type = "server_error" if status >= 500 else "client_error"
        return TransientError(
            str(exc),
            error_type=error_type,
            http_status=status,
            original=exc,
        )
    if isinstance(exc, httpx.TimeoutException):
        return TransientError(str(exc), error_type="timeout", original=exc)
    if isinstance(exc, httpx.TransportError):
        return TransientError(str(exc), error_type="offline", original=exc)
    return TransientError(str(exc), error_type="unknown", original=exc)
