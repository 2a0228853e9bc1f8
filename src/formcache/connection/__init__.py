"""Network adapters used to talk to the form server."""

from formcache.connection.base import Connection
from formcache.connection.http import HttpConnection

__all__ = ["Connection", "HttpConnection"]
