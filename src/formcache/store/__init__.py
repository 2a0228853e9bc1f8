"""Store subsystem: survey records plus a per-resource sub-store."""

from formcache.store.base import Store
from formcache.store.disk import SQLiteStore
from formcache.store.memory import MemoryStore

__all__ = ["Store", "SQLiteStore", "MemoryStore"]
