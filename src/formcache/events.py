"""Cache notifications: explicit listener registration plus an event log."""

from __future__ import annotations

import inspect
import logging
from collections import deque
from collections.abc import Awaitable, Callable

from formcache.config.defaults import DEFAULT_EVENT_LOG_SIZE
from formcache.types import CacheEvent, EventType

logger = logging.getLogger(__name__)

Listener = Callable[[CacheEvent], Awaitable[None] | None]


class EventBus:
    """Delivers cache events to subscribers and keeps a bounded event log.

    Only the most recent ``max_events`` events are kept. A failing listener
    is logged and skipped; it never affects the cache operation that
    emitted the event or the other listeners.
    """

    def __init__(self, max_events: int = DEFAULT_EVENT_LOG_SIZE) -> None:
        self._listeners: dict[EventType, list[Listener]] = {}
        self._events: deque[CacheEvent] = deque(maxlen=max_events)

    def subscribe(self, event_type: EventType, listener: Listener) -> Callable[[], None]:
        """Register *listener*. Returns a callable that unsubscribes it."""
        self._listeners.setdefault(event_type, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(event_type, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    async def emit(self, event: CacheEvent) -> None:
        self._events.append(event)
        for listener in list(self._listeners.get(event.event_type, [])):
            try:
                result = listener(event)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(
                    "Listener for %s on survey %s failed", event.event_type, event.survey_id
                )

    @property
    def events(self) -> list[CacheEvent]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def query_by_survey(self, survey_id: str) -> list[CacheEvent]:
        return [e for e in self._events if e.survey_id == survey_id]

    def query_by_type(self, event_type: EventType) -> list[CacheEvent]:
        return [e for e in self._events if e.event_type == event_type]
