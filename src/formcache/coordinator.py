"""Top-level entry point: FormCache, the offline form cache coordinator."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from formcache.config.defaults import DEFAULT_CHECK_INTERVAL, DEFAULT_INITIAL_CHECK_DELAY
from formcache.events import EventBus
from formcache.media.resolver import MediaResolver
from formcache.media.target import RenderTarget
from formcache.monitor import StalenessMonitor
from formcache.transforms.media_placeholders import transform_survey
from formcache.types import CacheEvent, CacheStats, CheckOutcome, EventType, Survey

if TYPE_CHECKING:
    from formcache.config.schema import FormCacheSettings
    from formcache.connection.base import Connection
    from formcache.store.base import Store

logger = logging.getLogger(__name__)


class FormCache:
    """Keeps form definitions and their media usable offline.

    Public operations never raise on network or storage failure: errors
    are logged and the cache is left as it was. The one exception is a
    server-confirmed "not found", which evicts the survey.
    """

    def __init__(
        self,
        store: Store,
        connection: Connection,
        events: EventBus | None = None,
        initial_check_delay: float = DEFAULT_INITIAL_CHECK_DELAY,
        check_interval: float = DEFAULT_CHECK_INTERVAL,
    ) -> None:
        self._store = store
        self._connection = connection
        self._events = events if events is not None else EventBus()
        self._initial_check_delay = initial_check_delay
        self._check_interval = check_interval
        self._resolver = MediaResolver(store, connection)
        self._monitors: dict[str, StalenessMonitor] = {}
        self._stats = CacheStats()

        self._events.subscribe(EventType.FORM_UPDATED, self._on_updated)
        self._events.subscribe(EventType.FORM_EVICTED, self._on_evicted)

    @classmethod
    def from_settings(cls, settings: FormCacheSettings) -> FormCache:
        from formcache.connection.http import HttpConnection
        from formcache.store.disk import SQLiteStore

        return cls(
            store=SQLiteStore(db_path=settings.db_path),
            connection=HttpConnection(settings.server_url, timeout=settings.request_timeout),
            initial_check_delay=settings.initial_check_delay,
            check_interval=settings.check_interval,
        )

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def store(self) -> Store:
        return self._store

    def monitor(self, survey_id: str) -> StalenessMonitor | None:
        return self._monitors.get(survey_id)

    async def init(self, survey_id: str) -> Survey | None:
        """Return a usable survey, from the store if possible.

        A cached survey is returned without any network request. Otherwise
        the form is fetched, transformed and stored. Either way the
        staleness monitor is armed. Returns None when nothing usable could
        be obtained.
        """
        try:
            survey = await self._store.get(survey_id)
        except Exception:
            logger.exception("Failed to read survey %s from storage", survey_id)
            return None

        if survey is not None:
            self._stats.hits += 1
            logger.debug("Survey %s loaded from cache", survey_id)
        else:
            self._stats.misses += 1
            survey = await self._fetch_and_store(survey_id)
            if survey is None:
                return None

        self._arm_monitor(survey)
        return survey

    async def get(self, survey_id: str) -> Survey | None:
        try:
            return await self._store.get(survey_id)
        except Exception:
            logger.exception("Failed to read survey %s from storage", survey_id)
            return None

    async def remove(self, survey_id: str) -> None:
        await self._disarm_monitor(survey_id)
        try:
            await self._store.remove(survey_id)
        except Exception:
            logger.exception("Failed to remove survey %s from storage", survey_id)
            return
        logger.info("Survey %s removed from storage", survey_id)

    async def flush(self) -> None:
        """Empty the form cache. Submitted or draft records are not touched."""
        for survey_id in list(self._monitors):
            await self._disarm_monitor(survey_id)
        try:
            await self._store.remove_all()
        except Exception:
            logger.exception("Failed to flush the form cache")
            return
        logger.info("Done! The form cache is empty now. (Records have not been removed)")

    async def ensure_max_size(self, survey: Survey) -> Survey:
        """Attach the maximum submission size if the survey has none yet.

        Only the in-memory survey is changed; persisting it is up to the
        caller.
        """
        if survey.max_size is not None:
            return survey
        try:
            survey.max_size = await self._connection.get_maximum_submission_size()
        except Exception as e:
            logger.warning("Could not obtain maximum submission size: %s", e)
        return survey

    async def resolve_media(self, survey: Survey, target: RenderTarget) -> Survey:
        """Fetch (once) and bind the survey's media into *target*."""
        try:
            return await self._resolver.resolve_media(survey, target)
        except Exception:
            logger.exception("Loading media for survey %s failed", survey.survey_id)
            return survey

    async def rebind_media(self, survey: Survey, target: RenderTarget) -> Survey:
        """Re-bind media after the host resets the displayed form."""
        return await self.resolve_media(survey, target)

    async def check_now(self, survey_id: str) -> CheckOutcome:
        """Run a staleness check immediately, outside the schedule."""
        monitor = self._monitors.get(survey_id)
        if monitor is None:
            survey = await self.get(survey_id)
            if survey is None:
                logger.warning("Survey %s is not cached, nothing to check", survey_id)
                return CheckOutcome.FAILED
            monitor = self._new_monitor(survey)
        outcome = await monitor.check()
        if outcome == CheckOutcome.EVICTED:
            await self._disarm_monitor(survey_id)
        return outcome

    def stats(self) -> CacheStats:
        stored = self._store.stats()
        return stored.model_copy(
            update={
                "hits": self._stats.hits,
                "misses": self._stats.misses,
                "refreshes": self._stats.refreshes,
                "evictions": self._stats.evictions,
            }
        )

    async def close(self) -> None:
        for survey_id in list(self._monitors):
            await self._disarm_monitor(survey_id)
        await self._connection.close()
        self._store.close()

    async def __aenter__(self) -> FormCache:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    async def _fetch_and_store(self, survey_id: str) -> Survey | None:
        try:
            parts = await self._connection.get_form_parts(Survey(survey_id=survey_id))
            survey = transform_survey(Survey.from_parts(survey_id, parts))
            survey = await self._store.set(survey)
        except Exception as e:
            logger.error("Could not fetch and cache survey %s: %s", survey_id, e)
            return None
        logger.info("Survey %s fetched and stored (hash %s)", survey_id, survey.hash)

        # Asks the server to prepare a fresh hash for later staleness checks.
        try:
            await self._connection.get_form_parts_hash(survey, force_fresh=True)
        except Exception as e:
            logger.warning("Could not prime form hash for survey %s: %s", survey_id, e)
        return survey

    def _new_monitor(self, survey: Survey) -> StalenessMonitor:
        return StalenessMonitor(
            survey,
            self._store,
            self._connection,
            events=self._events,
            initial_delay=self._initial_check_delay,
            interval=self._check_interval,
        )

    def _arm_monitor(self, survey: Survey) -> None:
        monitor = self._monitors.get(survey.survey_id)
        if monitor is None or not monitor.running:
            monitor = self._new_monitor(survey)
            self._monitors[survey.survey_id] = monitor
            monitor.start()

    async def _disarm_monitor(self, survey_id: str) -> None:
        monitor = self._monitors.pop(survey_id, None)
        if monitor is not None:
            await monitor.stop()

    def _on_updated(self, event: CacheEvent) -> None:
        self._stats.refreshes += 1

    async def _on_evicted(self, event: CacheEvent) -> None:
        self._stats.evictions += 1
        await self._disarm_monitor(event.survey_id)
