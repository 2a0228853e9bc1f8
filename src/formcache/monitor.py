"""Periodic staleness check: refresh or evict a cached survey."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from formcache.config.defaults import DEFAULT_CHECK_INTERVAL, DEFAULT_INITIAL_CHECK_DELAY
from formcache.errors.exceptions import NotFoundError
from formcache.events import EventBus
from formcache.transforms.media_placeholders import transform_survey
from formcache.types import CacheEvent, CheckOutcome, EventType, Survey

if TYPE_CHECKING:
    from formcache.connection.base import Connection
    from formcache.store.base import Store

logger = logging.getLogger(__name__)


class StalenessMonitor:
    """Compares one survey's cached hash against the server's, on a schedule.

    The first check runs shortly after ``start()`` to catch fast server
    updates, then every ``interval`` seconds. A tick is re-armed only after
    the previous check has fully settled, so checks never overlap.
    """

    def __init__(
        self,
        survey: Survey,
        store: Store,
        connection: Connection,
        events: EventBus | None = None,
        initial_delay: float = DEFAULT_INITIAL_CHECK_DELAY,
        interval: float = DEFAULT_CHECK_INTERVAL,
    ) -> None:
        self._survey = survey
        self._store = store
        self._connection = connection
        self._events = events if events is not None else EventBus()
        self._initial_delay = initial_delay
        self._interval = interval
        self._last_hash = survey.hash
        self._task: asyncio.Task[None] | None = None
        self._lock = asyncio.Lock()

    @property
    def survey_id(self) -> str:
        return self._survey.survey_id

    @property
    def last_hash(self) -> str:
        return self._last_hash

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(
            self._run(), name=f"staleness-monitor-{self.survey_id}"
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done() or task is asyncio.current_task():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def check(self) -> CheckOutcome:
        """Run one staleness check. Never raises.

        Checks are serialized, so an on-demand check waits for a scheduled
        one that is in flight.
        """
        async with self._lock:
            return await self._check()

    async def _check(self) -> CheckOutcome:
        logger.debug("Checking for update of survey %s", self.survey_id)
        try:
            version = await self._connection.get_form_parts_hash(self._survey)
            if version == self._last_hash:
                logger.debug("Cached survey %s is up to date (%s)", self.survey_id, version)
                return CheckOutcome.UP_TO_DATE

            logger.info(
                "Cached survey %s is outdated! old: %s new: %s",
                self.survey_id,
                self._last_hash,
                version,
            )
            parts = await self._connection.get_form_parts(self._survey)
            current = await self._store.get(self.survey_id)
            if current is None:
                logger.info("Survey %s is no longer in storage, stopping checks", self.survey_id)
                return CheckOutcome.EVICTED
            stored = await self._store.update(transform_survey(current.with_parts(parts)))
        except NotFoundError:
            return await self._evict()
        except Exception as e:
            logger.warning(
                "Could not obtain latest survey %s or hash from server, or failed to save it. "
                "Probably offline: %s",
                self.survey_id,
                e,
            )
            return CheckOutcome.FAILED

        # The store is authoritative for the hash it recorded.
        self._last_hash = stored.hash
        self._survey = stored
        logger.info("Survey %s is now updated in the store", self.survey_id)
        await self._events.emit(
            CacheEvent(event_type=EventType.FORM_UPDATED, survey_id=self.survey_id, hash=stored.hash)
        )
        return CheckOutcome.UPDATED

    async def _run(self) -> None:
        await asyncio.sleep(self._initial_delay)
        while True:
            outcome = await self.check()
            if outcome == CheckOutcome.EVICTED:
                return
            await asyncio.sleep(self._interval)

    async def _evict(self) -> CheckOutcome:
        try:
            await self._store.remove(self.survey_id)
        except Exception:
            logger.exception(
                "An error occurred when attempting to remove survey %s from storage",
                self.survey_id,
            )
            return CheckOutcome.FAILED
        logger.info("Survey %s no longer exists on the server, removed from storage", self.survey_id)
        await self._events.emit(
            CacheEvent(event_type=EventType.FORM_EVICTED, survey_id=self.survey_id)
        )
        return CheckOutcome.EVICTED
