"""Persistent survey store backed by SQLite."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from formcache.config.defaults import DEFAULT_DB_PATH
from formcache.errors.exceptions import StoreError
from formcache.types import CacheStats, MediaResource, ResourceSet, ResourceState, Survey

logger = logging.getLogger(__name__)


class SQLiteStore:
    """SQLite-backed survey store with a per-resource sub-table.

    Only the ``surveys`` and ``resources`` tables are ever touched, so
    flushing the form cache never affects other data in the same file.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        self._db_path = db_path or DEFAULT_DB_PATH
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.row_factory = sqlite3.Row
        self._create_tables()

    async def get(self, survey_id: str) -> Survey | None:
        row = self._conn.execute(
            "SELECT * FROM surveys WHERE survey_id = ?", (survey_id,)
        ).fetchone()
        if row is None:
            return None
        state = ResourceState(row["resource_state"])
        items: list[MediaResource] = []
        if state != ResourceState.UNRESOLVED:
            items = [
                self._row_to_resource(r)
                for r in self._conn.execute(
                    "SELECT * FROM resources WHERE survey_id = ? ORDER BY position",
                    (survey_id,),
                )
            ]
        return Survey(
            survey_id=row["survey_id"],
            form_definition=row["form_definition"] or "",
            hash=row["hash"] or "",
            max_size=row["max_size"],
            resources=ResourceSet(state=state, items=items),
        )

    async def set(self, survey: Survey) -> Survey:
        self._write(survey)
        return survey.model_copy(deep=True)

    async def update(self, survey: Survey) -> Survey:
        """Overwrite an existing survey. Raises ``StoreError`` if it is gone."""
        self._write(survey, must_exist=True)
        stored = await self.get(survey.survey_id)
        if stored is None:
            raise StoreError(f"Survey {survey.survey_id} vanished during update")
        return stored

    async def remove(self, survey_id: str) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM resources WHERE survey_id = ?", (survey_id,))
            self._conn.execute("DELETE FROM surveys WHERE survey_id = ?", (survey_id,))

    async def remove_all(self) -> None:
        with self._conn:
            self._conn.execute("DELETE FROM resources")
            self._conn.execute("DELETE FROM surveys")
        logger.debug("Removed all surveys from %s", self._db_path)

    async def get_resource(self, survey_id: str, source_key: str) -> MediaResource | None:
        row = self._conn.execute(
            "SELECT * FROM resources WHERE survey_id = ? AND source_key = ?",
            (survey_id, source_key),
        ).fetchone()
        return self._row_to_resource(row) if row else None

    def stats(self) -> CacheStats:
        surveys = self._conn.execute("SELECT COUNT(*) FROM surveys").fetchone()[0]
        resources = self._conn.execute("SELECT COUNT(*) FROM resources").fetchone()[0]
        size = self._conn.execute(
            "SELECT COALESCE(SUM(LENGTH(form_definition)), 0) FROM surveys"
        ).fetchone()[0]
        size += self._conn.execute(
            "SELECT COALESCE(SUM(LENGTH(item)), 0) FROM resources"
        ).fetchone()[0]
        return CacheStats(surveys=surveys, resources=resources, size_mb=size / (1024 * 1024))

    def close(self) -> None:
        self._conn.close()

    def _write(self, survey: Survey, must_exist: bool = False) -> None:
        values = (
            survey.form_definition,
            survey.hash,
            survey.max_size,
            survey.resources.state.value,
            survey.survey_id,
        )
        try:
            with self._conn:
                if must_exist:
                    cursor = self._conn.execute(
                        """UPDATE surveys
                           SET form_definition = ?, hash = ?, max_size = ?, resource_state = ?
                           WHERE survey_id = ?""",
                        values,
                    )
                    if cursor.rowcount == 0:
                        raise StoreError(f"Survey {survey.survey_id} is not in the store")
                else:
                    self._conn.execute(
                        """INSERT OR REPLACE INTO surveys
                           (form_definition, hash, max_size, resource_state, survey_id)
                           VALUES (?, ?, ?, ?, ?)""",
                        values,
                    )
                self._conn.execute(
                    "DELETE FROM resources WHERE survey_id = ?", (survey.survey_id,)
                )
                self._conn.executemany(
                    """INSERT INTO resources
                       (survey_id, source_key, position, item, content_type)
                       VALUES (?, ?, ?, ?, ?)""",
                    [
                        (survey.survey_id, r.source_key, i, r.item, r.content_type)
                        for i, r in enumerate(survey.resources.items)
                    ],
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to write survey {survey.survey_id}: {e}") from e

    def _create_tables(self) -> None:
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS surveys (
                    survey_id TEXT PRIMARY KEY,
                    form_definition TEXT,
                    hash TEXT,
                    max_size INTEGER,
                    resource_state TEXT NOT NULL DEFAULT 'unresolved'
                )
            """)
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS resources (
                    survey_id TEXT NOT NULL,
                    source_key TEXT NOT NULL,
                    position INTEGER,
                    item BLOB,
                    content_type TEXT,
                    PRIMARY KEY (survey_id, source_key)
                )
            """)

    @staticmethod
    def _row_to_resource(row: sqlite3.Row) -> MediaResource:
        return MediaResource(
            source_key=row["source_key"],
            item=bytes(row["item"] or b""),
            content_type=row["content_type"] or "application/octet-stream",
        )
