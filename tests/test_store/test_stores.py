"""Tests for the memory and SQLite stores."""

import sqlite3

import pytest

from formcache.errors.exceptions import StoreError
from formcache.store.disk import SQLiteStore
from formcache.store.memory import MemoryStore
from formcache.types import MediaResource, ResourceSet, ResourceState, Survey


def _survey(survey_id: str = "s1", **kwargs) -> Survey:
    defaults = {"form_definition": "<form/>", "hash": "h1"}
    defaults.update(kwargs)
    return Survey(survey_id=survey_id, **defaults)


def _with_media(survey: Survey, *keys: str, expected: int | None = None) -> Survey:
    items = [MediaResource(source_key=k, item=k.encode(), content_type="image/png") for k in keys]
    survey.resources = ResourceSet.from_outcomes(items, expected or len(keys))
    return survey


@pytest.fixture(params=["memory", "sqlite"])
def any_store(request, tmp_path):
    if request.param == "memory":
        yield MemoryStore()
        return
    store = SQLiteStore(db_path=tmp_path / "forms.db")
    try:
        yield store
    finally:
        store.close()


class TestStoreContract:
    async def test_get_missing(self, any_store):
        assert await any_store.get("nope") is None

    async def test_set_and_get(self, any_store):
        await any_store.set(_survey(max_size=0))
        result = await any_store.get("s1")
        assert result.hash == "h1"
        assert result.max_size == 0
        assert result.resources.is_unresolved

    async def test_update_keeps_partial_resources(self, any_store):
        await any_store.set(_survey())
        stored = await any_store.update(_with_media(_survey(), "b.png", expected=2))
        assert stored.resources.state == ResourceState.PARTIAL
        assert stored.resources.source_keys == ["b.png"]
        result = await any_store.get("s1")
        assert result.resources.state == ResourceState.PARTIAL

    async def test_update_to_unresolved_drops_resources(self, any_store):
        await any_store.set(_with_media(_survey(), "a.png"))
        await any_store.update(_survey(hash="h2"))
        assert await any_store.get_resource("s1", "a.png") is None
        result = await any_store.get("s1")
        assert result.hash == "h2"
        assert result.resources.is_unresolved

    async def test_update_never_recreates_removed_survey(self, any_store):
        await any_store.set(_survey())
        await any_store.remove("s1")
        with pytest.raises(StoreError):
            await any_store.update(_with_media(_survey(), "a.png"))
        assert await any_store.get("s1") is None
        assert await any_store.get_resource("s1", "a.png") is None

    async def test_get_resource(self, any_store):
        await any_store.set(_with_media(_survey(), "a.png", "b.png"))
        resource = await any_store.get_resource("s1", "b.png")
        assert resource.item == b"b.png"
        assert resource.content_type == "image/png"
        assert await any_store.get_resource("s1", "c.png") is None
        assert await any_store.get_resource("other", "a.png") is None

    async def test_remove_is_idempotent(self, any_store):
        await any_store.set(_with_media(_survey(), "a.png"))
        await any_store.remove("s1")
        await any_store.remove("s1")
        assert await any_store.get("s1") is None
        assert await any_store.get_resource("s1", "a.png") is None

    async def test_remove_leaves_other_surveys(self, any_store):
        await any_store.set(_survey("s1"))
        await any_store.set(_survey("s2"))
        await any_store.remove("s1")
        assert await any_store.get("s2") is not None

    async def test_remove_all(self, any_store):
        await any_store.set(_with_media(_survey("s1"), "a.png"))
        await any_store.set(_survey("s2"))
        await any_store.remove_all()
        assert await any_store.get("s1") is None
        assert await any_store.get("s2") is None
        assert any_store.stats().surveys == 0

    async def test_stats(self, any_store):
        await any_store.set(_with_media(_survey("s1"), "a.png", "b.png"))
        stats = any_store.stats()
        assert stats.surveys == 1
        assert stats.resources == 2
        assert stats.size_mb > 0


class TestMemoryStore:
    async def test_returned_records_are_copies(self):
        store = MemoryStore()
        await store.set(_survey())
        first = await store.get("s1")
        first.hash = "mutated"
        assert (await store.get("s1")).hash == "h1"


class TestSQLiteStore:
    async def test_persists_across_instances(self, tmp_path):
        db = tmp_path / "forms.db"
        store = SQLiteStore(db_path=db)
        await store.set(_with_media(_survey(), "a.png"))
        store.close()

        reopened = SQLiteStore(db_path=db)
        try:
            result = await reopened.get("s1")
            assert result.resources.state == ResourceState.RESOLVED
            assert result.resources.get("a.png").item == b"a.png"
        finally:
            reopened.close()

    async def test_remove_all_leaves_other_tables(self, tmp_path):
        db = tmp_path / "forms.db"
        store = SQLiteStore(db_path=db)
        try:
            store._conn.execute("CREATE TABLE records (id TEXT)")
            store._conn.execute("INSERT INTO records VALUES ('draft-1')")
            store._conn.commit()
            await store.set(_survey())
            await store.remove_all()
            count = store._conn.execute("SELECT COUNT(*) FROM records").fetchone()[0]
            assert count == 1
        finally:
            store.close()

    async def test_creates_parent_directory(self, tmp_path):
        store = SQLiteStore(db_path=tmp_path / "nested" / "dir" / "forms.db")
        try:
            assert (tmp_path / "nested" / "dir").is_dir()
        finally:
            store.close()

    async def test_write_failure_raises_store_error(self, tmp_path):
        store = SQLiteStore(db_path=tmp_path / "forms.db")
        store._conn.execute("DROP TABLE resources")
        try:
            with pytest.raises(StoreError):
                await store.set(_with_media(_survey(), "a.png"))
        finally:
            store.close()

    def test_schema(self, tmp_path):
        store = SQLiteStore(db_path=tmp_path / "forms.db")
        store.close()
        conn = sqlite3.connect(str(tmp_path / "forms.db"))
        try:
            tables = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        finally:
            conn.close()
        assert {"surveys", "resources"} <= tables
