"""Tests for media resolution."""

from unittest.mock import AsyncMock

import pytest

from formcache.errors.exceptions import NotFoundError, ResolverError, TransientError
from formcache.media.binder import to_data_uri
from formcache.media.resolver import MediaResolver
from formcache.media.target import RenderTarget
from formcache.transforms.media_placeholders import swap_media_src
from formcache.types import MediaResource, ResourceState, Survey

A = "https://example.org/media/a.png"
B = "https://example.org/media/b.mp3"


async def _cached_survey(store, form_html) -> Survey:
    survey = Survey(survey_id="s1", form_definition=swap_media_src(form_html), hash="h1")
    return await store.set(survey)


def _target(survey: Survey) -> RenderTarget:
    return RenderTarget.from_markup(survey.form_definition)


class TestMediaResolver:
    async def test_fetches_each_distinct_source_once(self, store, connection, form_html):
        survey = await _cached_survey(store, form_html)
        resolver = MediaResolver(store, connection)

        result = await resolver.resolve_media(survey, _target(survey))

        assert connection.get_media_file.call_count == 2
        fetched = sorted(call.args[0] for call in connection.get_media_file.call_args_list)
        assert fetched == sorted([A, B])
        assert result.resources.state == ResourceState.RESOLVED
        stored = await store.get("s1")
        assert sorted(stored.resources.source_keys) == sorted([A, B])

    async def test_partial_failure(self, store, connection, form_html, png_bytes):
        """[A, A, B] where A fails and B succeeds."""
        async def media(source_key):
            if source_key == A:
                raise TransientError("timeout", error_type="timeout")
            return MediaResource(source_key=source_key, item=b"mp3", content_type="audio/mpeg")

        connection.get_media_file = AsyncMock(side_effect=media)
        survey = await _cached_survey(store, form_html)
        target = _target(survey)

        result = await MediaResolver(store, connection).resolve_media(survey, target)

        assert result.resources.state == ResourceState.PARTIAL
        assert result.resources.source_keys == [B]
        assert (await store.get("s1")).resources.source_keys == [B]
        groups = target.grouped_by_source()
        assert all(el["src"] == "" for el in groups[A])
        (audio,) = groups[B]
        assert audio["src"] == to_data_uri(result.resources.get(B))

    async def test_missing_media_is_partial_not_eviction(self, store, connection, form_html):
        connection.get_media_file = AsyncMock(side_effect=NotFoundError("gone"))
        survey = await _cached_survey(store, form_html)

        result = await MediaResolver(store, connection).resolve_media(survey, _target(survey))

        assert result.resources.state == ResourceState.PARTIAL
        assert len(result.resources) == 0
        assert await store.get("s1") is not None

    async def test_second_call_uses_store(self, store, connection, form_html):
        survey = await _cached_survey(store, form_html)
        resolver = MediaResolver(store, connection)
        survey = await resolver.resolve_media(survey, _target(survey))
        connection.get_media_file.reset_mock()

        target = _target(survey)
        await resolver.resolve_media(survey, target)

        connection.get_media_file.assert_not_called()
        assert all(el["src"].startswith("data:") for el in target.marked_elements())

    async def test_partial_resources_are_not_refetched(self, store, connection, form_html):
        connection.get_media_file = AsyncMock(side_effect=TransientError("offline"))
        survey = await _cached_survey(store, form_html)
        resolver = MediaResolver(store, connection)
        survey = await resolver.resolve_media(survey, _target(survey))
        assert survey.resources.state == ResourceState.PARTIAL
        connection.get_media_file.reset_mock()

        await resolver.resolve_media(survey, _target(survey))

        connection.get_media_file.assert_not_called()

    async def test_no_media_in_form(self, store, connection):
        survey = await store.set(Survey(survey_id="s1", form_definition="<form/>", hash="h1"))
        result = await MediaResolver(store, connection).resolve_media(
            survey, RenderTarget.from_markup(survey.form_definition)
        )
        connection.get_media_file.assert_not_called()
        assert result.resources.state == ResourceState.RESOLVED

    async def test_store_failure_raises_resolver_error(self, connection, form_html):
        store = AsyncMock()
        store.update = AsyncMock(side_effect=RuntimeError("disk full"))
        survey = Survey(survey_id="s1", form_definition=swap_media_src(form_html), hash="h1")

        with pytest.raises(ResolverError):
            await MediaResolver(store, connection).resolve_media(survey, _target(survey))

        assert survey.resources.is_unresolved
