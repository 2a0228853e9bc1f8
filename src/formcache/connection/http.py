"""Async HTTP connection to the form server."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from formcache.errors.classify import classify_http_error
from formcache.errors.exceptions import TransientError
from formcache.types import FormParts, MediaResource, Survey

logger = logging.getLogger(__name__)

_FORM_PARTS_PATH = "/api/forms/{survey_id}/parts"
_FORM_HASH_PATH = "/api/forms/{survey_id}/hash"
_MAX_SIZE_PATH = "/api/submission/max-size"


class HttpConnection:
    """Fetches form parts, version hashes and media files over HTTP."""

    def __init__(
        self,
        server_url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=server_url,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def get_form_parts(self, survey: Survey) -> FormParts:
        data = await self._get_json(_FORM_PARTS_PATH.format(survey_id=survey.survey_id))
        try:
            return FormParts(
                form_definition=data["form"],
                hash=data["hash"],
                max_size=data.get("max_size"),
            )
        except (KeyError, TypeError) as e:
            raise TransientError(
                f"Malformed form parts for {survey.survey_id}: {e}",
                error_type="bad_response",
            ) from e

    async def get_form_parts_hash(self, survey: Survey, force_fresh: bool = False) -> str:
        params = {"fresh": "1"} if force_fresh else None
        data = await self._get_json(
            _FORM_HASH_PATH.format(survey_id=survey.survey_id), params=params
        )
        version = data.get("hash") if isinstance(data, dict) else None
        if not version:
            raise TransientError(
                f"Missing hash in response for {survey.survey_id}", error_type="bad_response"
            )
        return str(version)

    async def get_media_file(self, source_key: str) -> MediaResource:
        response = await self._request(source_key)
        return MediaResource(
            source_key=source_key,
            item=response.content,
            content_type=response.headers.get("content-type", "application/octet-stream"),
        )

    async def get_maximum_submission_size(self) -> int:
        data = await self._get_json(_MAX_SIZE_PATH)
        try:
            return int(data["max_size"])
        except (KeyError, TypeError, ValueError) as e:
            raise TransientError(
                f"Malformed max size response: {e}", error_type="bad_response"
            ) from e

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        response = await self._request(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise TransientError(f"Invalid JSON from {url}", error_type="bad_response") from e

    async def _request(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise classify_http_error(e) from e
        return response
