from unittest.mock import AsyncMock

import pytest

from formcache.errors.exceptions import TransientError
from formcache.store.memory import MemoryStore
from formcache.types import FormParts, MediaResource

PNG_BYTES = b"\x89PNG\r\n\x1a\n-fake-image-"
MP3_BYTES = b"ID3-fake-audio-"

FORM_HTML = """\
<form class="or">
  <img src="https://example.org/media/a.png" alt="A"/>
  <label>Question<img src="https://example.org/media/a.png" alt="A again"/></label>
  <audio src="https://example.org/media/b.mp3"></audio>
</form>"""

FORM_HTML_V2 = """\
<form class="or">
  <img src="https://example.org/media/a.png" alt="A"/>
  <p>New question</p>
</form>"""


def media_file(source_key: str) -> MediaResource:
    if source_key.endswith(".png"):
        return MediaResource(source_key=source_key, item=PNG_BYTES, content_type="image/png")
    return MediaResource(source_key=source_key, item=MP3_BYTES, content_type="audio/mpeg")


@pytest.fixture
def form_html():
    return FORM_HTML


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def connection():
    """A mocked form server that serves FORM_HTML at hash 'h1'."""
    conn = AsyncMock()
    conn.get_form_parts = AsyncMock(
        return_value=FormParts(form_definition=FORM_HTML, hash="h1")
    )
    conn.get_form_parts_hash = AsyncMock(return_value="h1")
    conn.get_media_file = AsyncMock(side_effect=media_file)
    conn.get_maximum_submission_size = AsyncMock(return_value=5_000_000)
    conn.close = AsyncMock()
    return conn


@pytest.fixture
def offline_connection():
    """A mocked form server that cannot be reached."""
    conn = AsyncMock()
    offline = TransientError("connection refused", error_type="offline")
    conn.get_form_parts = AsyncMock(side_effect=offline)
    conn.get_form_parts_hash = AsyncMock(side_effect=offline)
    conn.get_media_file = AsyncMock(side_effect=offline)
    conn.get_maximum_submission_size = AsyncMock(side_effect=offline)
    conn.close = AsyncMock()
    return conn


@pytest.fixture
def form_html_v2():
    return FORM_HTML_V2


@pytest.fixture
def png_bytes():
    return PNG_BYTES
