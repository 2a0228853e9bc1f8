"""Rewrite live media references into inert placeholder markers."""

from __future__ import annotations

import re

from formcache.types import Survey

MARKER_ATTRIBUTE = "data-offline-src"

# A standalone, non-empty src attribute. The lookbehind skips
# data-offline-src, and empty src="" is what we leave behind, so running
# the substitution twice changes nothing.
_LIVE_SRC = re.compile(r'(?<=\s)src="([^"]+)"')


def swap_media_src(markup: str) -> str:
    """Replace every ``src="URL"`` with ``data-offline-src="URL" src=""``.

    Rendering the result never triggers a fetch; the media binder later
    fills ``src`` from the local store.
    """
    return _LIVE_SRC.sub(rf'{MARKER_ATTRIBUTE}="\1" src=""', markup)


def transform_survey(survey: Survey) -> Survey:
    """Apply the placeholder substitution to a survey's form definition."""
    survey.form_definition = swap_media_src(survey.form_definition)
    return survey
