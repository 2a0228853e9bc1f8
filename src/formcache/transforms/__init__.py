"""Transforms applied to form definitions before they are persisted."""

from formcache.transforms.media_placeholders import (
    MARKER_ATTRIBUTE,
    swap_media_src,
    transform_survey,
)

__all__ = ["MARKER_ATTRIBUTE", "swap_media_src", "transform_survey"]
