"""Media subsystem: render target scanning, resolution and binding."""

from formcache.media.binder import ResourceReferenceBinder, to_data_uri
from formcache.media.resolver import MediaResolver
from formcache.media.target import RenderTarget

__all__ = ["MediaResolver", "RenderTarget", "ResourceReferenceBinder", "to_data_uri"]
