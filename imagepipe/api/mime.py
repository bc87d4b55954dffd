"""
MIME type detection for fetched images.

Storage and CDN responses often omit Content-Type or report
application/octet-stream; the URL's file extension is the fallback,
then image/jpeg.
"""
import logging
from typing import Optional
from urllib.parse import urlsplit

from .common.types import MimeResolution

log = logging.getLogger(__name__)

DEFAULT_MIME_TYPE = "image/jpeg"
GENERIC_CONTENT_TYPE = "application/octet-stream"

MIME_TYPE_MAP = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".webp": "image/webp",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".bmp": "image/bmp",
    ".tiff": "image/tiff",
    ".tif": "image/tiff",
}


def _mime_from_suffix(path: str) -> Optional[str]:
    path = path.lower()
    for ext, mime_type in MIME_TYPE_MAP.items():
        if path.endswith(ext):
            return mime_type
    return None


def _url_path(url: str) -> str:
    try:
        return urlsplit(url).path
    except ValueError:
        # e.g. unbalanced IPv6 brackets; scan the raw string instead
        return url.split("#", 1)[0].split("?", 1)[0]


def detect_mime_type(url, transport_content_type=None) -> MimeResolution:
    """
    Resolve the MIME type of an image. Never raises.

    Order:
    1. Specific image/* Content-Type from the response
    2. File extension in the URL path
    3. image/jpeg
    """
    if (
        isinstance(transport_content_type, str)
        and transport_content_type.startswith("image/")
        and transport_content_type != GENERIC_CONTENT_TYPE
    ):
        return MimeResolution(mime_type=transport_content_type, source="transport")

    if isinstance(url, str) and url:
        mime_type = _mime_from_suffix(_url_path(url))
        if mime_type:
            return MimeResolution(mime_type=mime_type, source="extension")

    return MimeResolution(mime_type=DEFAULT_MIME_TYPE, source="default")


def resolve_mime_type(url, transport_content_type=None) -> str:
    """detect_mime_type() without the provenance."""
    resolution = detect_mime_type(url, transport_content_type)
    if resolution.source == "default":
        log.debug(f"[mime] no usable type for {url!r} (header={transport_content_type!r}), using {DEFAULT_MIME_TYPE}")
    return resolution.mime_type
