"""
Format normalization for document embedding.
The PDF renderer cannot read WebP, so WebP is transcoded to PNG.
"""
import io
import logging

from PIL import Image

from .config import settings
from .common.types import NormalizedImage

log = logging.getLogger(__name__)

NON_PORTABLE_TYPES = {"image/webp"}


def _webp_to_png(data: bytes, quality: int) -> bytes:
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if img.mode not in ("RGB", "RGBA", "L", "LA"):
            img = img.convert("RGBA")
        buf = io.BytesIO()
        # PNG is lossless; quality is accepted by Pillow and ignored
        img.save(buf, format="PNG", quality=quality)
    return buf.getvalue()


def normalize_format(data: bytes, mime_type: str, quality: int = None) -> NormalizedImage:
    """
    Transcode non-portable encodings (WebP) to PNG.

    Best effort: if transcoding fails the original bytes and MIME type are
    returned with outcome="failed" instead of raising.

    Args:
        data: Image bytes
        mime_type: Resolved MIME type
        quality: Forwarded to the PNG encoder (default WEBP_TO_PNG_QUALITY)

    Returns:
        NormalizedImage
    """
    if mime_type not in NON_PORTABLE_TYPES:
        return NormalizedImage(data=data, mime_type=mime_type, outcome="passthrough")

    if quality is None:
        quality = settings.WEBP_TO_PNG_QUALITY

    try:
        png = _webp_to_png(data, quality)
    except Exception as e:
        log.error(f"[normalize] Failed to convert {mime_type} to PNG, keeping original: {e}")
        return NormalizedImage(data=data, mime_type=mime_type, outcome="failed")

    log.info(f"[normalize] {mime_type} converted to PNG: {len(data)} -> {len(png)} bytes")
    return NormalizedImage(data=png, mime_type="image/png", outcome="converted")
