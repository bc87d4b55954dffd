"""
Image processing utilities.
Handles dimension planning, resampling, encoding and data URLs.
"""
import io
import base64
import math
from typing import Tuple
from PIL import Image, features

from ..error_utils import EncodingError

# Output format name -> Pillow encoder name
PIL_FORMATS = {
    "webp": "WEBP",
    "jpeg": "JPEG",
    "jpg": "JPEG",
    "png": "PNG",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def plan_dimensions(src_w: int, src_h: int, max_w: int, max_h: int) -> Tuple[int, int]:
    """
    Fit (src_w, src_h) inside (max_w, max_h) without upscaling.

    Clamps width first, then height, keeping the aspect ratio across
    both passes. Results are rounded to whole pixels.
    """
    new_w = float(src_w)
    new_h = float(src_h)

    if src_w > max_w:
        new_h = (src_h * max_w) / src_w
        new_w = float(max_w)

    if new_h > max_h:
        new_w = (new_w * max_h) / new_h
        new_h = float(max_h)

    return max(1, _round_half_up(new_w)), max(1, _round_half_up(new_h))


def has_alpha(img: Image.Image) -> bool:
    return img.mode in ("RGBA", "LA", "PA") or (img.mode == "P" and "transparency" in img.info)


def render_surface(img: Image.Image, width: int, height: int) -> Image.Image:
    """
    Draw `img` onto a new raster of width x height.

    Always resamples with Lanczos; palette and exotic modes are converted
    to RGB/RGBA first so the filter works on real colour values.

    Returns:
        New PIL Image, independent of the source file handle
    """
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if has_alpha(img) else "RGB")

    if img.size == (width, height):
        return img.copy()
    return img.resize((width, height), Image.Resampling.LANCZOS)


def to_pil_quality(quality: float) -> int:
    """Map 0..1 quality to Pillow's 1..100 scale."""
    return max(1, min(100, int(round(quality * 100))))


def _flatten_alpha(img: Image.Image) -> Image.Image:
    if not has_alpha(img):
        return img if img.mode == "RGB" else img.convert("RGB")
    rgba = img.convert("RGBA")
    background = Image.new("RGB", rgba.size, (255, 255, 255))
    background.paste(rgba, mask=rgba.getchannel("A"))
    return background


def encode_surface(surface: Image.Image, fmt: str, quality: float) -> bytes:
    """
    Serialize a rendered surface.

    Args:
        surface: PIL Image from render_surface()
        fmt: "webp", "jpeg" or "png"
        quality: 0..1; ignored by PNG, which is lossless

    Returns:
        Encoded bytes

    Raises:
        EncodingError: If the format is unknown or the encoder refuses it
    """
    pil_format = PIL_FORMATS.get(str(fmt).lower())
    if pil_format is None:
        raise EncodingError(f"Unsupported output format: {fmt}")
    if pil_format == "WEBP" and not features.check("webp"):
        raise EncodingError("WebP encoding is not available in this Pillow build")

    img = surface
    if pil_format == "JPEG":
        img = _flatten_alpha(surface)
        save_kwargs = {"quality": to_pil_quality(quality), "optimize": True}
    elif pil_format == "WEBP":
        save_kwargs = {"quality": to_pil_quality(quality), "method": 4}
    else:
        save_kwargs = {}

    buf = io.BytesIO()
    try:
        img.save(buf, format=pil_format, **save_kwargs)
    except (OSError, ValueError, KeyError) as e:
        raise EncodingError(f"Failed to encode {fmt} at quality {quality}: {e}") from e
    return buf.getvalue()


def image_to_data_url(image_bytes: bytes, mime: str = "image/jpeg") -> str:
    """Convert image bytes to data URL."""
    b64 = base64.b64encode(image_bytes).decode('utf-8')
    return f"data:{mime};base64,{b64}"


def format_file_size(num_bytes: int) -> str:
    """Human-readable size for log lines: 512 B, 1.5 KB, 2.00 MB."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"
