"""
Adaptive image compression.

Resizes an image to fit the configured bounds, then binary-searches the
encoder quality until the output lands near the byte budget.
"""
import asyncio
import io
import logging
import os
from typing import Callable, List, Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .config import settings
from .error_utils import DecodeError
from .common.images import encode_surface, format_file_size, plan_dimensions, render_surface
from .common.types import CompressionOptions, CompressionResult, ImageFile, resolve_options

log = logging.getLogger(__name__)

MAX_SEARCH_ITERATIONS = 10
# Accept the first encode within this fraction of the target
TARGET_TOLERANCE = 0.1


def search_quality(
    surface: Image.Image,
    fmt: str,
    target_bytes: int,
    min_quality: float,
    max_quality: float,
    max_iterations: int = MAX_SEARCH_ITERATIONS,
    encoder: Callable[[Image.Image, str, float], bytes] = encode_surface,
) -> bytes:
    """
    Binary-search encoder quality for an output close to target_bytes.

    Stops at the first probe within TARGET_TOLERANCE of the target. Probes
    that fit under the budget become the fallback; if none ever fits, one
    last encode is made at min_quality.

    Args:
        surface: Rendered image
        fmt: Output format
        target_bytes: Byte budget
        min_quality: Quality floor (0..1)
        max_quality: Quality ceiling (0..1)
        max_iterations: Maximum number of probes
        encoder: Callable(surface, fmt, quality) -> bytes

    Returns:
        Encoded bytes
    """
    low_q = min_quality
    high_q = max_quality
    best: Optional[bytes] = None

    for _ in range(max_iterations):
        mid_q = (low_q + high_q) / 2
        data = encoder(surface, fmt, mid_q)
        size = len(data)

        if abs(size - target_bytes) < target_bytes * TARGET_TOLERANCE:
            return data

        if size > target_bytes:
            high_q = mid_q
        else:
            low_q = mid_q
            best = data

    if best is None:
        log.debug(f"[compress] every probe overshot {target_bytes}B, encoding at min quality {min_quality}")
        best = encoder(surface, fmt, min_quality)
    return best


def output_file_name(name: str, fmt: str) -> str:
    """photo.jpg -> photo.webp"""
    stem, ext = os.path.splitext(name)
    return f"{stem if ext else name}.{fmt}"


def _compress_sync(file: ImageFile, opts: CompressionOptions) -> CompressionResult:
    original_size = file.size

    try:
        with Image.open(io.BytesIO(file.data)) as img:
            img.load()
            oriented = ImageOps.exif_transpose(img)
            width, height = plan_dimensions(oriented.width, oriented.height, opts.max_width, opts.max_height)
            surface = render_surface(oriented, width, height)
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
        raise DecodeError(f"Could not decode {file.name}: {e}") from e

    output = search_quality(
        surface,
        opts.output_format,
        opts.target_bytes,
        opts.min_quality,
        opts.max_quality,
    )

    return CompressionResult(
        output_bytes=output,
        file_name=output_file_name(file.name, opts.output_format),
        content_type=opts.mime_type,
        original_size_bytes=original_size,
        compressed_size_bytes=len(output),
        compression_ratio=original_size / len(output),
        width=width,
        height=height,
    )


async def compress_image(file: ImageFile, options=None, **overrides) -> CompressionResult:
    """
    Compress one image toward the configured byte budget.

    Files at or below COMPRESS_SKIP_BELOW_BYTES are returned untouched
    without decoding (ratio 1, width/height 0).

    Args:
        file: Input image
        options: CompressionOptions or dict of overrides
        **overrides: Individual option overrides

    Returns:
        CompressionResult

    Raises:
        DecodeError: If the input is not a decodable image
        EncodingError: If the output encoder rejects the format
        pydantic.ValidationError: If the options are invalid
    """
    opts = resolve_options(options, **overrides)
    original_size = file.size

    if original_size <= settings.COMPRESS_SKIP_BELOW_BYTES:
        log.debug(f"[compress] {file.name}: {format_file_size(original_size)} already small, skipping")
        return CompressionResult(
            output_bytes=file.data,
            file_name=file.name,
            content_type=file.content_type,
            original_size_bytes=original_size,
            compressed_size_bytes=original_size,
            compression_ratio=1,
            width=0,
            height=0,
        )

    result = await asyncio.to_thread(_compress_sync, file, opts)

    log.info(
        f"[compress] {file.name}: {format_file_size(result.original_size_bytes)} -> "
        f"{format_file_size(result.compressed_size_bytes)} "
        f"({result.compression_ratio:.1f}x, {result.width}x{result.height} {opts.output_format})"
    )
    return result


async def compress_images(files: List[ImageFile], options=None) -> List[CompressionResult]:
    """Compress several files concurrently; results follow input order."""
    opts = resolve_options(options)
    return await asyncio.gather(*(compress_image(f, opts) for f in files))
