"""
Batch conversion of stored image URLs into data URIs.

Storage buckets block direct browser reads, so the document generator
hands the URLs to this service, which fetches them server-side and
returns self-contained payloads. One bad URL never sinks the batch.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from .error_utils import InvalidInputError
from .mime import detect_mime_type
from .normalize import normalize_format
from .common.images import image_to_data_url
from .common.retry import fetch_with_retry, open_client
from .common.types import ConversionBatchResult

log = logging.getLogger(__name__)


async def convert_one(
    index: int,
    url,
    client: httpx.AsyncClient,
    max_retries: int = None,
    timeout_ms: int = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Optional[str]:
    """
    Fetch, type, normalize and encode one URL.

    Returns:
        data: URI, or None if this URL could not be converted
    """
    tag = f"[Image {index + 1}]"
    if not url or not isinstance(url, str):
        log.error(f"{tag} Invalid URL provided")
        return None

    try:
        response = await fetch_with_retry(url, max_retries, timeout_ms, client=client, sleep=sleep)
        if response is None:
            log.error(f"{tag} Failed to fetch after retries: {url}")
            return None

        resolution = detect_mime_type(url, response.headers.get("content-type"))
        body = response.content
        if not body:
            log.error(f"{tag} Empty response body for: {url}")
            return None

        normalized = normalize_format(body, resolution.mime_type)
        log.info(
            f"{tag} Processed: {normalized.mime_type} ({resolution.source}, {normalized.outcome}), "
            f"{len(normalized.data)} bytes"
        )
        return image_to_data_url(normalized.data, normalized.mime_type)
    except Exception:
        log.exception(f"{tag} Error processing {url}")
        return None


async def convert_batch(
    urls,
    *,
    client: httpx.AsyncClient = None,
    max_retries: int = None,
    timeout_ms: int = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ConversionBatchResult:
    """
    Convert every URL concurrently.

    Args:
        urls: List of image URLs
        client: Shared AsyncClient; one is opened for the batch if omitted
        max_retries: Per-URL retries (default IMAGE_FETCH_MAX_RETRIES)
        timeout_ms: Per-attempt timeout (default IMAGE_FETCH_TIMEOUT_MS)
        sleep: Awaitable used for backoff delays

    Returns:
        ConversionBatchResult with items in input order

    Raises:
        InvalidInputError: If urls is not a list
    """
    if not isinstance(urls, (list, tuple)):
        raise InvalidInputError("urls array is required")

    if client is None:
        async with open_client() as own_client:
            return await convert_batch(
                urls, client=own_client, max_retries=max_retries, timeout_ms=timeout_ms, sleep=sleep
            )

    log.info(f"[image-to-base64] Processing {len(urls)} image(s)")

    items = await asyncio.gather(*(
        convert_one(i, url, client, max_retries, timeout_ms, sleep)
        for i, url in enumerate(urls)
    ))
    result = ConversionBatchResult.from_items(list(items))

    log.info(
        f"[image-to-base64] Completed: {result.converted}/{result.total} images converted "
        f"({result.success_rate:.1f}%)"
    )
    return result
