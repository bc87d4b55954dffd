"""
Remote image fetching with per-attempt timeout and exponential backoff.

Each URL moves through Attempting -> Succeeded | Retryable | Exhausted.
The delay before the next attempt depends on the attempt index and on
why the previous attempt failed: a timed-out attempt is retried at once.
"""
import asyncio
import enum
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import httpx

from ..config import settings
from ..timeout_utils import with_timeout

log = logging.getLogger(__name__)


class FailureCause(str, enum.Enum):
    NONE = "none"
    HTTP_STATUS = "http_status"
    TIMEOUT = "timeout"
    NETWORK = "network"


class AttemptState(str, enum.Enum):
    ATTEMPTING = "attempting"
    SUCCEEDED = "succeeded"
    RETRYABLE = "retryable"
    EXHAUSTED = "exhausted"


@dataclass
class FetchAttemptOutcome:
    """Result of a single fetch attempt. Used only to drive the retry loop."""
    response: Optional[httpx.Response] = None
    cause: FailureCause = FailureCause.NONE
    elapsed_ms: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.response is not None and self.cause is FailureCause.NONE


def request_headers() -> dict:
    return {
        "User-Agent": settings.FETCH_USER_AGENT,
        "Accept": "image/*",
    }


def open_client(**kwargs) -> httpx.AsyncClient:
    """
    Outbound client with no client-level timeout. Each attempt gets its
    deadline from fetch_once instead of httpx's 5s default.
    """
    return httpx.AsyncClient(follow_redirects=True, timeout=None, **kwargs)


def next_state(outcome: FetchAttemptOutcome, attempt: int, max_retries: int) -> AttemptState:
    if outcome.ok:
        return AttemptState.SUCCEEDED
    if attempt < max_retries:
        return AttemptState.RETRYABLE
    return AttemptState.EXHAUSTED


def backoff_delay(attempt: int, previous_cause: FailureCause, base_ms: int = None) -> float:
    """
    Seconds to wait after failed attempt `attempt` (0-based).

    Exponential: base_ms * 2^attempt. Zero after a timeout, which has
    already spent the full timeout budget.
    """
    if previous_cause is FailureCause.TIMEOUT:
        return 0.0
    base = settings.FETCH_BACKOFF_MS if base_ms is None else base_ms
    return base * (2 ** attempt) / 1000.0


async def fetch_once(client: httpx.AsyncClient, url: str, timeout_ms: int) -> FetchAttemptOutcome:
    """
    One GET with a hard timeout. Never raises for network or HTTP failures.
    """
    t0 = time.perf_counter()

    def elapsed() -> int:
        return int((time.perf_counter() - t0) * 1000)

    try:
        response = await with_timeout(
            lambda: client.get(url, headers=request_headers(), timeout=timeout_ms / 1000.0),
            timeout_ms / 1000.0,
            operation_name=f"GET {url}",
        )
    except (asyncio.TimeoutError, httpx.TimeoutException) as e:
        return FetchAttemptOutcome(cause=FailureCause.TIMEOUT, elapsed_ms=elapsed(), error=f"aborted after {timeout_ms}ms: {e!r}")
    except httpx.HTTPError as e:
        return FetchAttemptOutcome(cause=FailureCause.NETWORK, elapsed_ms=elapsed(), error=str(e) or e.__class__.__name__)

    if not response.is_success:
        return FetchAttemptOutcome(
            response=response,
            cause=FailureCause.HTTP_STATUS,
            elapsed_ms=elapsed(),
            error=f"HTTP {response.status_code}",
        )
    return FetchAttemptOutcome(response=response, elapsed_ms=elapsed())


async def fetch_with_retry(
    url: str,
    max_retries: int = None,
    timeout_ms: int = None,
    *,
    client: httpx.AsyncClient = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> Optional[httpx.Response]:
    """
    Fetch a URL with retries.

    Args:
        url: Image URL
        max_retries: Retries after the first attempt (default IMAGE_FETCH_MAX_RETRIES)
        timeout_ms: Per-attempt timeout (default IMAGE_FETCH_TIMEOUT_MS)
        client: Shared AsyncClient; a private one is opened if omitted
        sleep: Awaitable used for backoff delays

    Returns:
        Successful response, or None once max_retries + 1 attempts failed
    """
    if max_retries is None:
        max_retries = settings.FETCH_MAX_RETRIES
    if timeout_ms is None:
        timeout_ms = settings.FETCH_TIMEOUT_MS

    if client is None:
        async with open_client() as own_client:
            return await fetch_with_retry(url, max_retries, timeout_ms, client=own_client, sleep=sleep)

    total = max_retries + 1
    for attempt in range(total):
        outcome = await fetch_once(client, url, timeout_ms)
        state = next_state(outcome, attempt, max_retries)

        if state is AttemptState.SUCCEEDED:
            return outcome.response

        log.warning(f"[image-fetch] Attempt {attempt + 1}/{total} failed for {url}: {outcome.error}")

        if state is AttemptState.EXHAUSTED:
            break

        delay = backoff_delay(attempt, outcome.cause)
        if delay > 0:
            await sleep(delay)

    log.error(f"[image-fetch] Giving up on {url} after {total} attempts")
    return None
