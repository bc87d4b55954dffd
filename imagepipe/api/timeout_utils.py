"""
Timeout utilities for outbound calls.
A slow storage host must not hold a request open indefinitely.
"""
import asyncio
import logging
from typing import Callable, Any

logger = logging.getLogger(__name__)


async def with_timeout(
    coro_func: Callable[..., Any],
    timeout_seconds: float,
    operation_name: str = "operation"
) -> Any:
    """
    Execute an async operation with a strict timeout.

    The pending operation is cancelled when the timer fires.

    Args:
        coro_func: Async function to execute
        timeout_seconds: Maximum execution time in seconds
        operation_name: Name for logging

    Returns:
        Result from coro_func

    Raises:
        asyncio.TimeoutError: If the timeout is reached
    """
    try:
        return await asyncio.wait_for(coro_func(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"[timeout] {operation_name} exceeded {timeout_seconds}s")
        raise
