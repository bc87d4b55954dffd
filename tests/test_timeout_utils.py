"""
Tests for the per-attempt timeout wrapper.
"""
import asyncio

import pytest

from imagepipe.api.timeout_utils import with_timeout


def test_result_returned_within_deadline():
    async def quick():
        return "done"

    assert asyncio.run(with_timeout(quick, 1.0)) == "done"


def test_slow_operation_is_cancelled_and_raises():
    cancelled = []

    async def slow():
        try:
            await asyncio.sleep(5)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(with_timeout(slow, 0.02, operation_name="GET slow"))
    assert cancelled == [True]
