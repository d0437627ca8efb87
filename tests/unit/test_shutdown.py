"""Tests for graceful shutdown functionality."""

import asyncio
import contextlib

import pytest

from src.nexus_projects.core.shutdown import RequestTracker

pytestmark = pytest.mark.unit


class TestRequestTracker:
    """Test the RequestTracker class."""

    async def test_request_tracking(self):
        tracker = RequestTracker()

        assert tracker.in_flight_count == 0
        assert not tracker.is_shutting_down

        async with tracker.track_request():
            assert tracker.in_flight_count == 1

        assert tracker.in_flight_count == 0

    async def test_shutdown_with_no_requests_drains_immediately(self):
        tracker = RequestTracker()

        await tracker.start_shutdown()

        assert tracker.is_shutting_down
        assert await tracker.wait_for_drain(timeout=1.0)

    async def test_shutdown_waits_for_in_flight_request(self):
        tracker = RequestTracker()
        release = asyncio.Event()

        async def slow_request():
            async with tracker.track_request():
                await release.wait()

        task = asyncio.create_task(slow_request())
        await asyncio.sleep(0)
        await tracker.start_shutdown()

        waiter = asyncio.create_task(tracker.wait_for_drain(timeout=2.0))
        await asyncio.sleep(0.05)
        assert not waiter.done()

        release.set()
        assert await waiter
        await task

    async def test_drain_timeout(self):
        tracker = RequestTracker()
        release = asyncio.Event()

        async def stuck_request():
            async with tracker.track_request():
                await release.wait()

        task = asyncio.create_task(stuck_request())
        await asyncio.sleep(0)
        await tracker.start_shutdown()

        assert not await tracker.wait_for_drain(timeout=0.05)

        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def test_reset(self):
        tracker = RequestTracker()
        await tracker.start_shutdown()

        tracker.reset()

        assert not tracker.is_shutting_down
        assert tracker.in_flight_count == 0
