"""In-flight request accounting so shutdown can drain before closing pools."""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from src.nexus_projects.core.logging import get_logger

logger = get_logger(__name__)


class RequestTracker:
    """Counts requests in flight and signals when the count reaches zero during shutdown."""

    def __init__(self) -> None:
        self._in_flight = 0
        self._shutting_down = False
        self._lock = asyncio.Lock()
        self._drain_event = asyncio.Event()

    @property
    def is_shutting_down(self) -> bool:
        return self._shutting_down

    @property
    def in_flight_count(self) -> int:
        return self._in_flight

    @asynccontextmanager
    async def track_request(self) -> AsyncGenerator[None, None]:
        async with self._lock:
            self._in_flight += 1
        try:
            yield
        finally:
            async with self._lock:
                self._in_flight -= 1
                if self._in_flight == 0 and self._shutting_down:
                    self._drain_event.set()

    async def start_shutdown(self) -> None:
        self._shutting_down = True
        async with self._lock:
            if self._in_flight == 0:
                self._drain_event.set()
            else:
                logger.info("Waiting for in-flight requests", in_flight=self._in_flight)

    async def wait_for_drain(self, timeout: float) -> bool:
        """Wait until every tracked request finished.

        Returns:
            True if drained within timeout, False otherwise.
        """
        try:
            await asyncio.wait_for(self._drain_event.wait(), timeout=timeout)
            return True
        except TimeoutError:
            logger.warning(
                "Shutdown drain timed out", timeout=timeout, in_flight=self._in_flight
            )
            return False

    def reset(self) -> None:
        """Reset tracker state. For testing only."""
        self._in_flight = 0
        self._shutting_down = False
        self._drain_event = asyncio.Event()


request_tracker = RequestTracker()
