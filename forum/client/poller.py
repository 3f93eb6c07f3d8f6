"""Periodic notification refresh.

Polling is the only refresh mechanism. The poller keeps at most one request
in flight: a tick that finds the previous request still outstanding is
skipped, and each completed response replaces the local snapshot.
"""

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import Any

import structlog


logger = structlog.get_logger(__name__)


class NotificationPoller:
    """Fetch the inbox on a fixed interval until stopped."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        interval_seconds: float = 30.0,
        on_update: Callable[[Any], None] | None = None,
    ):
        self._fetch = fetch
        self.interval_seconds = interval_seconds
        self._on_update = on_update
        self.snapshot: Any = None
        self.skipped_ticks = 0
        self._running = False
        self._task: asyncio.Task | None = None
        self._in_flight: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    async def start(self) -> None:
        """Start polling; the first fetch happens immediately."""
        if self._running:
            logger.warning("notification_poller_already_running")
            return

        self._running = True
        self._task = asyncio.create_task(self._worker_loop(), name="notification_poller")
        logger.info("notification_poller_started", interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Cancel the loop and any outstanding request."""
        if not self._running:
            return

        self._running = False
        for task in (self._task, self._in_flight):
            if task and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._task = None
        self._in_flight = None
        logger.info("notification_poller_stopped")

    def tick(self) -> bool:
        """Start a fetch unless one is outstanding. Returns whether it started."""
        if self.in_flight:
            self.skipped_ticks += 1
            logger.debug("notification_poll_skipped", skipped_ticks=self.skipped_ticks)
            return False
        self._in_flight = asyncio.create_task(self._poll_once())
        return True

    async def _worker_loop(self) -> None:
        while self._running:
            self.tick()
            await asyncio.sleep(self.interval_seconds)

    async def _poll_once(self) -> None:
        try:
            snapshot = await self._fetch()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("notification_poll_failed")
            return

        self.snapshot = snapshot
        if self._on_update:
            self._on_update(snapshot)
