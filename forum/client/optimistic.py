"""Optimistic updates with revert-on-failure.

A command applies its new value locally before the server confirms it. If the
remote call fails, the value captured before the change is restored and the
command can be retried.

States: ``IDLE -> PENDING -> COMMITTED | ROLLED_BACK``; ``retry()`` takes a
rolled-back command through ``PENDING`` again.
"""

from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class CommandState(str, Enum):
    """Lifecycle of an optimistic command."""

    IDLE = "idle"
    PENDING = "pending"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


def toggled(current: T | None, clicked: T) -> T | None:
    """Value the server will store when ``clicked`` is sent over ``current``.

    Clicking the active disposition clears it; anything else replaces it.
    """
    return None if clicked == current else clicked


class OptimisticCommand(Generic[T]):
    """Apply a local change immediately and reconcile with the server.

    Args:
        read: Returns the current local value
        write: Replaces the local value
        remote: Sends the new value to the server; raising means failure
        value: The value to apply
    """

    def __init__(
        self,
        read: Callable[[], T],
        write: Callable[[T], None],
        remote: Callable[[T], Awaitable[Any]],
        value: T,
    ):
        self._read = read
        self._write = write
        self._remote = remote
        self.value = value
        self.state = CommandState.IDLE
        self.previous: T | None = None
        self.error: Exception | None = None

    async def execute(self) -> Any:
        """Apply locally, then await the server.

        Returns:
            The remote call's result once committed

        Raises:
            Whatever the remote call raised, after the local value is restored
        """
        if self.state != CommandState.IDLE:
            msg = f"Command already {self.state.value}"
            raise RuntimeError(msg)
        return await self._run()

    async def retry(self) -> Any:
        """Re-run a rolled-back command."""
        if self.state != CommandState.ROLLED_BACK:
            msg = "Only a rolled-back command can be retried"
            raise RuntimeError(msg)
        return await self._run()

    async def _run(self) -> Any:
        self.previous = self._read()
        self.error = None
        self.state = CommandState.PENDING
        self._write(self.value)

        try:
            result = await self._remote(self.value)
        except Exception as e:
            self._write(self.previous)
            self.state = CommandState.ROLLED_BACK
            self.error = e
            logger.warning("optimistic_update_rolled_back", error=str(e))
            raise

        self.state = CommandState.COMMITTED
        return result
