"""Shared read/write gate used to drain and pause live message handling."""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ


class PauseGate:
    """Asyncio read/write gate shared by every live message handler.

    Handlers hold the shared side for the whole of one message, so any
    number of them run concurrently. A maintenance task takes the exclusive
    side: it waits for in-flight handlers to finish, and from the moment it
    asks, no new handler is admitted until it releases. The gate belongs to
    the event loop on which it is first used.

    Examples
    --------
    >>> gate = PauseGate()
    >>> async def handle() -> None:
    ...     async with gate.shared():
    ...         ...
    >>> async def maintain() -> None:
    ...     async with gate.exclusive():
    ...         ...

    """

    def __init__(self) -> None:
        """Create an open gate."""
        self._condition = asyncio.Condition()
        self._holders = 0
        self._paused = False
        self._pause_requests = 0

    @property
    def holders(self) -> int:
        """Number of shared holds currently granted."""
        return self._holders

    @property
    def paused(self) -> bool:
        """True while the exclusive hold is requested or held."""
        return self._paused or self._pause_requests > 0

    @contextlib.asynccontextmanager
    async def shared(self) -> typ.AsyncIterator[None]:
        """Hold the gate open for one unit of live work."""
        async with self._condition:
            await self._condition.wait_for(lambda: not self.paused)
            self._holders += 1
        try:
            yield
        finally:
            async with self._condition:
                self._holders -= 1
                if self._holders == 0:
                    self._condition.notify_all()

    @contextlib.asynccontextmanager
    async def exclusive(self) -> typ.AsyncIterator[None]:
        """Drain shared holders and keep new ones out until released."""
        async with self._condition:
            self._pause_requests += 1
            try:
                await self._condition.wait_for(
                    lambda: not self._paused and self._holders == 0
                )
            except BaseException:
                self._pause_requests -= 1
                self._condition.notify_all()
                raise
            self._pause_requests -= 1
            self._paused = True
        try:
            yield
        finally:
            async with self._condition:
                self._paused = False
                self._condition.notify_all()
