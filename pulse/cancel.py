"""
Cooperative cancellation shared by every probe of a single run.

A ``CancelToken`` wraps an ``asyncio.Event``.  Network awaits are raced
against it with :meth:`CancelToken.guard`, so signalling the token aborts
the one request that is currently in flight instead of waiting for it.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, TypeVar

T = TypeVar("T")


class OperationCancelled(Exception):
    """Raised inside a probe when the run's token fires mid-operation."""


class CancelToken:
    """One-shot cancellation signal."""

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def guard(self, aw: Awaitable[T]) -> T:
        """
        Await *aw* unless the token fires first.

        On cancellation the wrapped task is cancelled and awaited, then
        ``OperationCancelled`` is raised.  Exceptions from *aw* propagate
        unchanged.
        """
        task = asyncio.ensure_future(aw)
        if self.cancelled:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise OperationCancelled()

        waiter = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if task.cancelled():
            raise OperationCancelled()
        return task.result()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if cancelled meanwhile."""
        if seconds <= 0:
            return self.cancelled
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        return self.cancelled
