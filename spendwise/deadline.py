"""
Caller-supplied deadline and cancellation token.

A ``Deadline`` is created by the caller and threaded through every network
round-trip (reasoning service, embedding service, data store). Expiry and
explicit cancellation are reported as ``DeadlineExceeded`` and
``OperationCancelled``; neither ever triggers a local fallback.

Usage:
    >>> deadline = Deadline(seconds=20)
    >>> result = await deadline.run(model.ainvoke(messages))
"""

import asyncio
import time
from collections.abc import Awaitable
from typing import TypeVar

from spendwise.errors import DeadlineExceeded, OperationCancelled

T = TypeVar("T")


class Deadline:
    """Absolute deadline plus a cancellation flag shared by one request."""

    def __init__(self, seconds: float | None = None):
        self.expires_at = time.monotonic() + seconds if seconds is not None else None
        self._cancelled = asyncio.Event()

    def remaining(self) -> float | None:
        """Seconds left, or None when there is no time limit."""
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Abort every in-flight call guarded by this deadline."""
        self._cancelled.set()

    def check(self) -> None:
        """Raise if the deadline is already cancelled or expired."""
        if self.cancelled:
            raise OperationCancelled("operation cancelled by caller")
        if self.expired:
            raise DeadlineExceeded("deadline exceeded")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless the deadline expires or is cancelled first.

        Raises:
            DeadlineExceeded: If the deadline expires before completion
            OperationCancelled: If ``cancel()`` is called before completion
        """
        task = asyncio.ensure_future(awaitable)
        if self.cancelled or self.expired:
            task.cancel()
            self.check()

        waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        try:
            await task
        except (asyncio.CancelledError, Exception):
            pass
        self.check()
        raise DeadlineExceeded("deadline exceeded")


async def run_with_deadline(awaitable: Awaitable[T], deadline: Deadline | None) -> T:
    """Await ``awaitable`` under ``deadline`` when one is supplied."""
    if deadline is None:
        return await awaitable
    return await deadline.run(awaitable)
