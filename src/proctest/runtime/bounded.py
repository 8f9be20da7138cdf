"""Bounded waits: run an operation under a ``Timeout``.

The wait primitive itself is injectable. A *waiter* receives the native wait
argument (microseconds, or -1 for no deadline) and the operation, and returns
the operation's result or None when the budget elapsed first. The default
waiter uses ``anyio.move_on_after``, which cancels the operation at the
deadline.

Example:
    data = await with_timeout(seconds(0.5), lambda: stream.receive(1024))
    if data is None:
        ...  # timed out
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import anyio
import anyio.to_thread

from ..timeout import Timeout

__all__ = [
    "Waiter",
    "move_on_after_waiter",
    "with_timeout",
    "run_blocking",
]

logger = logging.getLogger(__name__)

T = TypeVar("T")

Waiter = Callable[[int, Callable[[], Awaitable[Any]]], Awaitable[Any]]


async def move_on_after_waiter(
    wait_argument: int,
    op: Callable[[], Awaitable[T]],
) -> T | None:
    """Default waiter based on ``anyio.move_on_after``.

    Args:
        wait_argument: Microseconds, or a negative value for no deadline
        op: Zero-argument coroutine function

    Returns:
        The result of ``op``, or None if it was cancelled at the deadline
    """
    delay = None if wait_argument < 0 else wait_argument / 1_000_000

    with anyio.move_on_after(delay) as scope:
        return await op()

    if scope.cancelled_caught:
        logger.debug(f"Bounded wait expired after {wait_argument}us")
    return None


async def with_timeout(
    timeout: Timeout,
    op: Callable[[], Awaitable[T]],
    *,
    waiter: Waiter | None = None,
) -> T | None:
    """Overflow-safe bounded wait using ``Timeout``.

    With NO_TIMEOUT the operation always runs to completion. Each call gets
    its own cancel scope, so concurrent callers never affect each other's
    deadlines.

    An operation that itself returns None is indistinguishable from a
    timeout; wrap such results if the difference matters.

    Args:
        timeout: Deadline for the operation
        op: Zero-argument coroutine function to run
        waiter: Wait primitive to use instead of ``move_on_after_waiter``

    Returns:
        The operation's result, or None if the deadline elapsed first
    """
    wait = waiter or move_on_after_waiter
    return await wait(timeout.to_wait_argument(), op)


async def run_blocking(
    timeout: Timeout,
    fn: Callable[[], T],
    *,
    waiter: Waiter | None = None,
) -> T | None:
    """Bounded wait around a synchronous, blocking callable.

    ``fn`` runs in a worker thread. Threads cannot be interrupted, so on
    expiry the thread is abandoned: it keeps running in the background and
    whatever it eventually returns is discarded.
    """
    return await with_timeout(
        timeout,
        lambda: anyio.to_thread.run_sync(fn, abandon_on_cancel=True),
        waiter=waiter,
    )
