"""Bounded reads from process output.

Both readers issue exactly one receive of at most ``max_bytes`` bytes under a
deadline: a silent child cannot block the test longer than the timeout, and a
chatty one cannot flood it with more than ``max_bytes``. Call them again to
read more.
"""

from __future__ import annotations

import logging

import anyio
import anyio.abc

from ..errors import TimeoutException
from ..timeout import Timeout
from .bounded import Waiter, with_timeout
from .streams import ProcessStream

__all__ = [
    "as_utf8",
    "as_utf8_str",
    "wait_output",
    "wait_output_no_ex",
]

logger = logging.getLogger(__name__)


def as_utf8(data: bytes) -> str:
    """Treats ``data`` as UTF-8 encoded text."""
    return data.decode("utf-8")


def as_utf8_str(data: bytes | None) -> str:
    """Like ``as_utf8``, but maps a missing read result to ""."""
    if data is None:
        return ""
    return as_utf8(data)


async def _receive_some(
    stream: ProcessStream | anyio.abc.ByteReceiveStream,
    max_bytes: int,
) -> bytes:
    if isinstance(stream, ProcessStream):
        return await stream.receive_some(max_bytes)
    try:
        return await stream.receive(max_bytes)
    except anyio.EndOfStream:
        return b""


async def wait_output_no_ex(
    timeout: Timeout,
    max_bytes: int,
    stream: ProcessStream | anyio.abc.ByteReceiveStream,
    *,
    waiter: Waiter | None = None,
) -> bytes | None:
    """Blocking wait for output on the given stream.

    Args:
        timeout: Timeout after which reading output is aborted
        max_bytes: Maximum number of bytes to read
        stream: The stream to read from
        waiter: Wait primitive override, see ``with_timeout``

    Returns:
        What was read (b"" at end of stream), or None if the timeout was
        exceeded
    """
    if max_bytes <= 0:
        raise ValueError(f"max_bytes must be positive, got {max_bytes}")

    data = await with_timeout(
        timeout,
        lambda: _receive_some(stream, max_bytes),
        waiter=waiter,
    )
    if data is None:
        logger.debug(f"No output within {timeout!r} from {getattr(stream, 'name', stream)}")
    return data


async def wait_output(
    timeout: Timeout,
    max_bytes: int,
    stream: ProcessStream | anyio.abc.ByteReceiveStream,
    *,
    waiter: Waiter | None = None,
) -> bytes:
    """Blocking wait for output on the given stream.

    Same as ``wait_output_no_ex``, but raises instead of returning None.

    Raises:
        TimeoutException: If the timeout is exceeded
    """
    data = await wait_output_no_ex(timeout, max_bytes, stream, waiter=waiter)
    if data is None:
        raise TimeoutException
    return data
