"""Process streams with explicit buffering and explicit closing.

A ``ProcessStream`` wraps one anyio byte stream of a child process:
- stdin wraps a ``ByteSendStream``; writes are held back according to the
  stream's buffering mode
- stdout/stderr wrap a ``ByteReceiveStream``; every read is a single receive
  of at most ``max_bytes``, independent of the buffering mode

Streams are never closed implicitly. Close them with ``close_streams`` (or
``close_process_streams``) while you still know the child's state; a child
writing into a pipe nobody reads from, or reading from one nobody closes,
behaves in surprising ways.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Iterable

import anyio
import anyio.abc

from ..buffering import LINE_BUFFERING, BufferKind, Buffering

__all__ = [
    "ProcessStream",
    "set_buffering",
    "close_streams",
]

logger = logging.getLogger(__name__)


class ProcessStream:
    """One standard stream of a child process.

    Attributes:
        name: Stream name used in logs and errors ("stdin", "stdout", ...)
    """

    def __init__(
        self,
        name: str,
        *,
        send_stream: anyio.abc.ByteSendStream | None = None,
        receive_stream: anyio.abc.ByteReceiveStream | None = None,
        buffering: Buffering = LINE_BUFFERING,
    ) -> None:
        if (send_stream is None) == (receive_stream is None):
            raise ValueError("ProcessStream needs exactly one of send_stream/receive_stream")
        self.name = name
        self._send = send_stream
        self._receive = receive_stream
        self._buffering = buffering
        self._pending = bytearray()
        self._closed = False

    @property
    def buffering(self) -> Buffering:
        return self._buffering

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def writable(self) -> bool:
        return self._send is not None

    @property
    def readable(self) -> bool:
        return self._receive is not None

    @property
    def pending(self) -> bytes:
        """Written bytes not yet handed to the child."""
        return bytes(self._pending)

    async def write(self, data: bytes) -> None:
        """Write bytes, handing them to the child as the buffering mode allows."""
        self._writable_stream()
        self._pending.extend(data)

        kind = self._buffering.kind
        if kind is BufferKind.NONE:
            await self._send_pending(len(self._pending))
        elif kind is BufferKind.LINE:
            newline = self._pending.rfind(b"\n")
            if newline >= 0:
                await self._send_pending(newline + 1)
        elif len(self._pending) >= (self._buffering.size or 0):
            await self._send_pending(len(self._pending))

    async def flush(self) -> None:
        """Hand all pending bytes to the child."""
        self._writable_stream()
        if self._pending:
            await self._send_pending(len(self._pending))

    async def receive_some(self, max_bytes: int) -> bytes:
        """Single read of up to ``max_bytes`` bytes.

        Blocks until at least one byte is available. Returns b"" at end of
        stream.
        """
        if self._receive is None:
            raise io.UnsupportedOperation(f"{self.name} is not readable")
        if self._closed:
            raise anyio.ClosedResourceError
        try:
            return await self._receive.receive(max_bytes)
        except anyio.EndOfStream:
            return b""

    async def set_buffering(self, buffering: Buffering) -> None:
        """Change the buffering mode, flushing pending bytes first."""
        if self._send is not None and not self._closed and self._pending:
            await self._send_pending(len(self._pending))
        self._buffering = buffering
        logger.debug(f"Set buffering of {self.name} to {buffering!r}")

    async def aclose(self) -> None:
        """Flush pending bytes and close the underlying stream.

        Closing an already closed stream does nothing. Pending bytes the
        child can no longer receive (it has exited or closed its end) are
        dropped.
        """
        if self._closed:
            return
        self._closed = True
        underlying = self._send if self._send is not None else self._receive
        try:
            if self._send is not None and self._pending:
                data = bytes(self._pending)
                self._pending.clear()
                try:
                    await self._send.send(data)
                except (anyio.BrokenResourceError, anyio.ClosedResourceError) as e:
                    logger.debug(f"Dropped {len(data)} pending bytes of {self.name}: {e!r}")
        finally:
            await underlying.aclose()
            logger.debug(f"Closed {self.name}")

    def _writable_stream(self) -> anyio.abc.ByteSendStream:
        if self._send is None:
            raise io.UnsupportedOperation(f"{self.name} is not writable")
        if self._closed:
            raise anyio.ClosedResourceError
        return self._send

    async def _send_pending(self, count: int) -> None:
        data = bytes(self._pending[:count])
        await self._send.send(data)
        del self._pending[:count]

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"ProcessStream({self.name!r}, {state}, {self._buffering!r})"


async def set_buffering(buffering: Buffering, streams: Iterable[ProcessStream]) -> None:
    """Sets the buffering of all given streams to ``buffering``."""
    for stream in streams:
        await stream.set_buffering(buffering)


async def close_streams(streams: Iterable[ProcessStream]) -> None:
    """Closes all given streams.

    Every close is attempted; if any fail, the first failure is raised after
    the remaining streams have been closed.
    """
    first_error: BaseException | None = None
    for stream in streams:
        try:
            await stream.aclose()
        except Exception as e:
            logger.debug(f"Error closing {stream.name}: {e}")
            if first_error is None:
                first_error = e
    if first_error is not None:
        raise first_error
