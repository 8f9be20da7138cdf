"""ProcessStream unit tests.

Test coverage:
- Write buffering (none/line/block) and flushing
- Changing the buffering mode
- Closing (flush on close, idempotence, errors)
- Reading (single bounded receive, end of stream)
"""

from __future__ import annotations

import io

import anyio
import pytest

from fakes import FakeReceiveStream, FakeSendStream
from proctest.buffering import (
    DEFAULT_BLOCK_SIZE,
    LINE_BUFFERING,
    NO_BUFFERING,
    BufferKind,
    Buffering,
    block_buffering,
)
from proctest.runtime.streams import ProcessStream, close_streams, set_buffering


def _stdin(buffering: Buffering = LINE_BUFFERING, **kwargs) -> tuple[ProcessStream, FakeSendStream]:
    fake = FakeSendStream(**kwargs)
    return ProcessStream("stdin", send_stream=fake, buffering=buffering), fake


# =============================================================================
# Buffering Mode Tests
# =============================================================================


class TestBuffering:
    """Test Buffering values."""

    def test_block_needs_size(self):
        with pytest.raises(ValueError):
            Buffering(BufferKind.BLOCK)
        with pytest.raises(ValueError):
            Buffering(BufferKind.BLOCK, 0)

    def test_line_takes_no_size(self):
        with pytest.raises(ValueError):
            Buffering(BufferKind.LINE, 10)

    def test_block_default_size(self):
        assert block_buffering() == Buffering(BufferKind.BLOCK, DEFAULT_BLOCK_SIZE)
        assert block_buffering(16).size == 16


# =============================================================================
# Write Tests
# =============================================================================


class TestWrite:
    """Test writing through the buffering modes."""

    @pytest.mark.asyncio
    async def test_no_buffering_sends_immediately(self):
        stream, fake = _stdin(NO_BUFFERING)
        await stream.write(b"a")
        await stream.write(b"bc")
        assert fake.sent == [b"a", b"bc"]
        assert stream.pending == b""

    @pytest.mark.asyncio
    async def test_line_buffering_holds_partial_lines(self):
        stream, fake = _stdin(LINE_BUFFERING)
        await stream.write(b"abc")
        assert fake.sent == []
        assert stream.pending == b"abc"

        await stream.write(b"d\nef")
        assert fake.sent == [b"abcd\n"]
        assert stream.pending == b"ef"

    @pytest.mark.asyncio
    async def test_line_buffering_sends_up_to_last_newline(self):
        stream, fake = _stdin(LINE_BUFFERING)
        await stream.write(b"one\ntwo\nthr")
        assert fake.sent == [b"one\ntwo\n"]
        assert stream.pending == b"thr"

    @pytest.mark.asyncio
    async def test_block_buffering(self):
        stream, fake = _stdin(block_buffering(4))
        await stream.write(b"ab")
        assert fake.sent == []
        await stream.write(b"c\nde")
        assert fake.sent == [b"abc\nde"]

    @pytest.mark.asyncio
    async def test_flush(self):
        stream, fake = _stdin(LINE_BUFFERING)
        await stream.write(b"partial")
        await stream.flush()
        assert fake.sent == [b"partial"]
        await stream.flush()
        assert fake.sent == [b"partial"]

    @pytest.mark.asyncio
    async def test_write_to_output_stream_rejected(self):
        stream = ProcessStream("stdout", receive_stream=FakeReceiveStream())
        with pytest.raises(io.UnsupportedOperation):
            await stream.write(b"x")

    def test_needs_exactly_one_stream(self):
        with pytest.raises(ValueError):
            ProcessStream("both", send_stream=FakeSendStream(), receive_stream=FakeReceiveStream())
        with pytest.raises(ValueError):
            ProcessStream("none")


class TestSetBuffering:
    """Test changing the buffering mode."""

    @pytest.mark.asyncio
    async def test_flushes_pending_before_switching(self):
        stream, fake = _stdin(LINE_BUFFERING)
        await stream.write(b"partial")
        await stream.set_buffering(NO_BUFFERING)
        assert fake.sent == [b"partial"]
        assert stream.buffering == NO_BUFFERING

        await stream.write(b"x")
        assert fake.sent == [b"partial", b"x"]

    @pytest.mark.asyncio
    async def test_applies_to_all_streams(self):
        stdin, _ = _stdin(LINE_BUFFERING)
        stdout = ProcessStream("stdout", receive_stream=FakeReceiveStream())
        await set_buffering(block_buffering(32), [stdin, stdout])
        assert stdin.buffering == block_buffering(32)
        assert stdout.buffering == block_buffering(32)


# =============================================================================
# Close Tests
# =============================================================================


class TestClose:
    """Test closing streams."""

    @pytest.mark.asyncio
    async def test_close_flushes_pending(self):
        stream, fake = _stdin(LINE_BUFFERING)
        await stream.write(b"tail")
        await stream.aclose()
        assert fake.sent == [b"tail"]
        assert fake.closed
        assert stream.closed

    @pytest.mark.asyncio
    async def test_close_drops_pending_when_child_is_gone(self):
        """Bytes the reader can no longer receive do not make close fail."""
        stream, fake = _stdin(LINE_BUFFERING, broken=True)
        await stream.write(b"partial")
        await stream.aclose()
        assert fake.sent == []
        assert fake.closed
        assert stream.closed
        assert stream.pending == b""

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        stream, fake = _stdin()
        await stream.aclose()
        await stream.aclose()
        assert fake.closed

    @pytest.mark.asyncio
    async def test_write_after_close(self):
        stream, _ = _stdin()
        await stream.aclose()
        with pytest.raises(anyio.ClosedResourceError):
            await stream.write(b"x\n")

    @pytest.mark.asyncio
    async def test_read_after_close(self):
        stream = ProcessStream("stdout", receive_stream=FakeReceiveStream([b"x"]))
        await stream.aclose()
        with pytest.raises(anyio.ClosedResourceError):
            await stream.receive_some(10)

    @pytest.mark.asyncio
    async def test_close_streams_closes_all_and_raises_first_error(self):
        failing, failing_fake = _stdin(fail_on_close=True)
        receive_fake = FakeReceiveStream()
        stdout = ProcessStream("stdout", receive_stream=receive_fake)

        with pytest.raises(OSError, match="close failed"):
            await close_streams([failing, stdout])

        assert failing_fake.closed
        assert receive_fake.closed
        assert stdout.closed


# =============================================================================
# Read Tests
# =============================================================================


class TestReceiveSome:
    """Test single bounded reads."""

    @pytest.mark.asyncio
    async def test_single_read_bounded_by_max_bytes(self):
        stream = ProcessStream("stdout", receive_stream=FakeReceiveStream([b"0123456789"]))
        assert await stream.receive_some(4) == b"0123"
        assert await stream.receive_some(100) == b"456789"

    @pytest.mark.asyncio
    async def test_does_not_accumulate(self):
        """Two available chunks need two reads."""
        stream = ProcessStream("stdout", receive_stream=FakeReceiveStream([b"ab", b"cd"]))
        assert await stream.receive_some(100) == b"ab"

    @pytest.mark.asyncio
    async def test_end_of_stream_is_empty(self):
        stream = ProcessStream("stdout", receive_stream=FakeReceiveStream(eof=True))
        assert await stream.receive_some(100) == b""

    @pytest.mark.asyncio
    async def test_read_from_input_stream_rejected(self):
        stream, _ = _stdin()
        with pytest.raises(io.UnsupportedOperation):
            await stream.receive_some(10)
