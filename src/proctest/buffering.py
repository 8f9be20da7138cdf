"""Buffering modes for process streams."""

from __future__ import annotations

import io
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "BufferKind",
    "Buffering",
    "NO_BUFFERING",
    "LINE_BUFFERING",
    "DEFAULT_BLOCK_SIZE",
    "block_buffering",
]

DEFAULT_BLOCK_SIZE = io.DEFAULT_BUFFER_SIZE


class BufferKind(str, Enum):
    """When buffered writes are handed to the child.

    - none: every write immediately
    - line: up to and including the last newline
    - block: once ``size`` bytes are pending
    """

    NONE = "none"
    LINE = "line"
    BLOCK = "block"


@dataclass(frozen=True)
class Buffering:
    """A buffering mode.

    Attributes:
        kind: Buffer kind
        size: Block size in bytes, only used for BLOCK
    """

    kind: BufferKind
    size: int | None = None

    def __post_init__(self) -> None:
        if self.kind is BufferKind.BLOCK:
            if self.size is None or self.size <= 0:
                raise ValueError(f"Block buffering needs a positive size, got {self.size}")
        elif self.size is not None:
            raise ValueError(f"{self.kind.value} buffering takes no size")

    def __repr__(self) -> str:
        if self.kind is BufferKind.BLOCK:
            return f"Buffering(block, size={self.size})"
        return f"Buffering({self.kind.value})"


NO_BUFFERING = Buffering(BufferKind.NONE)
LINE_BUFFERING = Buffering(BufferKind.LINE)


def block_buffering(size: int | None = None) -> Buffering:
    """Block buffering with ``size`` bytes (default: io.DEFAULT_BUFFER_SIZE)."""
    return Buffering(BufferKind.BLOCK, size if size is not None else DEFAULT_BLOCK_SIZE)
