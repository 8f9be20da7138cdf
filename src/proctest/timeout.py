"""Overflow-safe microsecond timeouts.

A ``Timeout`` is either a positive number of microseconds that fits into a
native signed integer (``sys.maxsize``), or ``NO_TIMEOUT``.

Note the two readings of ``NO_TIMEOUT``:
- ``to_wait_argument`` maps it to ``-1``, which the bounded-wait primitive
  treats as "wait until the operation completes".
- ``sleep`` treats it as "do not sleep at all".

Example:
    seconds(0.2)                 # Timeout(micros=200000)
    Timeout.from_millis(10)      # Timeout(micros=10000)
    Timeout.from_micros(0)       # NO_TIMEOUT
"""

from __future__ import annotations

import math
import operator
import sys
from dataclasses import dataclass

import anyio

from .errors import InvalidTimeoutError

__all__ = [
    "Timeout",
    "NO_TIMEOUT",
    "MAX_MICROS",
    "seconds",
    "to_wait_argument",
    "sleep",
]

# Largest value a bounded timeout may hold
MAX_MICROS = sys.maxsize

# Wait argument meaning "no deadline"
WAIT_FOREVER = -1


@dataclass(frozen=True)
class Timeout:
    """A microsecond timeout, or no timeout at all.

    Use the ``from_*`` constructors instead of instantiating directly; they
    normalize non-positive values and reject values that overflow. Direct
    construction only accepts an int in ``1..MAX_MICROS`` or None.

    Attributes:
        micros: Microseconds, or None for NO_TIMEOUT
    """

    micros: int | None = None

    def __post_init__(self) -> None:
        if self.micros is None:
            return
        if not 1 <= operator.index(self.micros) <= MAX_MICROS:
            raise InvalidTimeoutError(
                f"proctest.Timeout: {self.micros} microseconds is outside 1..{MAX_MICROS}"
            )

    @classmethod
    def from_micros(cls, n: int) -> Timeout:
        """Turns the given number of microseconds into a ``Timeout``.

        Raises:
            InvalidTimeoutError: If ``n`` does not fit into a native int
            TypeError: If ``n`` is not an integer (use ``from_fractional_seconds``)
        """
        n = operator.index(n)
        if n <= 0:
            return NO_TIMEOUT
        if n > MAX_MICROS:
            raise InvalidTimeoutError(
                f"proctest.Timeout: {n} microseconds do not fit into a native int"
            )
        return cls(micros=n)

    @classmethod
    def from_millis(cls, n: int) -> Timeout:
        """Turns the given number of milliseconds into a ``Timeout``."""
        return cls.from_micros(operator.index(n) * 1000)

    @classmethod
    def from_seconds(cls, n: int) -> Timeout:
        """Turns the given number of whole seconds into a ``Timeout``."""
        return cls.from_micros(operator.index(n) * 1_000_000)

    @classmethod
    def from_fractional_seconds(cls, s: float) -> Timeout:
        """Turns floating seconds into a ``Timeout``.

        Microseconds are rounded with ``round`` (half to even), never
        truncated.
        """
        if math.isnan(s):
            raise InvalidTimeoutError(f"proctest.Timeout: {s} seconds is not a number")
        if math.isinf(s):
            if s < 0:
                return NO_TIMEOUT
            raise InvalidTimeoutError(
                f"proctest.Timeout: {s} seconds do not fit into a native int"
            )
        return cls.from_micros(round(s * 1_000_000))

    @property
    def is_bounded(self) -> bool:
        return self.micros is not None

    @property
    def seconds(self) -> float | None:
        """Timeout in seconds, None for NO_TIMEOUT."""
        if self.micros is None:
            return None
        return self.micros / 1_000_000

    def to_wait_argument(self) -> int:
        """Microseconds for the bounded-wait primitive, -1 for NO_TIMEOUT."""
        if self.micros is None:
            return WAIT_FOREVER
        return self.micros

    def __repr__(self) -> str:
        if self.micros is None:
            return "NO_TIMEOUT"
        return f"Timeout(micros={self.micros})"


NO_TIMEOUT = Timeout()


def seconds(s: float) -> Timeout:
    """Short cut for ``Timeout.from_fractional_seconds``."""
    return Timeout.from_fractional_seconds(s)


def to_wait_argument(timeout: Timeout) -> int:
    return timeout.to_wait_argument()


async def sleep(timeout: Timeout) -> None:
    """Suspends the current task for the given timeout.

    For NO_TIMEOUT this returns immediately.
    """
    if timeout.micros is None:
        return
    await anyio.sleep(timeout.micros / 1_000_000)
