"""Runtime module for driving programs under test.

This module provides process spawning without a shell, bounded waits,
bounded reads from process output and explicit stream hygiene.
"""

from __future__ import annotations

from .bounded import Waiter, move_on_after_waiter, run_blocking, with_timeout
from .output import as_utf8, as_utf8_str, wait_output, wait_output_no_ex
from .process_runner import (
    ProcessHandles,
    close_process_streams,
    is_running,
    run,
    terminate_processes,
    wait_for_exit,
)
from .streams import ProcessStream, close_streams, set_buffering

__all__ = [
    "ProcessHandles",
    "ProcessStream",
    "Waiter",
    "as_utf8",
    "as_utf8_str",
    "close_process_streams",
    "close_streams",
    "is_running",
    "move_on_after_waiter",
    "run",
    "run_blocking",
    "set_buffering",
    "terminate_processes",
    "wait_for_exit",
    "wait_output",
    "wait_output_no_ex",
    "with_timeout",
]
