"""proctest - drive interactive command line programs from tests.

Read this first:
- Everything that can block is a coroutine; run it under anyio (asyncio or
  trio backend).
- Close the streams of EVERY process you spawn (``close_process_streams``)
  and terminate it (``terminate_processes``). Nothing is closed for you.
- ``run`` sets line buffering on all streams by default. Change it with
  ``set_buffering`` if you write partial lines.
- Programs are never run through a shell, so terminating them is reliable.

Environment variables:
    PROCTEST_BUFFERING: Default buffering of spawned streams (default line)
    PROCTEST_EXIT_TIMEOUT: Default seconds for wait_for_exit (default 5.0)
    PROCTEST_LOG_DEBUG: Debug logging for the proctest namespace
"""

__version__ = "0.1.0"

from .buffering import (
    LINE_BUFFERING,
    NO_BUFFERING,
    BufferKind,
    Buffering,
    block_buffering,
)
from .config import Config, configure_logging, get_config, load_config, reload_config
from .errors import (
    CommandNotFound,
    InvalidTimeoutError,
    ProctestError,
    RunException,
    TimeoutException,
)
from .runtime import (
    ProcessHandles,
    ProcessStream,
    Waiter,
    as_utf8,
    as_utf8_str,
    close_process_streams,
    close_streams,
    is_running,
    move_on_after_waiter,
    run,
    run_blocking,
    set_buffering,
    terminate_processes,
    wait_for_exit,
    wait_output,
    wait_output_no_ex,
    with_timeout,
)
from .timeout import NO_TIMEOUT, Timeout, seconds, sleep, to_wait_argument

__all__ = [
    "__version__",
    # String conversion
    "as_utf8",
    "as_utf8_str",
    # Running and stopping programs
    "ProcessHandles",
    "ProcessStream",
    "run",
    "RunException",
    "CommandNotFound",
    "is_running",
    "terminate_processes",
    "wait_for_exit",
    "close_streams",
    "close_process_streams",
    # Timeouts
    "Timeout",
    "NO_TIMEOUT",
    "InvalidTimeoutError",
    "seconds",
    "to_wait_argument",
    "sleep",
    # Communicating with programs
    "TimeoutException",
    "Waiter",
    "move_on_after_waiter",
    "with_timeout",
    "run_blocking",
    "wait_output",
    "wait_output_no_ex",
    "BufferKind",
    "Buffering",
    "NO_BUFFERING",
    "LINE_BUFFERING",
    "block_buffering",
    "set_buffering",
    # Configuration
    "Config",
    "load_config",
    "get_config",
    "reload_config",
    "configure_logging",
    "ProctestError",
]
