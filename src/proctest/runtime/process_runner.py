"""Running and stopping programs under test.

This module provides:
- Spawning a program directly (never through a shell) with all three
  standard streams piped
- "Command not found" detection at spawn time
- Liveness checks, termination and bounded waits for exit
- Explicit closing of all streams of spawned programs

Key design points:
- Programs run without a shell so that terminating the returned process
  really terminates the program, not just a shell around it
- Nothing is cleaned up implicitly: callers close streams and terminate
  processes themselves, for EVERY process they spawn

Example:
    stdin, stdout, stderr, process = await run("cat")
    await stdin.write(b"hello world\\n")
    assert await wait_output(seconds(0.01), 1000, stdout) == b"hello world\\n"
    terminate_processes([process])
    await close_process_streams([ProcessHandles(stdin, stdout, stderr, process)])
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable, Mapping, Sequence
from os import PathLike
from typing import NamedTuple

import anyio
import anyio.abc

from ..buffering import Buffering
from ..config import get_config
from ..errors import CommandNotFound
from ..timeout import Timeout, seconds
from .bounded import with_timeout
from .streams import ProcessStream, close_streams

__all__ = [
    "ProcessHandles",
    "run",
    "is_running",
    "terminate_processes",
    "wait_for_exit",
    "close_process_streams",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"

# Non-reaping exit check (Linux, other POSIX systems, macOS since 3.13)
HAS_WAITID = hasattr(os, "waitid") and hasattr(os, "WNOWAIT")

# Exit status POSIX shells and exec wrappers use for "command not found"
COMMAND_NOT_FOUND_EXIT_CODE = 127


class ProcessHandles(NamedTuple):
    """Streams and process of a spawned program.

    ALWAYS in the order stdin, stdout, stderr, process.
    """

    stdin: ProcessStream
    stdout: ProcessStream
    stderr: ProcessStream
    process: anyio.abc.Process


async def run(
    command: str | PathLike[str],
    args: Sequence[str] = (),
    *,
    cwd: str | PathLike[str] | None = None,
    env: Mapping[str, str] | None = None,
    buffering: Buffering | None = None,
) -> ProcessHandles:
    """Runs a program with the given arguments.

    Directly runs the program, does not use a shell.

    Sets the buffering of all three streams to the configured mode
    (PROCTEST_BUFFERING, line buffering by default) if successful.

    "Command not found" is detected in two ways:
    - the spawn primitive reports a missing executable (FileNotFoundError)
    - the program has already exited with status 127 when first checked.
      This is a heuristic: a program that really exits with 127 right away
      is reported as not found, and one that takes longer to fail with 127
      is reported as running.

    Args:
        command: Program name (looked up in PATH) or path
        args: Arguments, passed as is
        cwd: Working directory (None = inherit)
        env: Environment variables (None = inherit)
        buffering: Buffering mode overriding the configured default

    Returns:
        ``ProcessHandles(stdin, stdout, stderr, process)``

    Raises:
        CommandNotFound: If the command does not exist
    """
    argv = [str(command), *args]
    mode = buffering or get_config().buffering

    try:
        process = await anyio.open_process(
            argv,
            cwd=cwd,
            env=dict(env) if env is not None else None,
        )
    except FileNotFoundError as e:
        logger.debug(f"Spawn failed, command not found: {argv[0]}")
        raise CommandNotFound(str(command)) from e

    if process.returncode == COMMAND_NOT_FOUND_EXIT_CODE:
        logger.debug(f"Subprocess pid={process.pid} exited with 127, command not found: {argv[0]}")
        await process.aclose()
        raise CommandNotFound(str(command))

    logger.debug(f"Started subprocess pid={process.pid} argv={argv}")

    return ProcessHandles(
        stdin=ProcessStream("stdin", send_stream=process.stdin, buffering=mode),
        stdout=ProcessStream("stdout", receive_stream=process.stdout, buffering=mode),
        stderr=ProcessStream("stderr", receive_stream=process.stderr, buffering=mode),
        process=process,
    )


def _has_exited(pid: int) -> bool:
    """Asks the OS whether the child has exited, without reaping it.

    WNOWAIT leaves the exit status in place for the event loop's child
    watcher, which records it in ``returncode`` later.
    """
    try:
        result = os.waitid(os.P_PID, pid, os.WEXITED | os.WNOHANG | os.WNOWAIT)
    except ChildProcessError:
        # Already reaped by the child watcher
        return True
    return result is not None


def is_running(process: anyio.abc.Process) -> bool:
    """Tells whether the given process is still running.

    Non-blocking. ``returncode`` is only updated when the event loop handles
    the child's exit, so where ``os.waitid`` is available the OS is asked
    directly. Elsewhere (Windows, older macOS) the result is only current
    after the caller has awaited something.
    """
    if process.returncode is not None:
        return False
    if HAS_WAITID:
        return not _has_exited(process.pid)
    return True


def terminate_processes(processes: Iterable[anyio.abc.Process]) -> None:
    """Terminates all processes in the list.

    Sends a termination request (SIGTERM, TerminateProcess on Windows) to
    each process and returns without waiting. Processes that have already
    exited are skipped silently. Every process gets its request; if any
    fail, the first failure is raised afterwards.
    """
    first_error: BaseException | None = None
    for process in processes:
        try:
            process.terminate()
            logger.debug(f"Sent terminate to pid={process.pid}")
        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={process.pid}")
        except OSError as e:
            # Windows reports access denied for processes that have exited
            if process.returncode is not None:
                logger.debug(f"Subprocess already exited pid={process.pid}: {e}")
                continue
            logger.debug(f"Error terminating pid={process.pid}: {e}")
            if first_error is None:
                first_error = e
    if first_error is not None:
        raise first_error


async def wait_for_exit(
    process: anyio.abc.Process,
    timeout: Timeout | None = None,
) -> int | None:
    """Waits for the process to exit.

    Args:
        process: The process to wait for
        timeout: Deadline (None = PROCTEST_EXIT_TIMEOUT)

    Returns:
        Exit code, or None if the process is still running at the deadline
    """
    if timeout is None:
        timeout = seconds(get_config().exit_timeout)
    return await with_timeout(timeout, process.wait)


async def close_process_streams(handles: Iterable[ProcessHandles]) -> None:
    """Closes all streams of all given handle-process tuples.

    The processes themselves are left alone. It is safe to call this on
    processes which have already exited. If closing fails, the first failure
    is raised after all streams have been closed.
    """
    first_error: BaseException | None = None
    for stdin, stdout, stderr, process in handles:
        try:
            await close_streams([stdin, stdout, stderr])
        except Exception as e:
            logger.debug(f"Error closing streams of pid={process.pid}: {e}")
            if first_error is None:
                first_error = e
    if first_error is not None:
        raise first_error
