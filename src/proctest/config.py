"""proctest environment configuration.

Environment variables:
    PROCTEST_BUFFERING: Buffering mode that ``run`` applies to new streams
        - line = line buffering (default)
        - none = no buffering
        - block = block buffering with the default size
        - block:<size> = block buffering with ``size`` bytes
        - Invalid values fall back to line buffering

    PROCTEST_EXIT_TIMEOUT: Default seconds ``wait_for_exit`` waits
        - Default 5.0 seconds
        - Clamped to 0.1-300 seconds

    PROCTEST_LOG_DEBUG: Debug logging for the ``proctest`` namespace
        - true/1/yes/on = enabled
        - false/0/no/off = disabled (default)
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

from .buffering import (
    LINE_BUFFERING,
    NO_BUFFERING,
    Buffering,
    block_buffering,
)

__all__ = ["Config", "load_config", "get_config", "reload_config", "configure_logging"]

DEFAULT_EXIT_TIMEOUT = 5.0
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_buffering(value: str | None) -> Buffering:
    """Parse PROCTEST_BUFFERING.

    Args:
        value: Raw environment value, case insensitive

    Returns:
        The buffering mode, LINE_BUFFERING for missing or invalid values
    """
    if not value or not value.strip():
        return LINE_BUFFERING

    value = value.strip().lower()
    if value == "line":
        return LINE_BUFFERING
    if value == "none":
        return NO_BUFFERING
    if value == "block":
        return block_buffering()
    if value.startswith("block:"):
        try:
            size = int(value.split(":", 1)[1])
        except ValueError:
            return LINE_BUFFERING
        if size > 0:
            return block_buffering(size)
    return LINE_BUFFERING


def _parse_exit_timeout(value: str | None) -> float:
    """Parse PROCTEST_EXIT_TIMEOUT."""
    if not value:
        return DEFAULT_EXIT_TIMEOUT
    try:
        timeout = float(value)
    except ValueError:
        return DEFAULT_EXIT_TIMEOUT
    if timeout != timeout:  # NaN
        return DEFAULT_EXIT_TIMEOUT
    return max(0.1, min(timeout, 300.0))


@dataclass
class Config:
    """proctest configuration.

    Attributes:
        buffering: Buffering mode applied to streams of new processes
        exit_timeout: Default seconds to wait for a process to exit
        log_debug: Debug logging for the proctest namespace
    """

    buffering: Buffering = LINE_BUFFERING
    exit_timeout: float = DEFAULT_EXIT_TIMEOUT
    log_debug: bool = False


def load_config() -> Config:
    """Load configuration from the environment."""
    return Config(
        buffering=_parse_buffering(os.environ.get("PROCTEST_BUFFERING")),
        exit_timeout=_parse_exit_timeout(os.environ.get("PROCTEST_EXIT_TIMEOUT")),
        log_debug=_parse_bool(os.environ.get("PROCTEST_LOG_DEBUG"), default=False),
    )


# Global config instance (lazy)
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration (used by tests)."""
    global _config
    _config = load_config()
    return _config


def configure_logging(config: Config | None = None) -> logging.Handler:
    """Send ``proctest`` log records to stderr.

    Only the proctest namespace is raised to DEBUG (with PROCTEST_LOG_DEBUG)
    or INFO; other loggers are left alone. Importing proctest never calls
    this.

    Returns:
        The installed handler, so callers can remove it again
    """
    config = config or get_config()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    package_logger = logging.getLogger("proctest")
    package_logger.addHandler(handler)
    package_logger.setLevel(logging.DEBUG if config.log_debug else logging.INFO)
    return handler
