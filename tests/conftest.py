"""Pytest configuration and fixtures."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Project root
PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

# Fixture programs
FIXTURES_DIR = PROJECT_ROOT / "tests" / "fixtures"
ECHO_CLI_PATH = FIXTURES_DIR / "echo_cli.py"


@pytest.fixture
def echo_cli() -> list[str]:
    """Command and leading arguments of the echo fixture program."""
    return [sys.executable, "-u", str(ECHO_CLI_PATH)]


@pytest.fixture(autouse=True)
def clean_proctest_env(monkeypatch: pytest.MonkeyPatch):
    """Run every test with default proctest configuration."""
    from proctest.config import reload_config

    for name in ("PROCTEST_BUFFERING", "PROCTEST_EXIT_TIMEOUT", "PROCTEST_LOG_DEBUG"):
        monkeypatch.delenv(name, raising=False)
    reload_config()
    yield
    monkeypatch.undo()
    reload_config()
