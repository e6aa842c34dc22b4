# tests/conftest.py
"""Shared fixtures for knockwatch tests.

Provides a two-rule configuration, a controllable clock for expiry tests and
a recording executor so no test ever runs a real shell command.
"""

import sys
from pathlib import Path

import pytest

# Ensure project modules can be imported without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from knockwatch.utils.config import Config, Rule  # noqa: E402


class FakeClock:
    """Callable clock returning a settable Unix timestamp."""

    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordingExecutor:
    """Stands in for CommandExecutor; remembers every match it was given."""

    def __init__(self, exit_code=0):
        self.matches = []
        self.exit_code = exit_code

    def run(self, match):
        self.matches.append(match)
        return self.exit_code


@pytest.fixture
def config():
    return Config(
        timeout=5,
        rules=(
            Rule(name="enable ssh", sequence=(1, 2, 3), command="ls -lh"),
            Rule(name="disable ssh", sequence=(3, 5, 6), command="du -sh *"),
        ),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def executor():
    return RecordingExecutor()
