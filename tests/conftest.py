"""Shared fixtures for restarter tests."""

import sys

import pytest

from restarter.config import Config


@pytest.fixture
def settings():
    """Settings with short timings so tests don't wait on defaults."""
    return Config(startup_grace=10, kill_timeout=2, http_timeout=2)


@pytest.fixture
def python_cmd():
    """Build an argv that runs a Python snippet in a child process."""

    def build(code: str) -> list[str]:
        return [sys.executable, "-c", code]

    return build
