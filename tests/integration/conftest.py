"""Integration test fixtures.

Provides a fully wired AppState over the fixture projects with the watcher
disabled, and the environment for subprocess-based MCP tests. Project and
registry fixtures come from tests/conftest.py.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from devhelper.config import Settings
from devhelper.lifecycle import open_app_state

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator
    from pathlib import Path

    from devhelper.state import AppState


@pytest.fixture()
def settings(registry_file: Path) -> Settings:
    return Settings(
        registry={"path": str(registry_file)},
        watcher={"enabled": False},
    )


@pytest.fixture()
async def app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Full AppState for the fixture projects, built the way the servers build it."""
    async with open_app_state(settings) as state:
        yield state


@pytest.fixture()
def subprocess_env(registry_file: Path) -> dict[str, str]:
    """Baseline env dict for subprocess-based MCP integration tests.

    Points the registry at the fixture projects.yml and turns the watcher off
    so the server starts instantly and exits cleanly.
    """
    env = os.environ.copy()
    env["DEVHELPER__REGISTRY__PATH"] = str(registry_file)
    env["DEVHELPER__WATCHER__ENABLED"] = "false"
    env["DEVHELPER__LOGGING__LEVEL"] = "WARNING"
    return env
