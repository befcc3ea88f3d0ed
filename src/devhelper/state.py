"""Application state container.

AppState is created once per server process by ``open_app_state`` (see
lifecycle.py) and handed explicitly to every MCP tool handler and HTTP route.
There is no process-wide singleton.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from devhelper.config import Settings
    from devhelper.protocols import CacheProtocol
    from devhelper.registry import ProjectRegistry
    from devhelper.renderer import DocumentRenderer
    from devhelper.watcher import InvalidationWatcher


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every handler."""

    settings: Settings
    registry: ProjectRegistry
    cache: CacheProtocol
    renderer: DocumentRenderer

    # None when watching is disabled or in tests that drive invalidation directly
    watcher: InvalidationWatcher | None = None
