"""Start/stop lifecycle shared by the MCP server and the web server."""

from __future__ import annotations

from contextlib import asynccontextmanager
from functools import partial
from typing import TYPE_CHECKING

import structlog
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from devhelper.cache import DocumentCache
from devhelper.registry import ProjectRegistry
from devhelper.renderer import DocumentRenderer
from devhelper.state import AppState
from devhelper.watcher import InvalidationWatcher

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable, Sequence

    from watchdog.observers.api import BaseObserver

    from devhelper.config import Settings
    from devhelper.models.registry import Project

log = structlog.get_logger()


class RegistrySync:
    """WatchHandler that keeps AppState's registry view current."""

    def __init__(self, registry: ProjectRegistry) -> None:
        self._registry = registry

    def projects_reloaded(self, projects: Sequence[Project]) -> None:
        previous = self._registry.replace(projects)
        log.info(
            "registry_replaced",
            projects=[project.id for project in projects],
            previous=[project.id for project in previous],
        )

    def document_changed(self, project_id: str, doc_name: str) -> None:
        log.info("document_changed", project_id=project_id, doc_name=doc_name)


def _observer_factory(settings: Settings) -> Callable[[], BaseObserver]:
    if settings.watcher.polling:
        return partial(PollingObserver, timeout=settings.watcher.polling_interval_seconds)
    return Observer


@asynccontextmanager
async def open_app_state(settings: Settings) -> AsyncGenerator[AppState, None]:
    """Build AppState, start the watcher, and tear everything down on exit.

    A missing or invalid registry file raises ConfigError here: the caller
    cannot serve anything without a project list, so startup aborts.
    """
    registry = ProjectRegistry.from_file(settings.registry_path)
    cache = DocumentCache()
    state = AppState(
        settings=settings,
        registry=registry,
        cache=cache,
        renderer=DocumentRenderer(registry, cache),
    )

    if settings.watcher.enabled:
        state.watcher = InvalidationWatcher(
            settings.registry_path,
            cache,
            RegistrySync(registry),
            observer_factory=_observer_factory(settings),
        )
        state.watcher.start(registry.projects)

    try:
        yield state
    finally:
        if state.watcher is not None:
            await state.watcher.aclose()
