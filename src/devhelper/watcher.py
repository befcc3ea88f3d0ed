"""Filesystem-driven cache invalidation and registry reload.

Two kinds of watch run on a single watchdog observer:

- the config watch observes the registry file. On change it reloads the
  registry, hands the new list to the owner, and rebuilds every project
  watch from scratch.
- one project watch per project observes ``*.md`` beneath the project root
  recursively. On change it deletes that document's cache entry and tells
  the owner which document changed.

watchdog delivers events on its own thread. Every event is handed to the
asyncio loop with ``call_soon_threadsafe`` so all registry and cache
mutation happens on the loop thread, each in a single step.
"""

from __future__ import annotations

import asyncio
import os
from contextlib import suppress
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from devhelper.cache import cache_key
from devhelper.documents import MARKDOWN_SUFFIX, document_name_for
from devhelper.errors import ConfigError
from devhelper.registry import load_registry

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from watchdog.observers.api import BaseObserver, ObservedWatch

    from devhelper.models.registry import Project
    from devhelper.protocols import CacheProtocol, WatchHandler

log = structlog.get_logger()

_CHANGE_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_MOVED, EVENT_TYPE_DELETED}
)


def _event_paths(event: FileSystemEvent) -> list[str]:
    paths = [os.fsdecode(event.src_path)]
    dest_path = getattr(event, "dest_path", "")
    if dest_path:
        paths.append(os.fsdecode(dest_path))
    return paths


class _ConfigEventHandler(FileSystemEventHandler):
    """Filters events in the config directory down to the registry file."""

    def __init__(self, config_path: Path, notify: Callable[[], None]) -> None:
        super().__init__()
        self._config_path = os.path.normpath(config_path)
        self._notify = notify

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        if any(os.path.normpath(path) == self._config_path for path in _event_paths(event)):
            self._notify()


class _ProjectEventHandler(FileSystemEventHandler):
    """Forwards Markdown file events under one project root."""

    def __init__(self, notify: Callable[[str], None]) -> None:
        super().__init__()
        self._notify = notify

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in _CHANGE_EVENTS:
            return
        for path in _event_paths(event):
            if path.endswith(MARKDOWN_SUFFIX):
                self._notify(path)


@dataclass(eq=False)
class _Subscription:
    project: Project
    root: Path
    watch: ObservedWatch | None = None


class InvalidationWatcher:
    """Keeps the document cache and the project registry in step with disk."""

    def __init__(
        self,
        config_path: Path,
        cache: CacheProtocol,
        handler: WatchHandler,
        *,
        loader: Callable[[Path], list[Project]] = load_registry,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        self._config_path = config_path.expanduser().absolute()
        self._cache = cache
        self._handler = handler
        self._loader = loader
        self._observer_factory = observer_factory

        self._loop: asyncio.AbstractEventLoop | None = None
        self._observer: BaseObserver | None = None
        self._config_watch: ObservedWatch | None = None
        self._subscriptions: dict[str, _Subscription] = {}
        self._projects: tuple[Project, ...] = ()

    @property
    def running(self) -> bool:
        return self._observer is not None

    @property
    def watched_projects(self) -> frozenset[str]:
        return frozenset(self._subscriptions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, projects: Sequence[Project] | None = None) -> None:
        """Start watching. Must be called from the running event loop.

        When *projects* is None the registry is loaded here; a ConfigError
        leaves the watcher inert apart from the config watch, so fixing the
        file later still brings the project watches up.
        """
        if self._observer is not None:
            raise RuntimeError("InvalidationWatcher is already running")

        self._loop = asyncio.get_running_loop()
        observer = self._observer_factory()
        observer.start()
        self._observer = observer

        self._watch_config()

        if projects is None:
            try:
                projects = self._loader(self._config_path)
            except ConfigError as exc:
                log.warning("watcher_initial_load_failed", error=exc.message)
                return

        self._rebuild_project_watches(projects)
        log.info(
            "watcher_started",
            config_path=str(self._config_path),
            projects=len(self._subscriptions),
        )

    def stop(self, *, join: bool = True) -> None:
        observer = self._observer
        if observer is None:
            return
        self._teardown_project_watches()
        if self._config_watch is not None:
            self._unschedule(self._config_watch)
            self._config_watch = None
        observer.stop()
        if join:
            observer.join()
        self._observer = None
        self._loop = None
        log.info("watcher_stopped")

    async def aclose(self) -> None:
        """Stop watching and wait for the observer thread off the event loop."""
        observer = self._observer
        self.stop(join=False)
        if observer is not None:
            await asyncio.to_thread(observer.join)

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------

    def _watch_config(self) -> None:
        assert self._observer is not None
        config_dir = self._config_path.parent
        if not config_dir.is_dir():
            log.warning("config_watch_skipped", reason="missing_directory", path=str(config_dir))
            return
        # Events are reported under the scheduled directory, so match against
        # the file's name inside the resolved directory rather than the
        # (possibly symlinked) configured path.
        config_dir = config_dir.resolve()
        handler = _ConfigEventHandler(
            config_dir / self._config_path.name, self._post_config_change
        )
        try:
            self._config_watch = self._observer.schedule(handler, str(config_dir), recursive=False)
        except OSError as exc:
            log.warning("config_watch_failed", path=str(config_dir), error=str(exc))

    def _rebuild_project_watches(self, projects: Sequence[Project]) -> None:
        assert self._observer is not None
        self._teardown_project_watches()

        for project in projects:
            try:
                root = project.root.resolve()
            except OSError as exc:
                log.warning("project_watch_skipped", project_id=project.id, error=str(exc))
                continue
            if not root.is_dir():
                log.warning(
                    "project_watch_skipped",
                    project_id=project.id,
                    reason="missing_root",
                    path=str(root),
                )
                continue

            subscription = _Subscription(project=project, root=root)
            handler = _ProjectEventHandler(
                lambda path, sub=subscription: self._post_file_change(sub, path)
            )
            try:
                subscription.watch = self._observer.schedule(handler, str(root), recursive=True)
            except OSError as exc:
                log.warning("project_watch_failed", project_id=project.id, error=str(exc))
                continue
            self._subscriptions[project.id] = subscription

        self._projects = tuple(projects)

    def _teardown_project_watches(self) -> None:
        for subscription in self._subscriptions.values():
            if subscription.watch is not None:
                self._unschedule(subscription.watch)
        self._subscriptions.clear()

    def _unschedule(self, watch: ObservedWatch) -> None:
        assert self._observer is not None
        # Projects sharing a root share one ObservedWatch; the second
        # unschedule of it raises KeyError.
        with suppress(KeyError):
            self._observer.unschedule(watch)

    # ------------------------------------------------------------------
    # Observer thread -> event loop
    # ------------------------------------------------------------------

    def _post_config_change(self) -> None:
        self._call_soon(self._reload_registry)

    def _post_file_change(self, subscription: _Subscription, path: str) -> None:
        self._call_soon(self._invalidate, subscription, path)

    def _call_soon(self, callback: Callable[..., None], *args: object) -> None:
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop already closed during shutdown
            log.debug("watch_event_dropped", reason="loop_closed")

    # ------------------------------------------------------------------
    # Event loop side
    # ------------------------------------------------------------------

    def _reload_registry(self) -> None:
        if self._observer is None:
            return
        try:
            projects = self._loader(self._config_path)
        except ConfigError as exc:
            log.warning("registry_reload_failed", error=exc.message)
            return

        new_by_id = {project.id: project for project in projects}
        for old in self._projects:
            new = new_by_id.get(old.id)
            if new is None or new.path != old.path:
                purged = self._cache.purge_project(old.id)
                log.info(
                    "project_cache_purged",
                    project_id=old.id,
                    reason="removed" if new is None else "path_changed",
                    entries=purged,
                )

        self._notify_owner(self._handler.projects_reloaded, projects)
        self._rebuild_project_watches(projects)
        log.info("registry_reloaded", projects=len(projects), watched=len(self._subscriptions))

    def _invalidate(self, subscription: _Subscription, path: str) -> None:
        project = subscription.project
        if self._subscriptions.get(project.id) is not subscription:
            # Torn down by a reload after the event was queued
            return
        doc_name = document_name_for(subscription.root, path)
        if doc_name is None:
            return
        removed = self._cache.delete(cache_key(project.id, doc_name))
        log.info(
            "document_invalidated",
            project_id=project.id,
            doc_name=doc_name,
            was_cached=removed,
        )
        self._notify_owner(self._handler.document_changed, project.id, doc_name)

    def _notify_owner(self, callback: Callable[..., None], *args: object) -> None:
        try:
            callback(*args)
        except Exception:
            log.error(
                "watch_handler_error",
                callback=getattr(callback, "__name__", repr(callback)),
                exc_info=True,
            )
