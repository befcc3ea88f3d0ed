"""Protocol interfaces for swappable components.

The renderer, watcher and AppState reference these protocols, not the
concrete implementations. This allows:
- Tests to record watcher notifications with a plain object
- A different cache backend to be swapped in without touching the renderer
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from devhelper.models.registry import Project


class CacheProtocol(Protocol):
    """Interface for the rendered-document cache."""

    def get(self, key: str) -> str | None: ...

    def has(self, key: str) -> bool: ...

    def set(self, key: str, html: str, *, since: int | None = None) -> bool: ...

    def delete(self, key: str) -> bool: ...

    def clear(self) -> None: ...

    def purge_project(self, project_id: str) -> int: ...

    def snapshot(self) -> int: ...

    def release(self, since: int) -> None: ...


class WatchHandler(Protocol):
    """Owner-side notifications from the invalidation watcher.

    Both methods run on the event loop thread.
    """

    def projects_reloaded(self, projects: Sequence[Project]) -> None: ...

    def document_changed(self, project_id: str, doc_name: str) -> None: ...
