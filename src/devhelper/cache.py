"""In-memory rendered-document cache.

No eviction and no expiry: an entry lives until the invalidation watcher
deletes it or the cache is cleared. Freshness is the watcher's job, so the
cache never has to reason about time.
"""

from __future__ import annotations

CACHE_KEY_DELIMITER = ":"


def cache_key(project_id: str, doc_name: str) -> str:
    """Build the cache key for a (project, document) pair.

    Project ids may not contain the delimiter, so the first delimiter always
    separates the two halves and distinct pairs never share a key.
    """
    if CACHE_KEY_DELIMITER in project_id:
        raise ValueError(f"project id must not contain {CACHE_KEY_DELIMITER!r}: {project_id!r}")
    return f"{project_id}{CACHE_KEY_DELIMITER}{doc_name}"


class DocumentCache:
    """Rendered HTML keyed by :func:`cache_key`. Implements CacheProtocol.

    Every delete, purge and clear advances a logical clock. A writer that
    took a :meth:`snapshot` before looking up the source file passes it as
    ``since`` and the write is dropped if the key or its project was
    invalidated in the meantime, so a slow render can never resurrect
    content the watcher already purged. The writer calls :meth:`release`
    when done; invalidation marks older than every open snapshot are pruned.
    """

    def __init__(self) -> None:
        self._entries: dict[str, str] = {}
        self._clock = 0
        self._cleared_at = 0
        self._invalidated_at: dict[str, int] = {}
        self._purged_at: dict[str, int] = {}
        # snapshot clock -> number of writers still holding it
        self._open: dict[int, int] = {}

    def get(self, key: str) -> str | None:
        return self._entries.get(key)

    def has(self, key: str) -> bool:
        return key in self._entries

    def set(self, key: str, html: str, *, since: int | None = None) -> bool:
        """Store *html* under *key*. Returns False if the write was dropped."""
        if since is not None and self._invalidated_since(key, since):
            return False
        self._entries[key] = html
        return True

    def delete(self, key: str) -> bool:
        self._clock += 1
        if self._open:
            self._invalidated_at[key] = self._clock
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._clock += 1
        self._cleared_at = self._clock
        self._entries.clear()
        self._invalidated_at.clear()
        self._purged_at.clear()

    def purge_project(self, project_id: str) -> int:
        """Delete every entry belonging to *project_id*. Returns the count.

        Also blocks in-flight writes for keys of that project that were not
        cached yet.
        """
        prefix = cache_key(project_id, "")
        self._clock += 1
        if self._open:
            self._purged_at[project_id] = self._clock
        keys = [key for key in self._entries if key.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def snapshot(self) -> int:
        self._open[self._clock] = self._open.get(self._clock, 0) + 1
        return self._clock

    def release(self, since: int) -> None:
        count = self._open.get(since, 0)
        if count <= 1:
            self._open.pop(since, None)
        else:
            self._open[since] = count - 1

        oldest = min(self._open, default=self._clock)
        self._invalidated_at = {k: v for k, v in self._invalidated_at.items() if v > oldest}
        self._purged_at = {k: v for k, v in self._purged_at.items() if v > oldest}

    @property
    def pending_marks(self) -> int:
        return len(self._invalidated_at) + len(self._purged_at)

    def _invalidated_since(self, key: str, since: int) -> bool:
        project_id = key.partition(CACHE_KEY_DELIMITER)[0]
        return (
            self._cleared_at > since
            or self._invalidated_at.get(key, 0) > since
            or self._purged_at.get(project_id, 0) > since
        )

    def __len__(self) -> int:
        return len(self._entries)
