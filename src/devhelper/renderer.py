"""Render pipeline: (project id, document name) -> cached HTML.

Not-found is an ordinary ``None`` result, never an exception. Unknown
projects, missing files, names that escape the project root and read
failures all look the same to the caller so no filesystem layout leaks out.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import aiofiles
import structlog
from markdown_it import MarkdownIt

from devhelper.cache import CACHE_KEY_DELIMITER, cache_key
from devhelper.documents import resolve_document_path, sanitize_doc_name

if TYPE_CHECKING:
    from devhelper.protocols import CacheProtocol
    from devhelper.registry import ProjectRegistry

log = structlog.get_logger()

_markdown = MarkdownIt("commonmark").enable(["table", "strikethrough"])


def render_markdown(text: str) -> str:
    return _markdown.render(text)


class DocumentRenderer:
    def __init__(self, registry: ProjectRegistry, cache: CacheProtocol) -> None:
        self._registry = registry
        self._cache = cache

    async def render(self, project_id: str, doc_name: str) -> str | None:
        """Return rendered HTML for a document, or None if it cannot be served.

        A cache hit touches neither the registry nor the filesystem.
        """
        name = sanitize_doc_name(doc_name)
        if name is None or CACHE_KEY_DELIMITER in project_id:
            return None

        key = cache_key(project_id, name)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        # Taken before the registry lookup: a reload that purges this project
        # while we are suspended below must make the cache write fail.
        since = self._cache.snapshot()
        try:
            return await self._render_uncached(project_id, name, key, since)
        finally:
            self._cache.release(since)

    async def _render_uncached(
        self, project_id: str, name: str, key: str, since: int
    ) -> str | None:
        project = self._registry.get(project_id)
        if project is None:
            return None

        path = await asyncio.to_thread(resolve_document_path, project.root, name)
        if path is None:
            return None

        try:
            async with aiofiles.open(path, encoding="utf-8") as f:
                markdown = await f.read()
        except (OSError, UnicodeDecodeError):
            log.warning(
                "document_read_failed",
                project_id=project_id,
                doc_name=name,
                path=str(path),
                exc_info=True,
            )
            return None

        html = render_markdown(markdown)
        if not self._cache.set(key, html, since=since):
            log.debug("cache_write_dropped", key=key, reason="invalidated_during_render")
        log.info("document_rendered", project_id=project_id, doc_name=name, size=len(html))
        return html
