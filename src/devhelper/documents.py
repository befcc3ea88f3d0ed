"""Document naming, path containment, and lazy tree walks.

A document name is a path-like string relative to the project root, always
with ``/`` separators and without the ``.md`` suffix (``guides/setup``).
"""

from __future__ import annotations

import os
import posixpath
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from devhelper.models.registry import Project

log = structlog.get_logger()

MARKDOWN_SUFFIX = ".md"


def sanitize_doc_name(doc_name: str) -> str | None:
    """Normalise a requested document name.

    Backslashes become ``/``, the path is normalised, empty and leading
    ``..`` segments are dropped and a trailing ``.md`` is removed. Returns
    None when nothing addressable is left.
    """
    normalised = posixpath.normpath(doc_name.replace("\\", "/"))
    parts = [part for part in normalised.split("/") if part and part != "."]
    while parts and parts[0] == "..":
        parts.pop(0)
    if not parts:
        return None
    name = "/".join(parts)
    if name.endswith(MARKDOWN_SUFFIX):
        name = name[: -len(MARKDOWN_SUFFIX)]
    return name or None


def resolve_document_path(root: Path, doc_name: str) -> Path | None:
    """Resolve *doc_name* to an existing Markdown file inside *root*.

    Both paths are fully resolved (symlinks included) before the containment
    check. Returns None for anything outside the root or not a regular file.
    """
    try:
        root_resolved = root.resolve()
        candidate = (root_resolved / f"{doc_name}{MARKDOWN_SUFFIX}").resolve()
        if not candidate.is_relative_to(root_resolved):
            return None
        if not candidate.is_file():
            return None
    except (OSError, ValueError):
        return None
    return candidate


def addressable_name(doc_name: str) -> str:
    """Return the spelling of *doc_name* that sanitize_doc_name maps back to it.

    A name that itself ends in ``.md`` (file ``notes.md.md``) needs the suffix
    spelled out, or a request for it would strip the suffix and hit ``notes.md``.
    """
    if doc_name.endswith(MARKDOWN_SUFFIX):
        return f"{doc_name}{MARKDOWN_SUFFIX}"
    return doc_name


def document_name_for(root: Path, file_path: str | os.PathLike[str]) -> str | None:
    """Map a file path under *root* back to its document name.

    *root* must be in the same (resolved) form the path was reported under.
    """
    try:
        relative = Path(file_path).relative_to(root)
    except ValueError:
        return None
    if relative.suffix != MARKDOWN_SUFFIX:
        return None
    return relative.with_suffix("").as_posix()


def iter_documents(root: Path) -> Iterator[str]:
    """Yield every document name beneath *root*, depth-first.

    Lazy: only one directory listing is held at a time. Entries are sorted
    per directory for stable output. Symlinked directories are not followed
    and unreadable directories are skipped.
    """
    yield from _walk(root, "")


def _walk(directory: Path | str, prefix: str) -> Iterator[str]:
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        log.debug("document_walk_skipped", directory=str(directory), error=str(exc))
        return

    for entry in entries:
        name = f"{prefix}{entry.name}"
        try:
            if entry.is_dir(follow_symlinks=False):
                yield from _walk(entry.path, f"{name}/")
            elif entry.name.endswith(MARKDOWN_SUFFIX) and entry.is_file():
                yield addressable_name(name[: -len(MARKDOWN_SUFFIX)])
        except OSError:
            continue


def search_documents(
    projects: Iterable[Project],
    query: str,
    *,
    limit: int | None = None,
) -> Iterator[tuple[Project, str]]:
    """Yield ``(project, doc_name)`` for names containing *query*, case-insensitively."""
    needle = query.lower()
    found = 0
    for project in projects:
        for doc_name in iter_documents(project.root):
            if needle not in doc_name.lower():
                continue
            yield project, doc_name
            found += 1
            if limit is not None and found >= limit:
                return
