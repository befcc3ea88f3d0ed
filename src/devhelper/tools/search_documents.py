"""Tool handler for search_documents."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from devhelper.documents import search_documents
from devhelper.errors import DevHelperError, ErrorCode
from devhelper.models.tools import DocumentMatch, SearchDocumentsInput, SearchDocumentsOutput

if TYPE_CHECKING:
    from devhelper.state import AppState


async def handle(query: str, state: AppState) -> dict:
    """Handle a search_documents tool call."""
    log = structlog.get_logger().bind(tool="search_documents", query=query)
    log.info("handler_called")

    try:
        validated = SearchDocumentsInput(query=query)
    except ValueError as exc:
        raise DevHelperError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a non-empty part of a document name (max 500 chars).",
            recoverable=False,
        ) from exc

    max_results = state.settings.search.max_results
    # One extra match tells us whether the result was cut off
    found = await asyncio.to_thread(
        list,
        search_documents(state.registry.projects, validated.query, limit=max_results + 1),
    )
    truncated = len(found) > max_results

    matches = [
        DocumentMatch(project_id=project.id, doc_name=doc_name)
        for project, doc_name in found[:max_results]
    ]
    log.info("search_complete", match_count=len(matches), truncated=truncated)

    output = SearchDocumentsOutput(query=validated.query, matches=matches, truncated=truncated)
    return output.model_dump(mode="json")
