"""Tool handler for list_documents.

Walks the project root for Markdown files. Nothing is rendered or cached.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from devhelper.documents import iter_documents
from devhelper.errors import DevHelperError, ErrorCode
from devhelper.models.tools import ListDocumentsInput, ListDocumentsOutput

if TYPE_CHECKING:
    from devhelper.state import AppState


async def handle(project_id: str, state: AppState) -> dict:
    """Handle a list_documents tool call."""
    log = structlog.get_logger().bind(tool="list_documents", project_id=project_id)
    log.info("handler_called")

    try:
        validated = ListDocumentsInput(project_id=project_id)
    except ValueError as exc:
        raise DevHelperError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a project ID as returned by list_projects.",
            recoverable=False,
        ) from exc

    project = state.registry.get(validated.project_id)
    if project is None:
        raise DevHelperError(
            code=ErrorCode.PROJECT_NOT_FOUND,
            message=f"Project '{validated.project_id}' not found in registry.",
            suggestion="Call list_projects to see the configured project IDs.",
            recoverable=False,
        )

    documents = await asyncio.to_thread(list, iter_documents(project.root))
    log.info("list_documents_complete", document_count=len(documents))

    output = ListDocumentsOutput(project_id=project.id, documents=documents)
    return output.model_dump(mode="json")
