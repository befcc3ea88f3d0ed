"""Handlers for the per-project MCP resources.

``mcp-dev-helper://{project_id}`` serves the project's README and
``mcp-dev-helper://{project_id}/{doc_name}`` any other document, both through
the shared renderer. No MCP or FastMCP imports, server.py handles the wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import quote, unquote

import structlog

from devhelper.errors import DevHelperError, ErrorCode

if TYPE_CHECKING:
    from devhelper.state import AppState

RESOURCE_SCHEME = "mcp-dev-helper"
DEFAULT_DOCUMENT = "README"


def resource_uri(project_id: str, doc_name: str | None = None) -> str:
    """Build a resource URI. ``/`` inside *doc_name* is percent-encoded."""
    uri = f"{RESOURCE_SCHEME}://{project_id}"
    if doc_name:
        uri = f"{uri}/{quote(doc_name, safe='')}"
    return uri


def list_resources(state: AppState) -> list[dict[str, str]]:
    """One resource per configured project, in registry order."""
    return [
        {
            "uri": resource_uri(project.id),
            "name": f"{project.id} - Documentation",
            "description": f"Documentation for {project.id} project",
        }
        for project in state.registry.projects
    ]


async def read(project_id: str, doc_name: str | None, state: AppState) -> str:
    """Render the document a resource URI points at."""
    name = unquote(doc_name) if doc_name else DEFAULT_DOCUMENT
    log = structlog.get_logger().bind(resource=RESOURCE_SCHEME, project_id=project_id)
    log.info("resource_read", doc_name=name)

    html = await state.renderer.render(project_id, name)
    if html is None:
        raise DevHelperError(
            code=ErrorCode.DOCUMENT_NOT_FOUND,
            message=f"Document not found: {project_id}/{name}",
            suggestion="List resources or call list_documents to find available documents.",
            recoverable=False,
        )
    return html
