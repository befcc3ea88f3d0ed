"""Tool handler for get_documentation.

Receives AppState, delegates to the document renderer, and returns a
structured dict. No MCP or FastMCP imports, server.py handles the MCP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from devhelper.documents import addressable_name, sanitize_doc_name
from devhelper.errors import DevHelperError, ErrorCode
from devhelper.models.tools import GetDocumentationInput, GetDocumentationOutput

if TYPE_CHECKING:
    from devhelper.state import AppState


async def handle(project_id: str, doc_name: str, state: AppState) -> dict:
    """Handle a get_documentation tool call."""
    log = structlog.get_logger().bind(
        tool="get_documentation", project_id=project_id, doc_name=doc_name
    )
    log.info("handler_called")

    # Validate input
    try:
        validated = GetDocumentationInput(project_id=project_id, doc_name=doc_name)
    except ValueError as exc:
        raise DevHelperError(
            code=ErrorCode.INVALID_INPUT,
            message=str(exc),
            suggestion="Provide a project ID and a document name such as 'guides/setup'.",
            recoverable=False,
        ) from exc

    html = await state.renderer.render(validated.project_id, validated.doc_name)
    if html is None:
        # Unknown project and missing document are reported the same way
        raise DevHelperError(
            code=ErrorCode.DOCUMENT_NOT_FOUND,
            message=(
                f"Document '{validated.doc_name}' not found in project "
                f"'{validated.project_id}'."
            ),
            suggestion="Call list_documents or search_documents to find available documents.",
            recoverable=False,
        )

    log.info("documentation_served", size=len(html))

    output = GetDocumentationOutput(
        project_id=validated.project_id,
        doc_name=addressable_name(sanitize_doc_name(validated.doc_name) or validated.doc_name),
        html=html,
    )
    return output.model_dump(mode="json")
