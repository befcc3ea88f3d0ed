"""MCP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Create AppState via the FastMCP lifespan context manager
- Register tools and per-project resources
- Run the stdio transport
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, Resource, TextContent

import devhelper.tools.get_documentation as t_get_documentation
import devhelper.tools.list_documents as t_list_documents
import devhelper.tools.list_projects as t_list_projects
import devhelper.tools.project_resources as t_project_resources
import devhelper.tools.search_documents as t_search_documents
from devhelper import __version__
from devhelper.config import Settings
from devhelper.errors import ConfigError, DevHelperError
from devhelper.lifecycle import open_app_state
from devhelper.logconfig import setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from devhelper.state import AppState

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncGenerator[AppState, None]:
    """Create and tear down all shared resources for the server's lifetime."""
    settings = Settings()
    setup_logging(settings)

    log.info("server_starting", version=__version__, registry_path=str(settings.registry_path))

    try:
        async with open_app_state(settings) as state:
            log.info(
                "server_started",
                version=__version__,
                projects=len(state.registry),
                watching=state.watcher is not None,
            )
            yield state
    except ConfigError as exc:
        log.error(
            "server_config_invalid",
            code=exc.code,
            error=exc.message,
            path=str(exc.path) if exc.path else None,
        )
        raise
    finally:
        log.info("server_stopping")


# ---------------------------------------------------------------------------
# FastMCP instance and tool registration
# ---------------------------------------------------------------------------

mcp = FastMCP("devhelper", lifespan=lifespan)
# FastMCP doesn't expose a version kwarg, so set it on the underlying Server
# so the MCP initialize handshake reports our version, not the SDK's.
mcp._mcp_server.version = __version__  # pyright: ignore[reportPrivateUsage]


def _serialise_tool_error(error: DevHelperError) -> CallToolResult:
    """Convert a DevHelperError to the MCP tool error result envelope."""
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(error.to_dict()))],
        isError=True,
    )


def _log_tool_error(tool: str, exc: DevHelperError) -> None:
    log.warning(
        "tool_error",
        tool=tool,
        code=exc.code,
        message=exc.message,
        recoverable=exc.recoverable,
    )


@mcp.tool()
async def get_documentation(project_id: str, doc_name: str, ctx: Context) -> object:
    """Render a project's Markdown document to HTML.

    doc_name is the path of the document below the project root, with or
    without the .md suffix (e.g. 'guides/setup').
    """
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_get_documentation.handle(project_id, doc_name, state)
    except DevHelperError as exc:
        _log_tool_error("get_documentation", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="get_documentation", exc_info=True)
        raise


@mcp.tool()
async def list_projects(ctx: Context) -> object:
    """List the configured projects and their root directories."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_list_projects.handle(state)
    except DevHelperError as exc:
        _log_tool_error("list_projects", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="list_projects", exc_info=True)
        raise


@mcp.tool()
async def list_documents(project_id: str, ctx: Context) -> object:
    """List the Markdown documents of a project, as names usable with get_documentation."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_list_documents.handle(project_id, state)
    except DevHelperError as exc:
        _log_tool_error("list_documents", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="list_documents", exc_info=True)
        raise


@mcp.tool()
async def search_documents(query: str, ctx: Context) -> object:
    """Find documents whose name contains the query, across all projects."""
    state: AppState = ctx.request_context.lifespan_context
    try:
        return await t_search_documents.handle(query, state)
    except DevHelperError as exc:
        _log_tool_error("search_documents", exc)
        return _serialise_tool_error(exc)
    except Exception:
        log.error("tool_unexpected_error", tool="search_documents", exc_info=True)
        raise


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


def _lifespan_state() -> AppState:
    return mcp.get_context().request_context.lifespan_context


async def _read_resource(project_id: str, doc_name: str | None) -> str:
    try:
        return await t_project_resources.read(project_id, doc_name, _lifespan_state())
    except DevHelperError as exc:
        log.warning("resource_error", project_id=project_id, code=exc.code, message=exc.message)
        raise


# FastMCP only lists concrete resources, and the project set changes at
# runtime, so the low-level list handler is replaced.
@mcp._mcp_server.list_resources()  # pyright: ignore[reportPrivateUsage]
async def list_project_resources() -> list[Resource]:
    return [
        Resource(
            uri=entry["uri"],
            name=entry["name"],
            description=entry["description"],
            mimeType="text/html",
        )
        for entry in t_project_resources.list_resources(_lifespan_state())
    ]


@mcp.resource(
    f"{t_project_resources.RESOURCE_SCHEME}://{{project_id}}",
    mime_type="text/html",
)
async def project_readme(project_id: str) -> str:
    """A project's README rendered to HTML."""
    return await _read_resource(project_id, None)


@mcp.resource(
    f"{t_project_resources.RESOURCE_SCHEME}://{{project_id}}/{{doc_name}}",
    mime_type="text/html",
)
async def project_document(project_id: str, doc_name: str) -> str:
    """A project document rendered to HTML. Encode '/' in doc_name as %2F."""
    return await _read_resource(project_id, doc_name)


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    mcp.run()


if __name__ == "__main__":
    main()
