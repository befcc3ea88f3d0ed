"""HTTP browsing pages and the JSON API used by the editor extension.

Routes are thin: listings read the registry, documents go through
DocumentRenderer, and the result is wrapped in a page or JSON. AppState lives
on ``app.state`` and is created by the app lifespan unless one is injected
(tests do this).
"""

from __future__ import annotations

import asyncio
import functools
import html
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING
from urllib.parse import quote

import structlog
from starlette.applications import Starlette
from starlette.responses import HTMLResponse, JSONResponse
from starlette.routing import Route

from devhelper import __version__
from devhelper.config import Settings
from devhelper.documents import iter_documents
from devhelper.lifecycle import open_app_state
from devhelper.logconfig import setup_logging
from devhelper.transport import run_web_server

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Awaitable, Callable

    from starlette.requests import Request
    from starlette.responses import Response

    from devhelper.models.registry import Project
    from devhelper.state import AppState

log = structlog.get_logger()

_PAGE_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
       max-width: 900px; margin: 50px auto; padding: 20px; background: #f5f5f5; }
ul { list-style: none; padding: 0; }
li { margin: 10px 0; }
li a { display: block; padding: 15px; background: white; border-radius: 5px;
       box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
a { color: #0066cc; text-decoration: none; }
.content { background: white; padding: 30px; border-radius: 5px;
           box-shadow: 0 2px 4px rgba(0,0,0,0.1); }
"""


def _page(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n<head>\n<meta charset="UTF-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">\n'
        f"<title>{html.escape(title)} - DevHelper</title>\n"
        f"<style>{_PAGE_STYLE}</style>\n"
        f"</head>\n<body>\n{body}\n</body>\n</html>\n"
    )


def _link(href: str, text: str) -> str:
    return f'<a href="{html.escape(href)}">{html.escape(text)}</a>'


def _project_href(project_id: str) -> str:
    return f"/projects/{quote(project_id)}"


def _not_found(message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=404)


def _app_state(request: Request) -> AppState:
    return request.app.state.devhelper


def _guarded(
    endpoint: Callable[[Request], Awaitable[Response]],
) -> Callable[[Request], Awaitable[Response]]:
    """Map unexpected exceptions to ``500 {"error": ...}`` after logging them."""

    @functools.wraps(endpoint)
    async def wrapper(request: Request) -> Response:
        try:
            return await endpoint(request)
        except Exception:
            log.error(
                "route_unexpected_error",
                route=endpoint.__name__,
                path=request.url.path,
                exc_info=True,
            )
            return JSONResponse({"error": "Internal server error"}, status_code=500)

    return wrapper


def _lookup(request: Request) -> tuple[AppState, Project | None]:
    state = _app_state(request)
    return state, state.registry.get(request.path_params["project_id"])


# ---------------------------------------------------------------------------
# HTML pages
# ---------------------------------------------------------------------------


@_guarded
async def index_page(request: Request) -> Response:
    state = _app_state(request)
    items = "".join(
        f"<li>{_link(_project_href(project.id), project.id)}</li>"
        for project in state.registry.projects
    )
    body = (
        "<h1>Projects</h1>\n"
        f"<ul>{items or '<li>No projects configured</li>'}</ul>"
    )
    return HTMLResponse(_page("Projects", body))


@_guarded
async def project_page(request: Request) -> Response:
    _, project = _lookup(request)
    if project is None:
        return _not_found("Project not found")

    base = _project_href(project.id)
    documents = await asyncio.to_thread(list, iter_documents(project.root))
    items = "".join(
        f"<li>{_link(f'{base}/{quote(doc_name)}', doc_name)}</li>" for doc_name in documents
    )
    body = (
        f"<h1>{html.escape(project.id)}</h1>\n"
        f"<p>{_link('/', 'Back to projects')}</p>\n"
        f"<ul>{items or '<li>No documentation files found</li>'}</ul>"
    )
    return HTMLResponse(_page(project.id, body))


@_guarded
async def document_page(request: Request) -> Response:
    state = _app_state(request)
    project_id = request.path_params["project_id"]
    doc_name = request.path_params["doc_name"]
    rendered = await state.renderer.render(project_id, doc_name)
    if rendered is None:
        return _not_found("Document not found")

    body = (
        f"<p>{_link(_project_href(project_id), f'Back to {project_id}')}</p>\n"
        f'<div class="content">\n{rendered}\n</div>'
    )
    return HTMLResponse(_page(f"{doc_name} - {project_id}", body))


# ---------------------------------------------------------------------------
# JSON API
# ---------------------------------------------------------------------------


@_guarded
async def api_document(request: Request) -> Response:
    state = _app_state(request)
    rendered = await state.renderer.render(
        request.path_params["project_id"], request.path_params["doc_name"]
    )
    if rendered is None:
        return _not_found("Document not found")
    return JSONResponse({"htmlContent": rendered})


@_guarded
async def api_projects(request: Request) -> Response:
    state = _app_state(request)
    return JSONResponse(
        {
            "projects": [
                {"id": project.id, "path": project.path} for project in state.registry.projects
            ]
        }
    )


@_guarded
async def api_project_documents(request: Request) -> Response:
    _, project = _lookup(request)
    if project is None:
        return _not_found("Project not found")
    documents = await asyncio.to_thread(list, iter_documents(project.root))
    return JSONResponse({"projectId": project.id, "documents": documents})


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


routes = [
    Route("/", index_page),
    Route("/projects/{project_id}", project_page),
    Route("/projects/{project_id}/{doc_name:path}", document_page),
    Route("/api/projects", api_projects),
    Route("/api/projects/{project_id}/documents", api_project_documents),
    Route("/api/docs/{project_id}/{doc_name:path}", api_document),
]


def create_app(state: AppState | None = None, settings: Settings | None = None) -> Starlette:
    """Build the Starlette app.

    With *state* given the app serves it as-is and the lifespan does nothing.
    Otherwise the lifespan opens a fresh AppState from *settings*.
    """

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        if state is not None:
            yield
            return
        async with open_app_state(settings or Settings()) as opened:
            app.state.devhelper = opened
            log.info("web_started", version=__version__, projects=len(opened.registry))
            yield
        log.info("web_stopping")

    app = Starlette(routes=routes, lifespan=lifespan)
    if state is not None:
        app.state.devhelper = state
    return app


def main() -> None:
    settings = Settings()
    setup_logging(settings)
    run_web_server(create_app(settings=settings), settings)


if __name__ == "__main__":
    main()
