"""HTTP serving and access middleware for the web app."""

from __future__ import annotations

import re
import secrets
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.datastructures import Headers
from starlette.responses import Response

if TYPE_CHECKING:
    from collections.abc import Iterable

    from starlette.types import ASGIApp, Receive, Scope, Send

    from devhelper.config import Settings

log = structlog.get_logger()

_LOCALHOST_ORIGIN = re.compile(r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$")


class LocalAccessMiddleware:
    """Pure ASGI middleware restricting the web app to local callers.

    Enforces two checks on every HTTP request:
    1. Optional bearer key authentication.
    2. Origin validation to prevent DNS rebinding. Localhost origins are
       always accepted, plus any origin starting with one of
       ``allowed_origin_prefixes`` (editor webviews send their own scheme).

    Requests without an Origin header (curl, the editor extension host) pass
    the origin check.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        auth_enabled: bool,
        auth_key: str | None = None,
        allowed_origin_prefixes: Iterable[str] = (),
    ) -> None:
        self.app = app
        self.auth_enabled = auth_enabled
        self.auth_key = auth_key
        self.allowed_origin_prefixes = tuple(allowed_origin_prefixes)

    def _origin_allowed(self, origin: str) -> bool:
        if _LOCALHOST_ORIGIN.match(origin):
            return True
        return any(origin.startswith(prefix) for prefix in self.allowed_origin_prefixes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = Headers(scope=scope)

            # 1. Optional bearer key authentication
            if self.auth_enabled:
                auth_header = headers.get("authorization", "")
                if not auth_header.startswith("Bearer ") or auth_header[7:] != self.auth_key:
                    await Response("Unauthorized", status_code=401)(scope, receive, send)
                    return

            # 2. Origin validation
            origin = headers.get("origin", "")
            if origin and not self._origin_allowed(origin):
                log.warning("http_origin_rejected", origin=origin)
                await Response("Forbidden", status_code=403)(scope, receive, send)
                return

        await self.app(scope, receive, send)


def run_web_server(app: ASGIApp, settings: Settings) -> None:
    """Serve the web app with uvicorn behind LocalAccessMiddleware."""
    http_log = log.bind(transport="http")

    auth_key: str | None = settings.web.auth_key or None

    if settings.web.auth_enabled and not auth_key:
        auth_key = secrets.token_urlsafe(32)
        http_log.warning("http_auth_key_auto_generated", auth_key=auth_key)

    if not settings.web.auth_enabled:
        http_log.info("http_auth_disabled")

    secured_app = LocalAccessMiddleware(
        app,
        auth_enabled=settings.web.auth_enabled,
        auth_key=auth_key,
        allowed_origin_prefixes=settings.web.allowed_origin_prefixes,
    )

    http_log.info("web_server_listening", host=settings.web.host, port=settings.web.port)
    uvicorn.run(
        secured_app,
        host=settings.web.host,
        port=settings.web.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )
