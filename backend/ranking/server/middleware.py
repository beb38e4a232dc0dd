"""ASGI middleware for the ranking server."""

from __future__ import annotations

from typing import TYPE_CHECKING
from urllib.parse import parse_qs

from shared.dal.visibility import visibility_scope

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Receive, Scope, Send

INCLUDE_DELETED_PARAM = "include_deleted"
_TRUTHY = {"1", "true", "yes", "on"}


class VisibilityMiddleware:
    """Open a soft-delete visibility scope for every HTTP request.

    ``?include_deleted=true`` makes repository reads beneath the handler
    return soft-deleted rows; anything else hides them. Implemented as pure
    ASGI so the scope wraps the handler in the same task and context.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        query = parse_qs(scope.get("query_string", b"").decode("latin-1"))
        values = query.get(INCLUDE_DELETED_PARAM, [])
        include = bool(values) and values[-1].strip().lower() in _TRUTHY
        with visibility_scope(include_deleted=include):
            await self.app(scope, receive, send)


class SlashNormalizationMiddleware:
    """Strip trailing slashes so that /path/ is handled the same as /path.

    Applied as ASGI middleware, it rewrites the path *before* routing instead
    of letting Starlette answer the trailing-slash variant with a redirect.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            path: str = scope["path"]
            if len(path) > 1 and path.endswith("/"):
                scope["path"] = path.rstrip("/")
        await self.app(scope, receive, send)
