"""HTTP middleware — API key auth and JSON error responses.

Uses pure ASGI middleware (not BaseHTTPMiddleware) to avoid
known issues with response streaming in Starlette.
"""

from __future__ import annotations

import logging
import secrets

import sentry_sdk
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from sor.api.studio import STUDIO_PATH

logger = logging.getLogger(__name__)

API_KEY_HEADER = b"x-api-key"

# Paths that never require authentication
_PUBLIC_EXACT = (STUDIO_PATH,)


class ApiKeyMiddleware:
    """Require a matching ``X-API-Key`` header on all routes except public ones.

    An empty configured key rejects every request.
    """

    def __init__(self, app: ASGIApp, api_key: str) -> None:
        self.app = app
        self._api_key = api_key

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if scope["path"] in _PUBLIC_EXACT:
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        supplied = headers.get(API_KEY_HEADER, b"")

        if self._api_key and secrets.compare_digest(supplied, self._api_key.encode("utf-8")):
            await self.app(scope, receive, send)
            return

        response = JSONResponse({"error": "Unauthorized"}, status_code=401)
        await response(scope, receive, send)


class ErrorMiddleware:
    """Turn uncaught exceptions into ``500 {"error": message}``."""

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as e:
            logger.exception("Unhandled error on %s %s", scope.get("method"), scope.get("path"))
            sentry_sdk.capture_exception(e)
            if response_started:
                raise
            response = JSONResponse({"error": str(e)}, status_code=500)
            await response(scope, receive, send)
