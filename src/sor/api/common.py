"""Request parsing and JSON response helpers shared by the API routes."""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse


async def read_json_object(request: Request) -> dict[str, Any]:
    """Parse the request body as JSON.

    Malformed or empty bodies raise and surface as 500. A body that is valid
    JSON but not an object carries no fields.
    """
    body = await request.json()
    return body if isinstance(body, dict) else {}


def required_string(body: dict[str, Any], field: str) -> str | None:
    """Return a non-empty string field, or None when missing or mistyped."""
    value = body.get(field)
    if not value or not isinstance(value, str):
        return None
    return value


def json_response(data: dict[str, Any], status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=data, status_code=status_code)


def error_response(message: str, status_code: int = 400, **extra: Any) -> JSONResponse:
    return JSONResponse(content={"error": message, **extra}, status_code=status_code)
