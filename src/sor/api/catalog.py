"""Catalog routes — create, list and delete databases."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sor.api.common import error_response, json_response, read_json_object, required_string
from sor.db.models import CatalogStatus
from sor.db.registry import RESERVED_PREFIX, get_registry

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/dbs")
async def list_databases() -> JSONResponse:
    entries = get_registry().list()
    return json_response({"dbs": [e.to_dict() for e in entries]})


@router.post("/dbs")
async def create_database(request: Request) -> JSONResponse:
    body = await read_json_object(request)
    name = required_string(body, "name")
    if name is None:
        return error_response("name is required")

    description = body.get("description")
    if description is not None and not isinstance(description, str):
        return error_response("description must be a string")

    result = get_registry().create(name, description)
    if result.status == CatalogStatus.RESERVED:
        return error_response(f"Database name cannot start with {RESERVED_PREFIX}")
    if result.status == CatalogStatus.EXISTS:
        return error_response("Database already exists", 409, name=name)

    return json_response({"ok": True, "name": name}, 201)


@router.delete("/dbs/{name:path}")
async def delete_database(name: str) -> JSONResponse:
    """Remove a database from the catalog.

    The database file stays on disk; recreating the name later exposes the
    old contents again.
    """
    result = get_registry().remove(name)
    if result.status == CatalogStatus.RESERVED:
        return error_response("Cannot delete system database")
    if result.status == CatalogStatus.NOT_FOUND:
        return error_response("Database not found", 404, name=name)

    return json_response({"ok": True, "name": name})
