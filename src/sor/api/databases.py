"""Per-database routes — SQL execution, migrations and schema."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from sor.api.common import error_response, json_response, read_json_object, required_string
from sor.db.directory import get_directory
from sor.db.models import QueryError
from sor.db.registry import RESERVED_PREFIX, get_registry, is_reserved
from sor.db.values import ParameterError, decode_params

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/db")


def _reserved_error(db_name: str) -> JSONResponse | None:
    """System databases are only reachable through the catalog routes."""
    if is_reserved(db_name):
        return error_response(f"Database name cannot start with {RESERVED_PREFIX}")
    return None


@router.post("/{db_name:path}/sql")
async def execute_sql(db_name: str, request: Request) -> JSONResponse:
    rejected = _reserved_error(db_name)
    if rejected is not None:
        return rejected

    body = await read_json_object(request)
    sql = required_string(body, "sql")
    if sql is None:
        return error_response("sql is required")

    params = body.get("params")
    if params is None:
        params = []
    if not isinstance(params, list):
        return error_response("params must be an array")
    try:
        bound = decode_params(params)
    except ParameterError as e:
        return error_response(str(e))

    result = get_directory().get(db_name).execute(sql, bound)
    if isinstance(result, QueryError):
        return error_response(result.error)
    return json_response(result.to_dict())


@router.post("/{db_name:path}/migrate")
async def run_migration(db_name: str, request: Request) -> JSONResponse:
    rejected = _reserved_error(db_name)
    if rejected is not None:
        return rejected

    body = await read_json_object(request)
    name = required_string(body, "name")
    if name is None:
        return error_response("name is required")
    sql = required_string(body, "sql")
    if sql is None:
        return error_response("sql is required")

    result = get_directory().get(db_name).migrate(name, sql)
    return json_response(result.to_dict(), 200 if result.applied else 400)


@router.get("/{db_name:path}/migrations")
async def list_migrations(db_name: str) -> JSONResponse:
    rejected = _reserved_error(db_name)
    if rejected is not None:
        return rejected

    migrations = get_directory().get(db_name).list_migrations()
    return json_response({"migrations": [m.to_dict() for m in migrations]})


@router.get("/{db_name:path}/schema")
async def get_schema(db_name: str) -> JSONResponse:
    rejected = _reserved_error(db_name)
    if rejected is not None:
        return rejected

    schema = get_directory().get(db_name).describe_schema()
    if isinstance(schema, QueryError):
        return error_response(schema.error)

    description = get_registry().describe(db_name)
    return json_response({"schema": [t.to_dict() for t in schema], "description": description})
