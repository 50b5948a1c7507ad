"""HTTP client for the SOR REST API."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from sor.cli.settings import ClientConfig

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

SETUP_INSTRUCTIONS = """\
Setup instructions:
  $ sor config set url http://localhost:8787
  $ sor config set key <your-api-key>

Generate an API key and start the server with it:
  $ export SOR_SERVER_API_KEY=$(uuidgen)
  $ sor-server
  $ sor config set key $SOR_SERVER_API_KEY
"""


class ApiError(Exception):
    """The server rejected a request or could not be reached."""


class MissingConfigError(ApiError):
    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Configuration missing: {', '.join(missing)}\n\n{SETUP_INSTRUCTIONS}")


def db_path(db: str, action: str) -> str:
    return f"/db/{quote(db, safe='')}/{action}"


class SorClient:
    """Thin wrapper around ``httpx.Client`` that adds the API key header."""

    def __init__(
        self,
        config: ClientConfig,
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        missing = [k for k in ("url", "key") if not getattr(config, k)]
        if missing:
            raise MissingConfigError(missing)
        self._http = httpx.Client(
            base_url=config.url.rstrip("/"),
            headers={"X-API-Key": config.key, "Content-Type": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> SorClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def request(self, method: str, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self._http.request(method, path, json=body)
        except httpx.HTTPError as e:
            raise ApiError(f"Request failed: {e}") from e

        try:
            data = response.json()
        except ValueError as e:
            raise ApiError(f"Invalid response from server ({response.status_code})") from e

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise ApiError(message or f"HTTP {response.status_code}")
        return data

    # -- Catalog ------------------------------------------------------------

    def list_databases(self) -> list[dict[str, Any]]:
        return self.request("GET", "/dbs").get("dbs", [])

    def create_database(self, name: str, description: str | None = None) -> dict[str, Any]:
        body: dict[str, Any] = {"name": name}
        if description:
            body["description"] = description
        return self.request("POST", "/dbs", body)

    def delete_database(self, name: str) -> dict[str, Any]:
        return self.request("DELETE", f"/dbs/{quote(name, safe='')}")

    # -- Per-database -------------------------------------------------------

    def sql(self, db: str, query: str, params: list[Any] | None = None) -> dict[str, Any]:
        return self.request("POST", db_path(db, "sql"), {"sql": query, "params": params or []})

    def migrate(self, db: str, name: str, sql: str) -> dict[str, Any]:
        return self.request("POST", db_path(db, "migrate"), {"name": name, "sql": sql})

    def migrations(self, db: str) -> list[dict[str, Any]]:
        return self.request("GET", db_path(db, "migrations")).get("migrations", [])

    def schema(self, db: str) -> dict[str, Any]:
        return self.request("GET", db_path(db, "schema"))
