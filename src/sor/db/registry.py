"""Registry — the catalog of user databases, kept in a reserved database."""

from __future__ import annotations

import logging

from sor.db.directory import HandleDirectory, get_directory
from sor.db.handle import DatabaseHandle
from sor.db.models import CatalogEntry, CatalogResult, CatalogStatus, QueryError, QueryResult
from sor.db.system_migrations import SYSTEM_MIGRATIONS

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "_sor_"
REGISTRY_DB = "_sor_registry"


class RegistryError(RuntimeError):
    """The registry database failed in a way callers cannot correct."""


def is_reserved(name: str) -> bool:
    return name.startswith(RESERVED_PREFIX)


class Registry:
    """Catalog operations on the registry database.

    Every operation bootstraps the catalog schema first by applying
    ``SYSTEM_MIGRATIONS`` through the ordinary migration protocol.
    """

    def __init__(self, directory: HandleDirectory, migrations: list[tuple[str, str]] | None = None):
        self.directory = directory
        self.migrations = SYSTEM_MIGRATIONS if migrations is None else migrations

    @property
    def handle(self) -> DatabaseHandle:
        return self.directory.get(REGISTRY_DB)

    def ensure(self) -> None:
        """Apply pending system migrations to the registry."""
        handle = self.handle
        for name, sql in self.migrations:
            result = handle.migrate(name, sql)
            if not result.applied and not result.already_applied:
                logger.error("System migration failed: %s: %s", name, result.error)

    def _query(self, sql: str, params: tuple = ()) -> QueryResult:
        result = self.handle.execute(sql, params)
        if isinstance(result, QueryError):
            raise RegistryError(result.error)
        return result

    def _exists(self, name: str) -> bool:
        return bool(self._query("SELECT name FROM dbs WHERE name = ?", (name,)).rows)

    def exists(self, name: str) -> bool:
        """Whether ``name`` has a catalog entry."""
        if is_reserved(name):
            return False
        self.ensure()
        return self._exists(name)

    def create(self, name: object, description: str | None = None) -> CatalogResult:
        if not name or not isinstance(name, str):
            return CatalogResult(CatalogStatus.INVALID_NAME, name)
        if is_reserved(name):
            return CatalogResult(CatalogStatus.RESERVED, name)

        self.ensure()
        if self._exists(name):
            return CatalogResult(CatalogStatus.EXISTS, name)

        self._query(
            "INSERT INTO dbs (name, description) VALUES (?, ?)",
            (name, description or None),
        )
        logger.info("Registered database %r", name)
        return CatalogResult(CatalogStatus.OK, name)

    def list(self) -> list[CatalogEntry]:
        self.ensure()
        result = self._query("SELECT name, description, created_at FROM dbs ORDER BY created_at, rowid")
        return [CatalogEntry(**row) for row in result.rows]

    def remove(self, name: str) -> CatalogResult:
        """Remove a catalog entry. The database's storage is left in place."""
        if is_reserved(name):
            return CatalogResult(CatalogStatus.RESERVED, name)

        self.ensure()
        if not self._exists(name):
            return CatalogResult(CatalogStatus.NOT_FOUND, name)

        self._query("DELETE FROM dbs WHERE name = ?", (name,))
        logger.info("Removed database %r from catalog", name)
        return CatalogResult(CatalogStatus.OK, name)

    def describe(self, name: str) -> str | None:
        self.ensure()
        rows = self._query("SELECT description FROM dbs WHERE name = ?", (name,)).rows
        return rows[0]["description"] if rows else None


def get_registry() -> Registry:
    """Registry bound to the global handle directory."""
    return Registry(get_directory())
