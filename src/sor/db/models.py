"""Result types returned by handles and the registry.

Expected outcomes (engine errors, duplicate migrations, missing catalog
entries) are values of these types rather than exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sor.db.values import SqlValue, encode_row, encode_value


@dataclass
class QueryResult:
    rows: list[dict[str, SqlValue]] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    rows_read: int = 0
    rows_written: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": [encode_row(r) for r in self.rows],
            "columns": self.columns,
            "rowsRead": self.rows_read,
            "rowsWritten": self.rows_written,
        }


@dataclass
class QueryError:
    """An engine failure: malformed SQL, missing table, constraint violation."""

    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error}


ALREADY_APPLIED = "Migration already applied"


@dataclass
class MigrationResult:
    name: str
    applied: bool
    error: str | None = None

    @property
    def already_applied(self) -> bool:
        return not self.applied and self.error == ALREADY_APPLIED

    def to_dict(self) -> dict[str, Any]:
        if self.applied:
            return {"ok": True, "name": self.name}
        return {"ok": False, "error": self.error, "name": self.name}


@dataclass
class AppliedMigration:
    name: str
    applied_at: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "applied_at": self.applied_at}


@dataclass
class ColumnInfo:
    cid: int
    name: str
    type: str
    notnull: int
    dflt_value: SqlValue
    pk: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "cid": self.cid,
            "name": self.name,
            "type": self.type,
            "notnull": self.notnull,
            "dflt_value": encode_value(self.dflt_value),
            "pk": self.pk,
        }


@dataclass
class TableSchema:
    table: str
    columns: list[ColumnInfo] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"table": self.table, "columns": [c.to_dict() for c in self.columns]}


@dataclass
class CatalogEntry:
    name: str
    description: str | None = None
    created_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "created_at": self.created_at,
        }


class CatalogStatus(str, Enum):
    OK = "ok"
    EXISTS = "exists"
    NOT_FOUND = "not_found"
    INVALID_NAME = "invalid_name"
    RESERVED = "reserved"


@dataclass
class CatalogResult:
    status: CatalogStatus
    name: Any = None

    @property
    def ok(self) -> bool:
        return self.status == CatalogStatus.OK
