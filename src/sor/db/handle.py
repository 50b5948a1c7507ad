"""Database handle — one isolated SQLite database and its migrations ledger."""

from __future__ import annotations

import hashlib
import logging
import re
import sqlite3
import threading
from pathlib import Path
from typing import Any, Sequence

from sor.config import StorageConfig
from sor.db.models import (
    ALREADY_APPLIED,
    AppliedMigration,
    ColumnInfo,
    MigrationResult,
    QueryError,
    QueryResult,
    TableSchema,
)

logger = logging.getLogger(__name__)

MIGRATIONS_TABLE = "_sor_migrations"

NO_STATEMENTS = "No SQL statements to execute"
OPEN_TRANSACTION = "Explicit transactions are not supported; open transaction was rolled back"
TRANSACTION_IN_MIGRATION = "Transaction control statements are not allowed in migrations"

_TRANSACTION_CONTROL = re.compile(r"^(BEGIN|COMMIT|END|ROLLBACK|SAVEPOINT|RELEASE)\b", re.IGNORECASE)


def storage_path(data_dir: Path, name: str) -> Path:
    """Map a logical database name to its SQLite file.

    Names are arbitrary strings, so the file is named after a digest of the
    name rather than the name itself.
    """
    digest = hashlib.sha256(name.encode("utf-8", errors="surrogatepass")).hexdigest()
    return Path(data_dir) / f"{digest}.sqlite"


_TRIGGER = re.compile(r"CREATE\s+(?:TEMP\s+|TEMPORARY\s+)?TRIGGER\b", re.IGNORECASE)

_QUOTE_CLOSE = {"'": "'", '"': '"', "`": "`", "[": "]"}


def split_statements(sql: str) -> list[str]:
    """Split a script into complete statements in one pass.

    Semicolons inside string literals, quoted identifiers, comments and
    trigger bodies do not end a statement. Leading comments are dropped, and
    pieces holding only whitespace or comments are not statements. A trailing
    statement without a semicolon is kept.
    """
    statements: list[str] = []
    start: int | None = None
    i, n = 0, len(sql)
    while i < n:
        ch = sql[i]
        if sql.startswith("--", i):
            end = sql.find("\n", i)
            i = n if end == -1 else end + 1
            continue
        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        if ch == ";":
            if start is not None:
                statement = sql[start : i + 1]
                # Trigger bodies hold their own semicolons
                if not _TRIGGER.match(statement) or sqlite3.complete_statement(statement):
                    statements.append(statement)
                    start = None
            i += 1
            continue
        if start is None and not ch.isspace():
            start = i
        if ch in _QUOTE_CLOSE:
            # A doubled quote reads as two adjacent quoted runs
            end = sql.find(_QUOTE_CLOSE[ch], i + 1)
            i = n if end == -1 else end + 1
            continue
        i += 1
    if start is not None:
        statements.append(sql[start:].strip())
    return statements


def _quote_identifier(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def _reject_migration(statements: list[str]) -> str | None:
    """Return why a migration script cannot run inside the ledger transaction."""
    if not statements:
        return NO_STATEMENTS
    if any(_TRANSACTION_CONTROL.match(s) for s in statements):
        return TRANSACTION_IN_MIGRATION
    return None


class DatabaseHandle:
    """A live SQLite database addressed by a logical name.

    Every operation holds the handle's lock, so one handle can be shared by
    request threads. Expected failures come back as result values; only
    unexpected faults raise.
    """

    def __init__(self, name: str, config: StorageConfig):
        self.name = name
        self.path = storage_path(config.data_dir, name)
        self._lock = threading.RLock()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(self.path),
            timeout=config.busy_timeout_seconds,
            isolation_level=None,
            check_same_thread=False,
        )
        self._conn.execute(f"PRAGMA journal_mode={config.journal_mode}")
        self._conn.execute("PRAGMA foreign_keys=ON")
        logger.info("Opened database %r at %s", name, self.path)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def _ensure_ledger(self) -> None:
        """Create the migrations ledger if it does not exist yet."""
        self._conn.execute(
            f"""CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (
                name TEXT PRIMARY KEY,
                sql TEXT NOT NULL,
                applied_at TEXT DEFAULT CURRENT_TIMESTAMP
            )"""
        )

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult | QueryError:
        """Run one or more statements.

        Parameters bind to the ``?`` placeholders of the last statement.
        Rows and columns are those of the last statement.
        """
        statements = split_statements(sql)
        if not statements:
            return QueryError(NO_STATEMENTS)

        with self._lock:
            changes_before = self._conn.total_changes
            result = QueryResult()
            try:
                for i, statement in enumerate(statements):
                    last = i == len(statements) - 1
                    cursor = self._conn.execute(statement, tuple(params) if last else ())
                    if cursor.description is None:
                        continue
                    columns = [d[0] for d in cursor.description]
                    rows = cursor.fetchall()
                    result.rows_read += len(rows)
                    if last:
                        result.columns = columns
                        result.rows = [dict(zip(columns, row)) for row in rows]
            except (sqlite3.Error, OverflowError) as e:
                self._rollback_dangling()
                logger.debug("Statement failed on %r: %s", self.name, e)
                return QueryError(str(e))

            if self._conn.in_transaction:
                self._rollback_dangling()
                return QueryError(OPEN_TRANSACTION)

            result.rows_written = self._conn.total_changes - changes_before
            return result

    def _rollback_dangling(self) -> None:
        if self._conn.in_transaction:
            self._conn.execute("ROLLBACK")

    def migrate(self, name: str, sql: str) -> MigrationResult:
        """Apply a named migration exactly once.

        The migration's statements and its ledger row are committed in one
        transaction; on failure neither persists.
        """
        statements = split_statements(sql)

        with self._lock:
            self._ensure_ledger()
            try:
                self._conn.execute("BEGIN IMMEDIATE")
                existing = self._conn.execute(
                    f"SELECT 1 FROM {MIGRATIONS_TABLE} WHERE name = ?", (name,)
                ).fetchone()
                if existing:
                    self._conn.execute("ROLLBACK")
                    logger.info("Migration %r already applied to %r", name, self.name)
                    return MigrationResult(name, applied=False, error=ALREADY_APPLIED)

                rejected = _reject_migration(statements)
                if rejected:
                    self._conn.execute("ROLLBACK")
                    return MigrationResult(name, applied=False, error=rejected)

                for statement in statements:
                    self._conn.execute(statement)
                self._conn.execute(
                    f"INSERT INTO {MIGRATIONS_TABLE} (name, sql) VALUES (?, ?)",
                    (name, sql),
                )
                self._conn.execute("COMMIT")
            except sqlite3.Error as e:
                self._rollback_dangling()
                logger.warning("Migration %r failed on %r: %s", name, self.name, e)
                return MigrationResult(name, applied=False, error=str(e))

        logger.info("Applied migration %r to %r", name, self.name)
        return MigrationResult(name, applied=True)

    def list_migrations(self) -> list[AppliedMigration]:
        with self._lock:
            self._ensure_ledger()
            rows = self._conn.execute(
                f"SELECT name, applied_at FROM {MIGRATIONS_TABLE} ORDER BY applied_at, rowid"
            ).fetchall()
        return [AppliedMigration(name=r[0], applied_at=r[1]) for r in rows]

    def describe_schema(self) -> list[TableSchema] | QueryError:
        """Describe every user table, excluding SQLite internals and the ledger."""
        with self._lock:
            try:
                tables = self._conn.execute(
                    """SELECT name FROM sqlite_master
                       WHERE type = 'table'
                       AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\'
                       AND name != ?
                       ORDER BY name""",
                    (MIGRATIONS_TABLE,),
                ).fetchall()
                schema = []
                for (table,) in tables:
                    info = self._conn.execute(
                        f"PRAGMA table_info({_quote_identifier(table)})"
                    ).fetchall()
                    schema.append(TableSchema(table=table, columns=[ColumnInfo(*row) for row in info]))
            except sqlite3.Error as e:
                return QueryError(str(e))
        return schema
