"""``sor`` command-line entry point."""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

import httpx

from sor.cli.client import ApiError, SorClient
from sor.cli.help_text import HELP_TEXT
from sor.cli.output import FORMATS, SCHEMA_COLUMNS, flatten_schema, format_output
from sor.cli.settings import CONFIG_KEYS, ConfigFileError, load_config, save_config


class CommandError(Exception):
    """A command failed; the message is shown to the user."""


def _add_output_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-o", "--output", choices=FORMATS, default="json", help="Output format")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sor", description="SQLite databases over REST")
    commands = parser.add_subparsers(dest="command", required=True)

    config = commands.add_parser("config", help="Manage client configuration")
    config_commands = config.add_subparsers(dest="config_command", required=True)
    config_set = config_commands.add_parser("set", help="Set a configuration value")
    config_set.add_argument("key", choices=CONFIG_KEYS)
    config_set.add_argument("value")

    db = commands.add_parser("db", help="Manage databases")
    db_commands = db.add_subparsers(dest="db_command", required=True)
    db_list = db_commands.add_parser("list", help="List all databases")
    _add_output_flag(db_list)
    db_create = db_commands.add_parser("create", help="Create a new database")
    db_create.add_argument("name")
    db_create.add_argument("-d", "--description")
    db_delete = db_commands.add_parser("delete", help="Delete a database")
    db_delete.add_argument("name")
    db_schema = db_commands.add_parser("schema", help="Get database schema")
    db_schema.add_argument("db")
    _add_output_flag(db_schema)

    sql = commands.add_parser("sql", help="Execute SQL on a database")
    sql.add_argument("db")
    sql.add_argument("query")
    sql.add_argument("-p", "--params", default="[]", help="JSON array of parameters")
    _add_output_flag(sql)

    migrate = commands.add_parser("migrate", help="Run a migration on a database")
    migrate.add_argument("db")
    migrate.add_argument("name")
    migrate.add_argument("sql")

    migrations = commands.add_parser("migrations", help="List migrations for a database")
    migrations.add_argument("db")
    _add_output_flag(migrations)

    commands.add_parser("help", help="Show usage instructions")
    commands.add_parser("init", help="Show usage instructions for AI coding assistants")
    return parser


def _config_set(args: argparse.Namespace) -> str:
    config = load_config()
    setattr(config, args.key, args.value)
    save_config(config)
    return f"Set {args.key} = {args.value}"


def _db_command(client: SorClient, args: argparse.Namespace) -> str:
    if args.db_command == "list":
        return format_output(client.list_databases(), args.output, ["name", "created_at"])
    if args.db_command == "create":
        result = client.create_database(args.name, args.description)
        return f"Created database: {result['name']}"
    if args.db_command == "delete":
        result = client.delete_database(args.name)
        return f"Deleted database: {result['name']}"

    result = client.schema(args.db)
    if args.output == "json":
        return format_output(result, "json")
    rows = flatten_schema(result.get("schema", []))
    if not rows:
        return "No tables found"
    return format_output(rows, args.output, SCHEMA_COLUMNS)


def _parse_params(raw: str) -> list[Any]:
    try:
        params = json.loads(raw)
    except json.JSONDecodeError as e:
        raise CommandError("Invalid params JSON") from e
    if not isinstance(params, list):
        raise CommandError("Invalid params JSON: expected an array")
    return params


def _run_command(args: argparse.Namespace, transport: httpx.BaseTransport | None) -> str:
    if args.command in ("help", "init"):
        return HELP_TEXT.rstrip("\n")
    if args.command == "config":
        return _config_set(args)

    params = _parse_params(args.params) if args.command == "sql" else None

    with SorClient(load_config(), transport=transport) as client:
        if args.command == "db":
            return _db_command(client, args)
        if args.command == "sql":
            result = client.sql(args.db, args.query, params)
            return format_output(result.get("rows", []), args.output, result.get("columns") or None)
        if args.command == "migrate":
            result = client.migrate(args.db, args.name, args.sql)
            return f"Applied migration: {result['name']}"
        if args.command == "migrations":
            return format_output(client.migrations(args.db), args.output, ["name", "applied_at"])

    raise CommandError(f"Unknown command: {args.command}")


def main(argv: list[str] | None = None, *, transport: httpx.BaseTransport | None = None) -> int:
    """Run the CLI and return the process exit code."""
    args = build_parser().parse_args(argv)
    try:
        output = _run_command(args, transport)
    except (ApiError, CommandError, ConfigFileError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(output)
    return 0


def cli_entry() -> None:
    sys.exit(main())
