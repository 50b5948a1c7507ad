"""Usage text printed by ``sor help`` and ``sor init``."""

HELP_TEXT = """\
SOR — SQLite databases over REST

Each database is an isolated SQLite file addressed by name. Schema changes go
through named migrations, which are applied exactly once and atomically.

Setup:
  sor config set url http://localhost:8787
  sor config set key <api-key>

Databases:
  sor db list [-o json|table|csv]
  sor db create <name> [--description TEXT]
  sor db delete <name>
  sor db schema <db> [-o json|table|csv]

Queries:
  sor sql <db> "SELECT * FROM users" [-o table]
  sor sql <db> "INSERT INTO users (name) VALUES (?)" --params '["Alice"]'

Migrations:
  sor migrate <db> 001_create_users "CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)"
  sor migrations <db> [-o table]

Notes:
  - Use migrations for schema changes and `sor sql` for data.
  - Always pass values through --params; never build SQL strings from input.
  - Re-running a migration with the same name is reported as already applied.
  - Deleting a database removes it from the catalog only; recreating the same
    name may show the old data.
  - Names starting with _sor_ are reserved.
"""
