"""System migrations for the registry database.

Applied in order to the registry handle before every registry operation.
New entries go at the end; applied names are never changed.
"""

SYSTEM_MIGRATIONS: list[tuple[str, str]] = [
    (
        "001_create_dbs_table",
        """
        CREATE TABLE IF NOT EXISTS dbs (
            name TEXT PRIMARY KEY,
            description TEXT,
            created_at TEXT DEFAULT CURRENT_TIMESTAMP
        )
        """,
    ),
]
