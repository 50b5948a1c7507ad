"""Render API results as JSON, an aligned text table or CSV."""

from __future__ import annotations

import csv
import io
import json
from typing import Any

FORMATS = ("json", "table", "csv")


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


def format_output(data: Any, fmt: str, columns: list[str] | None = None) -> str:
    if fmt == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)

    rows = data if isinstance(data, list) else [data]
    if not rows:
        return "No data"

    cols = columns or list(rows[0].keys())

    if fmt == "csv":
        buf = io.StringIO()
        writer = csv.writer(buf, lineterminator="\n")
        writer.writerow(cols)
        for row in rows:
            writer.writerow([_cell(row.get(c)) for c in cols])
        return buf.getvalue().rstrip("\n")

    widths = [max(len(c), *(len(_cell(r.get(c))) for r in rows)) for c in cols]
    lines = [
        " | ".join(c.ljust(w) for c, w in zip(cols, widths)),
        "-+-".join("-" * w for w in widths),
    ]
    for row in rows:
        lines.append(" | ".join(_cell(row.get(c)).ljust(w) for c, w in zip(cols, widths)))
    return "\n".join(lines)


def flatten_schema(schema: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """One row per column, for table and CSV output."""
    return [
        {
            "table": table["table"],
            "column": col["name"],
            "type": col["type"],
            "nullable": "YES" if not col["notnull"] else "NO",
            "primary_key": "YES" if col["pk"] else "NO",
            "default_value": col["dflt_value"] if col["dflt_value"] is not None else "",
        }
        for table in schema
        for col in table["columns"]
    ]


SCHEMA_COLUMNS = ["table", "column", "type", "nullable", "primary_key", "default_value"]
