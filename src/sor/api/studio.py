"""Studio — read-only HTML browser over the catalog and database schemas."""

from __future__ import annotations

import html
import logging
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse

from sor.db.directory import get_directory
from sor.db.models import CatalogEntry, QueryError, TableSchema
from sor.db.registry import get_registry

logger = logging.getLogger(__name__)
router = APIRouter()

STUDIO_PATH = "/__studio"


@router.get(STUDIO_PATH, response_class=HTMLResponse)
async def studio_page(request: Request, db: str | None = None) -> HTMLResponse:
    """Database list, or one database's tables when ``db`` is given."""
    config = request.app.state.config
    if not config.studio.enabled:
        raise HTTPException(status_code=404)

    if not db:
        return HTMLResponse(_render_landing(get_registry().list()))

    # Unknown names 404 before a handle is resolved; the page never creates storage
    registry = get_registry()
    if not registry.exists(db):
        raise HTTPException(status_code=404)
    schema = get_directory().get(db).describe_schema()
    description = registry.describe(db)
    return HTMLResponse(_render_database(db, description, schema, config.studio.url))


# ---------------------------------------------------------------------------
# HTML rendering
# ---------------------------------------------------------------------------

_CSS = """\
* { box-sizing: border-box; }
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
       margin: 0; padding: 2rem; background: #f5f5f5; color: #333; }
h1 { margin: 0 0 1.5rem 0; }
h2 { font-size: 1rem; margin: 1.5rem 0 0.5rem 0; }
nav { margin-bottom: 1rem; font-size: 0.875rem; }
nav a, .db-card { color: inherit; }
.db-list { display: grid; gap: 1rem; max-width: 800px; }
.db-card { display: block; background: white; border-radius: 8px; padding: 1rem 1.5rem;
           box-shadow: 0 1px 3px rgba(0,0,0,0.1); text-decoration: none; }
.db-card:hover { box-shadow: 0 4px 12px rgba(0,0,0,0.15); }
.db-name { font-weight: 600; font-size: 1.1rem; margin: 0 0 0.25rem 0; }
.db-desc { color: #666; font-size: 0.9rem; margin: 0; }
.db-date { color: #999; font-size: 0.8rem; margin-top: 0.5rem; }
table { border-collapse: collapse; background: white; min-width: 600px; }
th, td { text-align: left; padding: 6px 12px; border-bottom: 1px solid #eee; font-size: 0.875rem; }
th { background: #fafafa; }
.empty { color: #666; font-style: italic; }
.error { color: #c00; }
"""


def _e(text: object) -> str:
    """HTML-escape."""
    if text is None:
        return ""
    return html.escape(str(text))


def _page(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html><head><meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{_e(title)}</title>
<style>{_CSS}</style></head><body>
{body}
</body></html>"""


def _render_landing(entries: list[CatalogEntry]) -> str:
    cards = ""
    for entry in entries:
        desc = f'<p class="db-desc">{_e(entry.description)}</p>' if entry.description else ""
        cards += f"""<a href="{STUDIO_PATH}?db={quote(entry.name, safe='')}" class="db-card">
          <p class="db-name">{_e(entry.name)}</p>
          {desc}
          <p class="db-date">Created: {_e(entry.created_at)}</p>
        </a>"""

    if not entries:
        cards = '<div class="empty">No databases found. Create one using the CLI.</div>'

    return _page("SOR Studio - Databases", f'<h1>SOR Databases</h1>\n<div class="db-list">{cards}</div>')


def _render_database(
    name: str, description: str | None, schema: list[TableSchema] | QueryError, studio_url: str
) -> str:
    nav = f'<nav><a href="{STUDIO_PATH}">&larr; All databases</a>'
    if studio_url:
        nav += f' | <a href="{_e(studio_url)}?db={quote(name, safe="")}">Open in external studio</a>'
    nav += "</nav>"

    parts = [nav, f"<h1>{_e(name)}</h1>"]
    if description:
        parts.append(f'<p class="db-desc">{_e(description)}</p>')

    if isinstance(schema, QueryError):
        parts.append(f'<p class="error">Error: {_e(schema.error)}</p>')
    elif not schema:
        parts.append('<p class="empty">No tables yet. Apply a migration to create one.</p>')
    else:
        for table in schema:
            rows = "".join(
                f"""<tr><td>{_e(c.name)}</td><td>{_e(c.type)}</td>
                <td>{"NO" if c.notnull else "YES"}</td><td>{"YES" if c.pk else ""}</td>
                <td>{_e(c.dflt_value)}</td></tr>"""
                for c in table.columns
            )
            parts.append(
                f"""<h2>{_e(table.table)}</h2>
<table><thead><tr><th>Column</th><th>Type</th><th>Nullable</th><th>Primary key</th>
<th>Default</th></tr></thead><tbody>{rows}</tbody></table>"""
            )

    return _page(f"SOR Studio - {name}", "\n".join(parts))
