"""HTTP routes — catalog, per-database operations and the studio page."""
