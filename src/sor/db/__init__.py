"""Database layer — per-name SQLite handles, the handle directory and the registry."""

from sor.db.directory import HandleDirectory, get_directory, init_directory
from sor.db.handle import DatabaseHandle
from sor.db.registry import REGISTRY_DB, RESERVED_PREFIX, Registry, get_registry

__all__ = [
    "DatabaseHandle",
    "HandleDirectory",
    "Registry",
    "REGISTRY_DB",
    "RESERVED_PREFIX",
    "get_directory",
    "get_registry",
    "init_directory",
]
