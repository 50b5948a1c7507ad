"""Handle directory — at most one live handle per database name."""

from __future__ import annotations

import logging
import threading

from sor.config import StorageConfig
from sor.db.handle import DatabaseHandle

logger = logging.getLogger(__name__)


class HandleDirectory:
    """Process-wide mapping of database names to handles.

    Handles are created on first reference. The name table is guarded by a
    lock so two threads resolving the same unseen name get the same handle.
    """

    def __init__(self, config: StorageConfig):
        self.config = config
        self._handles: dict[str, DatabaseHandle] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> DatabaseHandle:
        handle = self._handles.get(name)
        if handle is not None:
            return handle
        with self._lock:
            handle = self._handles.get(name)
            if handle is None:
                handle = DatabaseHandle(name, self.config)
                self._handles[name] = handle
            return handle

    def __contains__(self, name: str) -> bool:
        return name in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    def close_all(self) -> None:
        with self._lock:
            for handle in self._handles.values():
                handle.close()
            count = len(self._handles)
            self._handles.clear()
        logger.info("Closed %d database handle(s)", count)


# Module-level singleton
_directory: HandleDirectory | None = None


def get_directory() -> HandleDirectory:
    """Get the global handle directory."""
    if _directory is None:
        raise RuntimeError("Handle directory not initialized. Call init_directory() first.")
    return _directory


def init_directory(config: StorageConfig) -> HandleDirectory:
    """Initialize the global handle directory, closing any previous one."""
    global _directory
    if _directory is not None:
        _directory.close_all()
    _directory = HandleDirectory(config)
    return _directory
