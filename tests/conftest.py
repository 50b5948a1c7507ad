"""Shared fixtures — temporary storage, handles and a test client."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from sor.config import AppConfig, ServerConfig, StorageConfig, StudioConfig
from sor.db.directory import HandleDirectory
from sor.db.handle import DatabaseHandle
from sor.db.registry import Registry
from sor.main import create_app

API_KEY = "test-api-key"


@pytest.fixture
def storage(tmp_path) -> StorageConfig:
    """Storage config rooted in a per-test temporary directory."""
    return StorageConfig(data_dir=tmp_path / "dbs")


@pytest.fixture
def handle(storage):
    h = DatabaseHandle("testdb", storage)
    yield h
    h.close()


@pytest.fixture
def directory(storage):
    d = HandleDirectory(storage)
    yield d
    d.close_all()


@pytest.fixture
def registry(directory) -> Registry:
    return Registry(directory)


@pytest.fixture
def app_config(storage) -> AppConfig:
    return AppConfig(
        server=ServerConfig(api_key=API_KEY),
        storage=storage,
        studio=StudioConfig(enabled=True, url=""),
    )


@pytest.fixture
def client(app_config):
    """Authenticated client against a fresh application."""
    with TestClient(create_app(app_config)) as c:
        c.headers["X-API-Key"] = API_KEY
        yield c


@pytest.fixture
def anon_client(app_config):
    """Client without credentials."""
    with TestClient(create_app(app_config)) as c:
        yield c
